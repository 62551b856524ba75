"""
Forward-looking risk prediction from authority, economic and safety signals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from solproof.analysis.models import (
    AuthorityInsight,
    EconomicProfile,
    RiskFactor,
    RiskPrediction,
    SafetyAssessment,
)
from solproof.analysis.safety import clamp_score

HIGH_RISK_PREDICTION = "High risk of future scams or laundering"
MODERATE_RISK_PREDICTION = "Moderate risk, monitor closely"
LOW_RISK_PREDICTION = "Low risk, but verify"


@dataclass(frozen=True)
class RiskPolicy:
    base_likelihood: int = 30
    volatility_delta: int = 20
    single_authority_delta: int = 15
    low_safety_delta: int = 25
    low_safety_threshold: int = 50
    high_tier: int = 70
    moderate_tier: int = 40


DEFAULT_RISK_POLICY = RiskPolicy()


def neutral_prediction() -> RiskPrediction:
    return RiskPrediction(risk_likelihood=30, prediction=LOW_RISK_PREDICTION, computed=False)


def prediction_tier(likelihood: int, policy: RiskPolicy = DEFAULT_RISK_POLICY) -> str:
    if likelihood > policy.high_tier:
        return HIGH_RISK_PREDICTION
    if likelihood > policy.moderate_tier:
        return MODERATE_RISK_PREDICTION
    return LOW_RISK_PREDICTION


def predict_risk(
    authorities: Sequence[AuthorityInsight],
    economics: EconomicProfile,
    safety: SafetyAssessment,
    policy: RiskPolicy = DEFAULT_RISK_POLICY,
) -> RiskPrediction:
    likelihood = policy.base_likelihood
    factors: list[RiskFactor] = []

    if economics.volatility.high_volatility:
        factors.append(RiskFactor("High transaction volume volatility", "May indicate manipulative activity"))
        likelihood += policy.volatility_delta

    if len(authorities) == 1:
        factors.append(RiskFactor("Single authority", "Increases risk of malicious upgrades"))
        likelihood += policy.single_authority_delta

    if safety.safety_score < policy.low_safety_threshold:
        factors.append(RiskFactor("Low safety score", "Indicates multiple vulnerabilities"))
        likelihood += policy.low_safety_delta

    score = clamp_score(likelihood)
    return RiskPrediction(risk_likelihood=score, prediction=prediction_tier(score, policy), risk_factors=tuple(factors))
