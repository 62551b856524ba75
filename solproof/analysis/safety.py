"""
Safety assessment: fuse binary, authority, economic and call graph signals
into a 0-100 score with itemized risks.

Deterministic in its four inputs. Score starts at the policy baseline and
only decreases; the result is clamped to [0, 100].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from solproof.analysis.models import (
    AuthorityInsight,
    BinaryProfile,
    CallGraph,
    EconomicProfile,
    SafetyAssessment,
    SafetyRisk,
)
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

SAFETY_FALLBACK_SCORE = 50


@dataclass(frozen=True)
class SafetyPolicy:
    baseline: int = 80
    hidden_mint_penalty: int = 20
    single_authority_penalty: int = 10
    suspicious_volume_penalty: int = 15
    suspicious_volume_ratio: float = 0.5
    complex_graph_penalty: int = 10
    complex_graph_edges: int = 50


DEFAULT_SAFETY_POLICY = SafetyPolicy()


def neutral_safety() -> SafetyAssessment:
    """Could-not-assess sentinel: score 50, computed=False."""
    return SafetyAssessment(safety_score=SAFETY_FALLBACK_SCORE, computed=False)


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def assess_safety(
    profile: BinaryProfile,
    authorities: Sequence[AuthorityInsight],
    economics: EconomicProfile,
    graph: CallGraph,
    policy: SafetyPolicy = DEFAULT_SAFETY_POLICY,
) -> SafetyAssessment:
    risks: list[SafetyRisk] = []
    score = policy.baseline

    if profile.hidden_mint_signal:
        risks.append(SafetyRisk(
            issue="Potential unchecked minting",
            implication="Risk of unauthorized token issuance",
            mitigation="Verify minting constraints",
        ))
        score -= policy.hidden_mint_penalty

    if len(authorities) == 1:
        risks.append(SafetyRisk(
            issue="Single authority",
            implication="Centralization risk",
            mitigation="Monitor authority actions",
        ))
        score -= policy.single_authority_penalty

    if economics.suspicious_volume_sol > economics.total_volume_sol * policy.suspicious_volume_ratio:
        risks.append(SafetyRisk(
            issue="High suspicious volume",
            implication="Potential laundering",
            mitigation="Trace top accounts",
        ))
        score -= policy.suspicious_volume_penalty

    if len(graph.edges) > policy.complex_graph_edges:
        risks.append(SafetyRisk(
            issue="Complex interactions",
            implication="Increased risk of hidden logic",
            mitigation="Review call graph",
        ))
        score -= policy.complex_graph_penalty

    result = SafetyAssessment(safety_score=clamp_score(score), risks=tuple(risks))
    logger.debug("safety_assessed", program=profile.address, score=result.safety_score, risks=len(risks))
    return result
