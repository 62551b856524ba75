"""
Behavior inference: scam probability, laundering likelihood and a
program-type confidence distribution.

Both scores start at 10 and accumulate fixed deltas per triggered signal,
each clamped to [0, 100] independently.
"""

from __future__ import annotations

from dataclasses import dataclass

from solproof.analysis.models import (
    BehaviorProfile,
    BinaryProfile,
    EconomicProfile,
    ProgramType,
    TransactionKind,
)
from solproof.analysis.safety import clamp_score


@dataclass(frozen=True)
class BehaviorPolicy:
    """Pinned deltas and thresholds for behavior scoring."""

    base_score: int = 10
    # Scam probability
    hidden_mint_delta: int = 30
    suspicious_volume_delta: int = 20
    suspicious_volume_ratio: float = 0.5
    low_activity_delta: int = 20
    low_activity_max_tx: int = 10
    low_activity_min_volume_sol: float = 100.0
    single_authority_delta: int = 10
    # Laundering likelihood
    concentration_delta: int = 25
    volatility_delta: int = 20
    others_delta: int = 15
    others_ratio: float = 0.3
    invoke_scale_delta: int = 10
    invoke_scale_min_instructions: int = 500
    # Program type selection
    swap_majority_ratio: float = 0.5
    nft_majority_ratio: float = 0.3


DEFAULT_BEHAVIOR_POLICY = BehaviorPolicy()

GOVERNANCE_CONFIDENCE = {"governance": 90, "amm": 5, "nft": 5}
AMM_CONFIDENCE = {"amm": 85, "governance": 10, "nft": 5}
NFT_CONFIDENCE = {"nft": 80, "amm": 10, "governance": 10}
UNKNOWN_CONFIDENCE = {"unknown": 50, "governance": 20, "amm": 20, "nft": 10}


def neutral_behavior() -> BehaviorProfile:
    return BehaviorProfile(
        scam_probability=10,
        laundering_likelihood=10,
        program_type_confidence={"unknown": 100},
        computed=False,
    )


def scam_probability(
    profile: BinaryProfile, economics: EconomicProfile, policy: BehaviorPolicy = DEFAULT_BEHAVIOR_POLICY
) -> int:
    score = policy.base_score
    if profile.hidden_mint_signal:
        score += policy.hidden_mint_delta
    if economics.suspicious_volume_sol > economics.total_volume_sol * policy.suspicious_volume_ratio:
        score += policy.suspicious_volume_delta
    if (
        economics.transaction_count < policy.low_activity_max_tx
        and economics.total_volume_sol > policy.low_activity_min_volume_sol
    ):
        score += policy.low_activity_delta
    if len(profile.candidate_authorities) == 1:
        score += policy.single_authority_delta
    return clamp_score(score)


def laundering_likelihood(
    profile: BinaryProfile, economics: EconomicProfile, policy: BehaviorPolicy = DEFAULT_BEHAVIOR_POLICY
) -> int:
    score = policy.base_score
    if economics.token_flows.concentration_risk:
        score += policy.concentration_delta
    if economics.volatility.high_volatility:
        score += policy.volatility_delta
    if economics.others.count > economics.transaction_count * policy.others_ratio:
        score += policy.others_delta
    if "sol_invoke" in profile.syscalls and profile.instruction_count_estimate > policy.invoke_scale_min_instructions:
        score += policy.invoke_scale_delta
    return clamp_score(score)


def program_type_confidence(
    profile: BinaryProfile, economics: EconomicProfile, policy: BehaviorPolicy = DEFAULT_BEHAVIOR_POLICY
) -> dict[str, int]:
    """governance marker > swap majority > nft-mint majority > fallback."""
    total = economics.transaction_count
    if profile.suspected_type is ProgramType.GOVERNANCE:
        return dict(GOVERNANCE_CONFIDENCE)
    if economics.stats(TransactionKind.SWAP).count > total * policy.swap_majority_ratio:
        return dict(AMM_CONFIDENCE)
    if economics.stats(TransactionKind.NFT_MINT).count > total * policy.nft_majority_ratio:
        return dict(NFT_CONFIDENCE)
    return dict(UNKNOWN_CONFIDENCE)


def infer_behavior(
    profile: BinaryProfile,
    economics: EconomicProfile,
    policy: BehaviorPolicy = DEFAULT_BEHAVIOR_POLICY,
) -> BehaviorProfile:
    return BehaviorProfile(
        scam_probability=scam_probability(profile, economics, policy),
        laundering_likelihood=laundering_likelihood(profile, economics, policy),
        program_type_confidence=program_type_confidence(profile, economics, policy),
    )
