"""
Governance inference from authority count and voting edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from solproof.analysis.call_graph import has_action
from solproof.analysis.models import AuthorityInsight, CallGraph, GovernanceProfile, TransactionKind


@dataclass(frozen=True)
class GovernancePolicy:
    decentralized_trust: int = 70
    centralized_trust: int = 50
    voting_bonus: int = 10
    max_trust: int = 100


DEFAULT_GOVERNANCE_POLICY = GovernancePolicy()


def neutral_governance() -> GovernanceProfile:
    return GovernanceProfile(type="Unknown", trust_score=50, computed=False)


def infer_governance(
    authorities: Sequence[AuthorityInsight],
    graph: CallGraph,
    policy: GovernancePolicy = DEFAULT_GOVERNANCE_POLICY,
) -> GovernanceProfile:
    """Decentralized iff more than one authority; +10 trust when a governance edge exists."""
    details: list[str] = []
    if len(authorities) > 1:
        gov_type = "Decentralized"
        trust = policy.decentralized_trust
        details.append("Multiple authorities detected")
    else:
        gov_type = "Centralized"
        trust = policy.centralized_trust
        details.append("Single authority detected")
    if has_action(graph, TransactionKind.GOVERNANCE.value):
        trust += policy.voting_bonus
        details.append("Voting interactions observed")
    return GovernanceProfile(type=gov_type, trust_score=min(policy.max_trust, trust), details=tuple(details))
