"""
Instruction-level deep dive: parsed-type frequency plus two anomaly rules.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from solproof.analysis.models import (
    Anomaly,
    BinaryProfile,
    ClassifiedTransaction,
    DeepDiveResult,
    EconomicProfile,
)

DORMANT_MIN_INSTRUCTIONS = 1000
DORMANT_MAX_TRANSACTIONS = 10
OTHERS_RATIO = 0.3


def deep_dive(
    profile: BinaryProfile,
    classified: Sequence[ClassifiedTransaction],
    economics: EconomicProfile,
) -> DeepDiveResult:
    frequency: Counter[str] = Counter()
    for ctx in classified:
        for ix in ctx.transaction.instructions:
            frequency[ix.parsed_type or "unknown"] += 1

    anomalies: list[Anomaly] = []
    if (
        profile.instruction_count_estimate > DORMANT_MIN_INSTRUCTIONS
        and economics.transaction_count < DORMANT_MAX_TRANSACTIONS
    ):
        anomalies.append(Anomaly(
            issue="High instruction count with low activity",
            details="May indicate dormant or complex logic",
        ))
    if economics.others.count > economics.transaction_count * OTHERS_RATIO:
        anomalies.append(Anomaly(
            issue="High non-standard transactions",
            details="May indicate hidden logic",
        ))
    return DeepDiveResult(instruction_frequency=dict(frequency), anomalies=tuple(anomalies))
