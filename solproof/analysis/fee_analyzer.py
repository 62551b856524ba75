"""
Fee spike detection over the fetched transaction window.
"""

from __future__ import annotations

from typing import Sequence

from solproof.analysis.models import ClassifiedTransaction, FeeAnalysis, FeeSpike

FEE_SPIKE_MULTIPLIER = 3.0


def analyze_fees(
    classified: Sequence[ClassifiedTransaction],
    multiplier: float = FEE_SPIKE_MULTIPLIER,
) -> FeeAnalysis:
    """Flag transactions whose fee exceeds multiplier x the mean fee."""
    fees = [(c.transaction.signature, c.transaction.fee_sol) for c in classified]
    if not fees:
        return FeeAnalysis()
    average = sum(f for _, f in fees) / len(fees)
    threshold = average * multiplier
    spikes = tuple(
        FeeSpike(
            signature=sig,
            fee_sol=fee,
            details=f"Fee {fee:.6f} SOL exceeds average ({average:.6f} SOL)",
        )
        for sig, fee in fees
        if fee > threshold
    )
    return FeeAnalysis(
        total_transactions=len(fees),
        average_fee_sol=average,
        spike_threshold_sol=threshold,
        spikes=spikes,
    )
