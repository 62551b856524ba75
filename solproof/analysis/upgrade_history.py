"""
Program upgrade events found in the fetched transaction window.
"""

from __future__ import annotations

from typing import Sequence

from solproof.analysis.models import ClassifiedTransaction, UpgradeEvent
from solproof.analysis.program_fetcher import BPF_LOADER_UPGRADEABLE_ID
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

UPGRADE_PARSED_TYPE = "upgrade"


def upgrade_history(
    classified: Sequence[ClassifiedTransaction],
    loader_id: str = BPF_LOADER_UPGRADEABLE_ID,
) -> tuple[UpgradeEvent, ...]:
    """Transactions carrying a loader 'upgrade' instruction, in window order."""
    events = tuple(
        UpgradeEvent(signature=ctx.transaction.signature, timestamp=ctx.transaction.block_time)
        for ctx in classified
        if any(
            ix.program_id == loader_id and ix.parsed_type == UPGRADE_PARSED_TYPE
            for ix in ctx.transaction.instructions
        )
    )
    if events:
        logger.info("program_upgrades_found", count=len(events), latest=events[0].signature)
    return events
