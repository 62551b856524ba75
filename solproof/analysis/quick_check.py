"""
Quick status check for a program: existence, last activity, upgradeability.

A single-shot check for callers that do not need the full audit.
"""

from __future__ import annotations

import asyncio

from solproof.analysis.models import QuickCheckResult
from solproof.analysis.program_fetcher import BPF_LOADER_UPGRADEABLE_ID, parse_program_account
from solproof.chain.source import ChainDataSource
from solproof.core.exceptions import RpcResponseError, TransientFetchError
from solproof.solproof_logging import get_logger
from solproof.utils import validate_address

logger = get_logger(__name__)

ACTIVE_SAFETY_SCORE = 60
INACTIVE_SAFETY_SCORE = 40


async def quick_check(source: ChainDataSource, address: str) -> QuickCheckResult:
    """
    Raises InputValidationError for a malformed address. Fetch failures
    return an inactive result with computed=False.
    """
    program = validate_address(address)
    try:
        account, txs = await asyncio.gather(
            source.get_account(program),
            source.get_transactions(program, 1),
        )
    except (TransientFetchError, RpcResponseError) as e:
        logger.warning("quick_check_failed", program=program, error=str(e))
        return QuickCheckResult(address=program, computed=False)

    upgradeable = account is not None and account.owner == BPF_LOADER_UPGRADEABLE_ID
    programdata = parse_program_account(account.data) if upgradeable else None
    return QuickCheckResult(
        address=program,
        active=account is not None,
        last_transaction_time=txs[0].block_time if txs else None,
        upgradeable=upgradeable,
        program_data_address=programdata,
        basic_safety_score=ACTIVE_SAFETY_SCORE if account is not None and txs else INACTIVE_SAFETY_SCORE,
    )
