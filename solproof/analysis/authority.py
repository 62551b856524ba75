"""
Authority profiling: balance and wallet age per candidate authority.

token_mint_count is left as None: mint counting is not computed and a 0
would read as a measured value.
"""

from __future__ import annotations

import asyncio
import time
from typing import Iterable

from solproof.analysis.models import AuthorityInsight
from solproof.chain.models import LAMPORTS_PER_SOL
from solproof.chain.source import ChainDataSource
from solproof.solproof_logging import get_logger
from solproof.utils import is_valid_address

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


def valid_authorities(candidates: Iterable[str | None]) -> list[str]:
    """Deduplicate (first-seen order) and drop syntactically invalid addresses."""
    out: dict[str, None] = {}
    for c in candidates:
        if c and is_valid_address(c):
            out.setdefault(c.strip(), None)
    return list(out)


def wallet_age_days(block_time: int | None, now: float) -> int:
    """floor((now - block_time) / 86400); 0 without history or for future times."""
    if block_time is None:
        return 0
    return max(0, int((now - block_time) // SECONDS_PER_DAY))


async def profile_authority(source: ChainDataSource, authority: str, now: float) -> AuthorityInsight:
    account, txs = await asyncio.gather(
        source.get_account(authority),
        source.get_transactions(authority, 1),
    )
    balance = (account.lamports / LAMPORTS_PER_SOL) if account is not None else 0.0
    last_time = txs[0].block_time if txs else None
    return AuthorityInsight(
        authority=authority,
        total_sol_withdrawn=balance,
        wallet_age_days=wallet_age_days(last_time, now),
        token_mint_count=None,
    )


async def analyze_authorities(
    source: ChainDataSource,
    candidates: Iterable[str | None],
    now: float | None = None,
) -> list[AuthorityInsight]:
    """
    Profile each valid candidate authority concurrently.

    Returns insights in candidate order. Fetch errors propagate to the stage
    boundary, which degrades the whole section.
    """
    ts = time.time() if now is None else now
    authorities = valid_authorities(candidates)
    if not authorities:
        return []
    insights = await asyncio.gather(*(profile_authority(source, a, ts) for a in authorities))
    logger.debug("authorities_profiled", count=len(insights))
    return list(insights)
