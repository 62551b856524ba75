"""
Transaction fetch (bounded retry, timeframe window) and classification.

Classification precedence, first match wins:

    governance > token (transfer/mint/burn) > swap venue > nft > custom > unknown

A transaction touching both the token program and a swap venue is a token
sub-type when the token instruction has a recognized parsed type. The order
is a fixed policy choice.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping

from solproof.analysis.models import ClassifiedTransaction, TransactionKind, freeze_mapping
from solproof.chain.models import Transaction
from solproof.chain.retry import call_with_retry
from solproof.chain.source import ChainDataSource
from solproof.config import FetchConfig
from solproof.core.exceptions import InputValidationError, TransientFetchError
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
RAYDIUM_AMM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
PUMP_FUN_AMM_ID = "pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA"
METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
GOVERNANCE_PROGRAM_IDS = frozenset({
    "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw",
    "SMPLecHpvtyTWca6gwQLoCFN33w41rmatZTxM4W3fS7",
})

_TIMEFRAME_RE = re.compile(r"^\s*(\d+)\s*([smhdw])\s*$", re.IGNORECASE)
_TIMEFRAME_UNIT_SEC = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def _default_token_subtypes() -> dict[str, TransactionKind]:
    return {
        "transfer": TransactionKind.TRANSFER,
        "transferChecked": TransactionKind.TRANSFER,
        "mint": TransactionKind.MINT,
        "mintTo": TransactionKind.MINT,
        "mintToChecked": TransactionKind.MINT,
        "burn": TransactionKind.BURN,
        "burnChecked": TransactionKind.BURN,
    }


@dataclass(frozen=True)
class ClassificationPolicy:
    """Program ids and parsed types recognized by classify_transaction."""

    governance_program_ids: frozenset[str] = GOVERNANCE_PROGRAM_IDS
    governance_parsed_types: frozenset[str] = frozenset({"createProposal", "vote"})
    token_program_id: str = TOKEN_PROGRAM_ID
    token_subtypes: Mapping[str, TransactionKind] = field(default_factory=_default_token_subtypes, hash=False)
    """Token parsed type to kind; unlisted types fall through to the next rule."""
    swap_program_ids: frozenset[str] = frozenset({RAYDIUM_AMM_ID, PUMP_FUN_AMM_ID})
    nft_program_ids: frozenset[str] = frozenset({METADATA_PROGRAM_ID})
    nft_parsed_types: frozenset[str] = frozenset({"mintNFT"})
    self_program_is_swap: bool = True
    """When True an invocation of the analyzed program counts as a swap, so custom is never reached."""

    def __post_init__(self) -> None:
        freeze_mapping(self, "token_subtypes")

    def subtype(self, parsed_type: str | None) -> TransactionKind | None:
        if parsed_type is None:
            return None
        return self.token_subtypes.get(parsed_type)


DEFAULT_CLASSIFICATION_POLICY = ClassificationPolicy()


def is_non_standard(tx: Transaction, policy: ClassificationPolicy = DEFAULT_CLASSIFICATION_POLICY) -> bool:
    """True when the transaction has no token-program instruction."""
    return not any(ix.program_id == policy.token_program_id for ix in tx.instructions)


def classify_transaction(
    tx: Transaction,
    program_address: str,
    policy: ClassificationPolicy = DEFAULT_CLASSIFICATION_POLICY,
) -> TransactionKind:
    """Return the transaction kind using the fixed precedence order."""
    ixs = tx.instructions
    if not ixs:
        return TransactionKind.UNKNOWN

    if any(
        ix.program_id in policy.governance_program_ids or ix.parsed_type in policy.governance_parsed_types
        for ix in ixs
    ):
        return TransactionKind.GOVERNANCE

    token_ix = next((ix for ix in ixs if ix.program_id == policy.token_program_id), None)
    if token_ix is not None:
        kind = policy.subtype(token_ix.parsed_type)
        if kind is not None:
            return kind

    swap_ids = policy.swap_program_ids
    if policy.self_program_is_swap:
        swap_ids = swap_ids | {program_address}
    if any(ix.program_id in swap_ids for ix in ixs):
        return TransactionKind.SWAP

    if any(ix.program_id in policy.nft_program_ids or ix.parsed_type in policy.nft_parsed_types for ix in ixs):
        return TransactionKind.NFT_MINT

    if any(ix.program_id == program_address for ix in ixs):
        return TransactionKind.CUSTOM

    return TransactionKind.UNKNOWN


def classify_transactions(
    transactions: Iterable[Transaction],
    program_address: str,
    policy: ClassificationPolicy = DEFAULT_CLASSIFICATION_POLICY,
) -> list[ClassifiedTransaction]:
    """Classify in input order."""
    return [
        ClassifiedTransaction(
            transaction=tx,
            kind=classify_transaction(tx, program_address, policy),
            non_standard=is_non_standard(tx, policy),
        )
        for tx in transactions
    ]


def parse_timeframe(timeframe: str | None) -> int | None:
    """
    Window length in seconds for '30m', '24h', '7d', '2w', '45s'.
    'all' or empty means no window (None). Raises InputValidationError otherwise.
    """
    if timeframe is None or timeframe.strip().lower() in ("", "all"):
        return None
    m = _TIMEFRAME_RE.match(timeframe)
    if not m:
        raise InputValidationError(f"Invalid timeframe: {timeframe!r}", value=timeframe)
    return int(m.group(1)) * _TIMEFRAME_UNIT_SEC[m.group(2).lower()]


def filter_timeframe(transactions: list[Transaction], timeframe: str | None, now: float) -> list[Transaction]:
    """Drop transactions older than now - timeframe; keep those with no block_time."""
    window = parse_timeframe(timeframe)
    if window is None:
        return list(transactions)
    cutoff = now - window
    return [tx for tx in transactions if tx.block_time is None or tx.block_time >= cutoff]


async def fetch_recent_transactions(
    source: ChainDataSource,
    address: str,
    config: FetchConfig | None = None,
    *,
    now: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[Transaction]:
    """
    Fetch up to config.limit recent transactions with bounded retry and
    apply the timeframe window.

    Only TransientFetchError is retried, per config.retry_delays_sec (6
    attempts with the default schedule); exhaustion raises TransientFetchError.
    RpcResponseError and InputValidationError propagate without retry.
    """
    cfg = config or FetchConfig()
    window_now = time.time() if now is None else now
    parse_timeframe(cfg.timeframe)
    txs = await call_with_retry(
        source.get_transactions,
        address,
        cfg.limit,
        delays=cfg.retry_delays_sec,
        sleep=sleep,
        operation="get_transactions",
    )
    kept = filter_timeframe(list(txs or []), cfg.timeframe, window_now)
    logger.info(
        "transactions_loaded",
        program=address,
        fetched=len(txs or []),
        kept=len(kept),
        timeframe=cfg.timeframe,
    )
    return kept


async def get_recent_transactions(
    source: ChainDataSource,
    address: str,
    config: FetchConfig | None = None,
    *,
    now: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[Transaction]:
    """
    fetch_recent_transactions, but exhausted retries log a warning and
    return []: "no data" is a valid outcome for callers outside the pipeline.
    """
    try:
        return await fetch_recent_transactions(source, address, config, now=now, sleep=sleep)
    except TransientFetchError as e:
        logger.warning("transactions_unavailable", program=address, error=str(e))
        return []


async def fetch_and_classify(
    source: ChainDataSource,
    address: str,
    config: FetchConfig | None = None,
    *,
    policy: ClassificationPolicy = DEFAULT_CLASSIFICATION_POLICY,
    now: float | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> list[ClassifiedTransaction]:
    """
    fetch_recent_transactions followed by classify_transactions.

    Fetch errors propagate so the transactions stage is marked degraded
    instead of looking like an empty but computed window.
    """
    txs = await fetch_recent_transactions(source, address, config, now=now, sleep=sleep)
    return classify_transactions(txs, address, policy)
