"""
Economic aggregation over classified transactions.

Pure reduction: volume, fee and volatility statistics, per-kind counts,
suspicious (non-standard) volume and token flow aggregation with
concentration-risk detection. Token decimals are resolved beforehand by
resolve_token_decimals() so aggregate_economics() does no I/O.
"""

from __future__ import annotations

import asyncio
import statistics
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from solproof.analysis.models import (
    ClassifiedTransaction,
    EconomicProfile,
    TokenFlow,
    TokenFlows,
    TransactionKind,
    TypeStats,
    Volatility,
)
from solproof.analysis.transaction_classifier import TOKEN_PROGRAM_ID
from solproof.chain.source import ChainDataSource
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

SOL_MINT = "SOL"
GOVERNANCE_MINT = "GOVERNANCE"
UNKNOWN_MINT = "Unknown"
DEFAULT_DECIMALS = 9


@dataclass(frozen=True)
class EconomicPolicy:
    """
    Pinned thresholds for economic aggregation.

    high_volatility: stddev > volatility_ratio * mean.
    concentration_risk: largest outflow > concentration_ratio * total outflow.
    """

    volatility_ratio: float = 0.5
    concentration_ratio: float = 0.8
    top_flows: int = 5
    token_program_id: str = TOKEN_PROGRAM_ID
    token_transfer_types: frozenset[str] = frozenset({"transfer", "transferChecked"})


DEFAULT_ECONOMIC_POLICY = EconomicPolicy()


@dataclass(frozen=True)
class _RawFlow:
    source: str
    destination: str
    amount: float
    mint: str
    flow_type: str


def neutral_economic_profile() -> EconomicProfile:
    """Zero-valued profile used when transactions could not be aggregated."""
    return EconomicProfile(
        by_type={k: TypeStats() for k in TransactionKind},
        computed=False,
    )


def _raw_token_amount(info: dict[str, Any]) -> float:
    amount = info.get("amount")
    if amount is None and isinstance(info.get("tokenAmount"), dict):
        amount = info["tokenAmount"].get("amount")
    try:
        return float(amount)
    except (TypeError, ValueError):
        return 0.0


def collect_token_mints(
    classified: Iterable[ClassifiedTransaction],
    policy: EconomicPolicy = DEFAULT_ECONOMIC_POLICY,
) -> list[str]:
    """Distinct mints referenced by token transfer instructions, in first-seen order."""
    mints: dict[str, None] = {}
    for ctx in classified:
        for ix in ctx.transaction.instructions:
            if ix.program_id == policy.token_program_id and ix.parsed_type in policy.token_transfer_types:
                mint = ix.parsed_info.get("mint")
                if mint and mint not in (SOL_MINT, GOVERNANCE_MINT):
                    mints[str(mint)] = None
    return list(mints)


async def resolve_token_decimals(source: ChainDataSource, mints: Iterable[str]) -> dict[str, int]:
    """Fetch decimals for each mint concurrently; unresolved mints get the default (9)."""
    mint_list = list(dict.fromkeys(mints))
    if not mint_list:
        return {}
    results = await asyncio.gather(
        *(source.get_token_metadata(m) for m in mint_list), return_exceptions=True
    )
    decimals: dict[str, int] = {}
    for mint, meta in zip(mint_list, results):
        if isinstance(meta, Exception):
            logger.warning("token_decimals_failed", mint=mint, error=str(meta))
            decimals[mint] = DEFAULT_DECIMALS
            continue
        decimals[mint] = meta.decimals if isinstance(meta.decimals, int) else DEFAULT_DECIMALS
    return decimals


def _instruction_flows(
    ctx: ClassifiedTransaction,
    program_address: str,
    decimals: Mapping[str, int],
    policy: EconomicPolicy,
) -> list[_RawFlow]:
    flows: list[_RawFlow] = []
    tx = ctx.transaction
    for ix in tx.instructions:
        info = ix.parsed_info
        flow: _RawFlow | None = None
        if ix.program_id == policy.token_program_id and ix.parsed_type in policy.token_transfer_types:
            mint = str(info.get("mint") or UNKNOWN_MINT)
            scale = 10 ** decimals.get(mint, DEFAULT_DECIMALS)
            flow = _RawFlow(
                source=info.get("source") or "",
                destination=info.get("destination") or "",
                amount=_raw_token_amount(info) / scale,
                mint=mint,
                flow_type="transfer",
            )
        elif ctx.kind in (TransactionKind.SWAP, TransactionKind.CUSTOM) and len(ix.accounts) >= 2:
            flow = _RawFlow(
                source=ix.accounts[0],
                destination=ix.accounts[1],
                amount=tx.volume_sol or 1.0,
                mint=str(info.get("mint") or SOL_MINT),
                flow_type="swap",
            )
        elif ctx.kind is TransactionKind.GOVERNANCE and len(ix.accounts) >= 1:
            flow = _RawFlow(
                source=ix.accounts[0],
                destination=program_address,
                amount=1.0,
                mint=GOVERNANCE_MINT,
                flow_type="vote",
            )
        elif ctx.kind is TransactionKind.NFT_MINT and info.get("mint"):
            flow = _RawFlow(
                source=program_address,
                destination=info.get("mintAuthority") or (ix.accounts[0] if ix.accounts else ""),
                amount=1.0,
                mint=str(info["mint"]),
                flow_type="nft_mint",
            )
        if flow is not None and flow.source and flow.destination:
            flows.append(flow)
    return flows


def aggregate_flows(flows: Iterable[tuple[str, str, str, float]]) -> list[TokenFlow]:
    """
    Group (account, mint, flow_type, amount) by key, sum amount and count.
    Sorted by amount descending; ties keep first-seen order.
    """
    grouped: dict[tuple[str, str, str], list[float]] = {}
    for account, mint, flow_type, amount in flows:
        grouped.setdefault((account, mint, flow_type), []).append(amount)
    out = [
        TokenFlow(account=k[0], mint=k[1], flow_type=k[2], amount=sum(v), tx_count=len(v))
        for k, v in grouped.items()
    ]
    out.sort(key=lambda f: f.amount, reverse=True)
    return out


def analyze_token_flows(
    classified: list[ClassifiedTransaction],
    program_address: str,
    decimals: Mapping[str, int] | None = None,
    policy: EconomicPolicy = DEFAULT_ECONOMIC_POLICY,
) -> TokenFlows:
    """Inflows/outflows relative to program_address, top N each, plus concentration risk."""
    dec = decimals or {}
    inflows: list[tuple[str, str, str, float]] = []
    outflows: list[tuple[str, str, str, float]] = []
    for ctx in classified:
        for f in _instruction_flows(ctx, program_address, dec, policy):
            if f.source == program_address:
                outflows.append((f.destination, f.mint, f.flow_type, f.amount))
            elif f.destination == program_address:
                inflows.append((f.source, f.mint, f.flow_type, f.amount))

    all_out = aggregate_flows(outflows)
    all_in = aggregate_flows(inflows)
    total_out = sum(f.amount for f in all_out)
    concentration = bool(all_out) and all_out[0].amount > policy.concentration_ratio * total_out
    return TokenFlows(
        top_inflows=tuple(all_in[: policy.top_flows]),
        top_outflows=tuple(all_out[: policy.top_flows]),
        concentration_risk=concentration,
    )


def volume_volatility(volumes: list[float], policy: EconomicPolicy = DEFAULT_ECONOMIC_POLICY) -> Volatility:
    """Mean and population stddev of per-transaction volume."""
    if not volumes:
        return Volatility()
    mean = statistics.fmean(volumes)
    stddev = statistics.pstdev(volumes)
    return Volatility(mean=mean, stddev=stddev, high_volatility=stddev > policy.volatility_ratio * mean)


def aggregate_economics(
    classified: list[ClassifiedTransaction],
    program_address: str,
    decimals: Mapping[str, int] | None = None,
    policy: EconomicPolicy = DEFAULT_ECONOMIC_POLICY,
) -> EconomicProfile:
    """
    Reduce classified transactions into an EconomicProfile.

    Every TransactionKind appears in by_type (zero when absent). An empty
    list yields zeros with average_fee_sol 0.
    """
    volumes = [c.transaction.volume_sol for c in classified]
    fees = [c.transaction.fee_sol for c in classified]
    by_type: dict[TransactionKind, TypeStats] = {}
    for kind in TransactionKind:
        members = [c for c in classified if c.kind is kind]
        by_type[kind] = TypeStats(
            count=len(members),
            volume_sol=sum(c.transaction.volume_sol for c in members),
        )
    profile = EconomicProfile(
        total_volume_sol=sum(volumes),
        average_fee_sol=(sum(fees) / len(fees)) if fees else 0.0,
        transaction_count=len(classified),
        by_type=by_type,
        suspicious_volume_sol=sum(c.transaction.volume_sol for c in classified if c.non_standard),
        token_flows=analyze_token_flows(classified, program_address, decimals, policy),
        volatility=volume_volatility(volumes, policy),
    )
    logger.debug(
        "economics_aggregated",
        program=program_address,
        transaction_count=profile.transaction_count,
        total_volume_sol=round(profile.total_volume_sol, 6),
        suspicious_volume_sol=round(profile.suspicious_volume_sol, 6),
        concentration_risk=profile.token_flows.concentration_risk,
    )
    return profile
