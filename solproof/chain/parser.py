"""
Solana RPC payload parser: jsonParsed responses to chain models.

Parses getTransaction (encoding=jsonParsed) results into Transaction and
getAccountInfo mint accounts into TokenMetadata. Purely structural; no
classification or scoring. Returns None for payloads it cannot read.
"""

from __future__ import annotations

from typing import Any

from solproof.chain.models import (
    LAMPORTS_PER_SOL,
    Instruction,
    ParsedInstruction,
    TokenMetadata,
    Transaction,
)
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)


def balance_delta_sol(pre_balances: list[int], post_balances: list[int]) -> float:
    """
    abs(pre[0] - post[0]) in SOL.

    Only the first account (fee payer) is considered, so multi-hop transfers
    can be misattributed.
    """
    if not pre_balances or not post_balances:
        return 0.0
    try:
        return abs(int(pre_balances[0]) - int(post_balances[0])) / LAMPORTS_PER_SOL
    except (TypeError, ValueError):
        return 0.0


def _account_keys(message: dict[str, Any]) -> list[str]:
    """Resolve accountKeys to base58 strings (json vs jsonParsed)."""
    keys = message.get("accountKeys") or []
    out: list[str] = []
    for k in keys:
        if isinstance(k, str):
            out.append(k)
        elif isinstance(k, dict) and k.get("pubkey"):
            out.append(str(k["pubkey"]))
    return out


def parse_instruction(raw: dict[str, Any], account_keys: list[str] | None = None) -> Instruction | None:
    """
    Parse one instruction. Handles jsonParsed (programId, parsed/accounts) and
    raw json (programIdIndex, account indices) shapes.
    """
    if not isinstance(raw, dict):
        return None
    keys = account_keys or []
    program_id = raw.get("programId")
    if program_id is None and raw.get("programIdIndex") is not None:
        idx = raw["programIdIndex"]
        if isinstance(idx, int) and 0 <= idx < len(keys):
            program_id = keys[idx]
    if not program_id:
        return None

    accounts: list[str] = []
    for acc in raw.get("accounts") or []:
        if isinstance(acc, str):
            accounts.append(acc)
        elif isinstance(acc, int) and 0 <= acc < len(keys):
            accounts.append(keys[acc])

    parsed = None
    parsed_raw = raw.get("parsed")
    if isinstance(parsed_raw, dict) and parsed_raw.get("type"):
        info = parsed_raw.get("info")
        parsed = ParsedInstruction(type=str(parsed_raw["type"]), info=info if isinstance(info, dict) else {})

    return Instruction(program_id=str(program_id), accounts=tuple(accounts), parsed=parsed)


def parse_transaction(raw: dict[str, Any], signature: str | None = None) -> Transaction | None:
    """
    Parse a getTransaction result. Returns None when transaction.message is
    missing. volume_sol / fee_sol come from meta; absent meta yields zeros.
    """
    if not isinstance(raw, dict):
        return None
    tx_obj = raw.get("transaction")
    if not isinstance(tx_obj, dict):
        return None
    message = tx_obj.get("message")
    if not isinstance(message, dict):
        return None

    sig = signature
    if sig is None:
        sigs = tx_obj.get("signatures") or []
        sig = str(sigs[0]) if sigs else ""

    keys = _account_keys(message)
    instructions: list[Instruction] = []
    for ix_raw in message.get("instructions") or []:
        ix = parse_instruction(ix_raw, keys)
        if ix is not None:
            instructions.append(ix)

    meta = raw.get("meta") if isinstance(raw.get("meta"), dict) else {}
    fee_lamports = meta.get("fee") or 0
    try:
        fee_sol = int(fee_lamports) / LAMPORTS_PER_SOL
    except (TypeError, ValueError):
        fee_sol = 0.0

    return Transaction(
        signature=sig,
        slot=int(raw.get("slot") or 0),
        block_time=raw.get("blockTime"),
        instructions=tuple(instructions),
        volume_sol=balance_delta_sol(meta.get("preBalances") or [], meta.get("postBalances") or []),
        fee_sol=fee_sol,
    )


def parse_mint_account(mint: str, value: dict[str, Any] | None) -> TokenMetadata:
    """
    Parse a jsonParsed SPL mint account into TokenMetadata.
    Unreadable payloads return the neutral metadata for the mint.
    """
    if not isinstance(value, dict):
        return TokenMetadata.neutral(mint)
    data = value.get("data")
    parsed = data.get("parsed") if isinstance(data, dict) else None
    info = parsed.get("info") if isinstance(parsed, dict) else None
    if not isinstance(info, dict):
        return TokenMetadata.neutral(mint)
    try:
        decimals = int(info.get("decimals", 9))
    except (TypeError, ValueError):
        decimals = 9
    supply_raw = info.get("supply")
    supply = "Unknown"
    if supply_raw is not None:
        try:
            supply = str(int(supply_raw) / (10 ** decimals))
        except (TypeError, ValueError):
            logger.debug("mint_supply_unparsed", mint=mint, supply=supply_raw)
    return TokenMetadata(
        mint=mint,
        name="Unknown",
        supply=supply,
        decimals=decimals,
        mint_authority=info.get("mintAuthority"),
        freeze_authority=info.get("freezeAuthority"),
    )
