"""
Data models for chain data consumed by the analysis pipeline.

AccountInfo, Instruction and Transaction are immutable snapshots built by the
data source adapter (see parser.py); the pipeline never mutates them.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(frozen=True)
class AccountInfo:
    """Account snapshot at fetch time (getAccountInfo)."""

    lamports: int
    owner: str
    executable: bool
    data: bytes = b""

    @property
    def balance_sol(self) -> float:
        return self.lamports / LAMPORTS_PER_SOL

    @classmethod
    def from_rpc_value(cls, value: dict[str, Any]) -> "AccountInfo":
        """Build from a getAccountInfo result value (encoding=base64)."""
        raw = value.get("data") or b""
        if isinstance(raw, list) and raw:
            data = base64.b64decode(raw[0]) if raw[0] else b""
        elif isinstance(raw, str):
            data = base64.b64decode(raw) if raw else b""
        else:
            data = b""
        return cls(
            lamports=int(value.get("lamports") or 0),
            owner=str(value.get("owner") or ""),
            executable=bool(value.get("executable")),
            data=data,
        )


@dataclass(frozen=True)
class ParsedInstruction:
    """jsonParsed instruction payload: {type, info}."""

    type: str
    info: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "info", MappingProxyType(dict(self.info)))


@dataclass(frozen=True)
class Instruction:
    """
    One instruction of a transaction.

    accounts order is significant: index 0 is treated as source and index 1
    as destination for flow and call graph inference (a heuristic, not a
    protocol guarantee).
    """

    program_id: str
    accounts: tuple[str, ...] = ()
    parsed: ParsedInstruction | None = None

    @property
    def parsed_type(self) -> str | None:
        return self.parsed.type if self.parsed is not None else None

    @property
    def parsed_info(self) -> Mapping[str, Any]:
        return self.parsed.info if self.parsed is not None else MappingProxyType({})

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"programId": self.program_id, "accounts": list(self.accounts)}
        if self.parsed is not None:
            out["parsed"] = {"type": self.parsed.type, "info": dict(self.parsed.info)}
        return out


@dataclass(frozen=True)
class Transaction:
    """
    Transaction snapshot. instructions is ordered (edge direction depends on it).

    volume_sol is the first account's balance delta in SOL and fee_sol the
    fee paid; both are filled by the parser.
    """

    signature: str
    slot: int
    block_time: int | None
    instructions: tuple[Instruction, ...] = ()
    volume_sol: float = 0.0
    fee_sol: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "slot": self.slot,
            "blockTime": self.block_time,
            "instructions": [ix.to_dict() for ix in self.instructions],
            "volumeSOL": self.volume_sol,
            "feeSOL": self.fee_sol,
        }


@dataclass(frozen=True)
class TokenMetadata:
    """Mint metadata; neutral() is returned when the mint cannot be resolved."""

    mint: str
    name: str = "Unknown"
    supply: str = "Unknown"
    decimals: int = 9
    mint_authority: str | None = None
    freeze_authority: str | None = None

    @classmethod
    def neutral(cls, mint: str | None) -> "TokenMetadata":
        return cls(mint=mint or "None", name="Unknown" if mint else "None")

    def to_dict(self) -> dict[str, Any]:
        return {
            "mint": self.mint,
            "name": self.name,
            "supply": self.supply,
            "decimals": self.decimals,
            "mintAuthority": self.mint_authority,
            "freezeAuthority": self.freeze_authority,
        }
