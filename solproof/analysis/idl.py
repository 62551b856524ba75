"""
Pseudo-IDL from observed traffic.

Each of the first few fetched transactions becomes one instruction entry
whose args are the parsed types of its instructions. Useful as a starting
point when a program publishes no IDL; it says nothing about real argument
layouts.
"""

from __future__ import annotations

from typing import Sequence

from solproof.analysis.models import (
    BinaryProfile,
    ClassifiedTransaction,
    IdlArg,
    IdlInstruction,
    ProgramIdl,
    TransactionKind,
)

MAX_IDL_INSTRUCTIONS = 5


def generate_idl(
    profile: BinaryProfile,
    classified: Sequence[ClassifiedTransaction],
    max_instructions: int = MAX_IDL_INSTRUCTIONS,
) -> ProgramIdl:
    entries = []
    for index, ctx in enumerate(classified[:max_instructions]):
        prefix = "governanceInstruction" if ctx.kind == TransactionKind.GOVERNANCE else "instruction"
        entries.append(IdlInstruction(
            name=f"{prefix}{index}",
            args=tuple(
                IdlArg(name=f"arg{i}", type=ix.parsed_type or "unknown")
                for i, ix in enumerate(ctx.transaction.instructions)
            ),
        ))
    return ProgramIdl(name=profile.suspected_type.value, instructions=tuple(entries))
