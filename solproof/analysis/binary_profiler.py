"""
Heuristic binary profiling over raw program bytes.

Byte-pattern matching only: syscall usage, instruction-count estimate,
proportional control-flow estimate, serialization and mint markers, and a
suspected program category. Not a disassembler. profile_binary() never
raises; failure yields a neutral profile with computed=False.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from solproof.analysis.models import BinaryProfile, ControlFlow, ProgramType, Severity, freeze_mapping
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

GOVERNANCE_PROGRAM_ID = "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw"


def _default_syscall_signatures() -> dict[str, bytes]:
    return {
        "sol_invoke": bytes([0x01, 0x00, 0x00]),
        "sol_verify_signature": bytes([0x02, 0x00, 0x00]),
        "sol_alloc_free": bytes([0x03, 0x00, 0x00]),
    }


@dataclass(frozen=True)
class BinaryPolicy:
    """
    Constants for binary heuristics.

    Tune these per environment; the defaults are pinned by tests.
    """

    bytes_per_instruction: int = 8
    branch_ratio: float = 0.1
    loop_ratio: float = 0.05
    reentrancy_instruction_threshold: int = 1000
    syscall_signatures: Mapping[str, bytes] = field(default_factory=_default_syscall_signatures, hash=False)
    governance_program_ids: frozenset[str] = frozenset({GOVERNANCE_PROGRAM_ID})
    borsh_marker: bytes = b"borsh"
    mint_marker: bytes = b"mint"
    amm_marker: bytes = b"swap"
    nft_marker: bytes = b"mintNFT"

    def __post_init__(self) -> None:
        freeze_mapping(self, "syscall_signatures")


DEFAULT_BINARY_POLICY = BinaryPolicy()


def detect_syscalls(data: bytes, policy: BinaryPolicy = DEFAULT_BINARY_POLICY) -> frozenset[str]:
    """Names of syscalls whose signature occurs anywhere in data."""
    return frozenset(name for name, sig in policy.syscall_signatures.items() if sig in data)


def infer_program_type(data: bytes, address: str, policy: BinaryPolicy = DEFAULT_BINARY_POLICY) -> ProgramType:
    """Governance id short-circuits; then swap marker, then mintNFT marker."""
    if address in policy.governance_program_ids:
        return ProgramType.GOVERNANCE
    if policy.amm_marker in data:
        return ProgramType.AMM
    if policy.nft_marker in data:
        return ProgramType.NFT
    return ProgramType.UNKNOWN


def neutral_profile(address: str, candidate_authorities: Iterable[str] = ()) -> BinaryProfile:
    """All-zero / unknown profile used when profiling cannot run."""
    return BinaryProfile(
        address=address,
        candidate_authorities=tuple(candidate_authorities),
        computed=False,
    )


def profile_binary(
    data: bytes | None,
    address: str,
    candidate_authorities: Iterable[str] = (),
    policy: BinaryPolicy = DEFAULT_BINARY_POLICY,
) -> BinaryProfile:
    """
    Profile raw program bytes.

    Args:
        data: Executable image (ProgramData image for upgradeable programs).
        address: Program address; used for the governance short-circuit.
        candidate_authorities: Authorities extracted from loader metadata.
        policy: Heuristic constants.

    Returns:
        BinaryProfile with instruction_count_estimate == len(data) // 8, or a
        neutral profile (computed=False) when data is unusable.
    """
    authorities = tuple(dict.fromkeys(a for a in candidate_authorities if a))
    try:
        if data is None:
            raise ValueError("no program data")
        raw = bytes(data)
        n = len(raw) // policy.bytes_per_instruction
        profile = BinaryProfile(
            address=address,
            byte_length=len(raw),
            instruction_count_estimate=n,
            syscalls=detect_syscalls(raw, policy),
            suspected_type=infer_program_type(raw, address, policy),
            control_flow=ControlFlow(
                branches=int(n * policy.branch_ratio),
                loops=int(n * policy.loop_ratio),
            ),
            reentrancy_risk=(
                Severity.MODERATE if n > policy.reentrancy_instruction_threshold else Severity.LOW
            ),
            uses_borsh=policy.borsh_marker in raw,
            hidden_mint_signal=policy.mint_marker in raw,
            candidate_authorities=authorities,
        )
    except Exception as e:
        logger.warning("binary_profile_failed", program=address, error=str(e))
        return neutral_profile(address, authorities)

    logger.debug(
        "binary_profiled",
        program=address,
        byte_length=profile.byte_length,
        instructions=profile.instruction_count_estimate,
        suspected_type=profile.suspected_type.value,
        syscalls=sorted(profile.syscalls),
    )
    return profile
