"""
Rule-based vulnerability scanning over the binary profile.

Each rule is independent: it returns one VulnerabilityFinding or None. Rules
are evaluated in isolation so a failing rule is logged and skipped without
blocking the others. Output order follows the rule table; callers must not
depend on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from solproof.analysis.models import BinaryProfile, Severity, VulnerabilityFinding
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanPolicy:
    """Thresholds used by the scanner rules."""

    complexity_threshold: int = 70
    """branches + loops above this triggers High Control-Flow Complexity."""


DEFAULT_SCAN_POLICY = ScanPolicy()

Rule = Callable[[BinaryProfile, ScanPolicy], VulnerabilityFinding | None]


def _single_authority(profile: BinaryProfile) -> bool:
    return len(profile.candidate_authorities) == 1


def _check_privileged_mint_authority(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if not (profile.hidden_mint_signal and _single_authority(profile)):
        return None
    return VulnerabilityFinding(
        type="Privileged Mint Authority",
        severity=Severity.CRITICAL,
        details=(
            f"Mint logic present and controlled by a single authority "
            f"({profile.candidate_authorities[0]})"
        ),
        confidence=55,
        mitigation="Move mint authority to a multisig or revoke it",
    )


def _check_unchecked_minting(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if not profile.hidden_mint_signal:
        return None
    return VulnerabilityFinding(
        type="Unchecked Minting",
        severity=Severity.HIGH,
        details="Mint marker found in program binary; minting constraints could not be verified",
        confidence=60,
        mitigation="Verify minting constraints and supply caps",
    )


def _check_reentrancy(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if profile.reentrancy_risk.rank < Severity.MODERATE.rank:
        return None
    return VulnerabilityFinding(
        type="Reentrancy",
        severity=Severity.MODERATE,
        details=(
            f"Large program ({profile.instruction_count_estimate} estimated instructions) "
            f"with {profile.reentrancy_risk.value} reentrancy risk"
        ),
        confidence=50,
        mitigation="Review cross-program invocation ordering and state updates",
    )


def _check_unverified_cpi(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if "sol_invoke" not in profile.syscalls or "sol_verify_signature" in profile.syscalls:
        return None
    return VulnerabilityFinding(
        type="Unverified Cross-Program Invocation",
        severity=Severity.MODERATE,
        details="sol_invoke used without signature verification",
        confidence=40,
        mitigation="Check signer and program id of every invoked program",
    )


def _check_centralized_upgrade_authority(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if not _single_authority(profile):
        return None
    return VulnerabilityFinding(
        type="Centralized Upgrade Authority",
        severity=Severity.MODERATE,
        details=f"Program upgrades controlled by a single key ({profile.candidate_authorities[0]})",
        confidence=70,
        mitigation="Use a multisig or governance-controlled upgrade authority",
    )


def _check_manual_memory(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if "sol_alloc_free" not in profile.syscalls:
        return None
    return VulnerabilityFinding(
        type="Manual Memory Management",
        severity=Severity.LOW,
        details="sol_alloc_free syscall signature present",
        confidence=30,
        mitigation="Review heap usage for out-of-bounds access",
    )


def _check_unknown_serialization(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    if profile.uses_borsh or profile.byte_length == 0:
        return None
    return VulnerabilityFinding(
        type="Unknown Serialization",
        severity=Severity.LOW,
        details="No borsh marker found; account data layout is unknown",
        confidence=25,
        mitigation="Publish an IDL or verify account deserialization",
    )


def _check_control_flow_complexity(profile: BinaryProfile, policy: ScanPolicy) -> VulnerabilityFinding | None:
    total = profile.control_flow.total
    if total <= policy.complexity_threshold:
        return None
    return VulnerabilityFinding(
        type="High Control-Flow Complexity",
        severity=Severity.LOW,
        details=f"{total} estimated branches and loops (threshold: {policy.complexity_threshold})",
        confidence=35,
        mitigation="Prioritize manual review of complex paths",
    )


RULES: tuple[Rule, ...] = (
    _check_privileged_mint_authority,
    _check_unchecked_minting,
    _check_reentrancy,
    _check_unverified_cpi,
    _check_centralized_upgrade_authority,
    _check_manual_memory,
    _check_unknown_serialization,
    _check_control_flow_complexity,
)


def scan_vulnerabilities(
    profile: BinaryProfile,
    policy: ScanPolicy | None = None,
    rules: tuple[Rule, ...] = RULES,
) -> list[VulnerabilityFinding]:
    """
    Run every rule against the profile and return the findings that fired.

    Never raises: a rule that errors is logged (vulnerability_rule_failed)
    and skipped.
    """
    cfg = policy or DEFAULT_SCAN_POLICY
    findings: list[VulnerabilityFinding] = []
    for rule in rules:
        try:
            finding = rule(profile, cfg)
            if finding is not None:
                findings.append(finding)
        except Exception as e:
            logger.warning(
                "vulnerability_rule_failed",
                program=profile.address,
                rule=getattr(rule, "__name__", repr(rule)),
                error=str(e),
            )
    logger.debug("vulnerabilities_scanned", program=profile.address, findings=len(findings))
    return findings
