"""
Flat risk list: one entry per vulnerability finding plus binary-level
reentrancy and instruction-count entries.
"""

from __future__ import annotations

from typing import Sequence

from solproof.analysis.models import AssessedRisk, BinaryProfile, Severity, VulnerabilityFinding

HIGH_INSTRUCTION_COUNT = 1000


def assess_risks(
    profile: BinaryProfile,
    vulnerabilities: Sequence[VulnerabilityFinding],
) -> tuple[AssessedRisk, ...]:
    risks = [
        AssessedRisk(
            issue=f"Vulnerability: {v.type}",
            implication=v.details,
            mitigation=f"Address {v.severity.value} issue",
        )
        for v in vulnerabilities
    ]
    if profile.reentrancy_risk.rank >= Severity.MODERATE.rank:
        risks.append(AssessedRisk(
            issue="Potential reentrancy risk",
            implication="May allow unauthorized state changes",
            mitigation="Audit for reentrancy guards",
        ))
    if profile.instruction_count_estimate > HIGH_INSTRUCTION_COUNT:
        risks.append(AssessedRisk(
            issue="High instruction count",
            implication="Increased complexity may hide bugs",
            mitigation="Conduct deep dive analysis",
        ))
    return tuple(risks)
