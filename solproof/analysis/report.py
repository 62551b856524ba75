"""
Audit report composition.

Pure assembly of already-computed stage outputs into one immutable report:
executive summary, prioritized risks, per-section analyses and
recommendations. No new analysis happens here. compose_report() never
raises; a composition failure yields fallback_report().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from solproof import __version__
from solproof.analysis.call_graph import has_action, interaction_complexity, summarize_edges
from solproof.analysis.models import (
    AssessedRisk,
    AuthorityInsight,
    BehaviorProfile,
    BinaryProfile,
    CallGraph,
    DeepDiveResult,
    EconomicProfile,
    FeeAnalysis,
    GovernanceProfile,
    ProgramIdl,
    ProgramType,
    RiskPrediction,
    SafetyAssessment,
    Severity,
    TransactionKind,
    UpgradeEvent,
    VulnerabilityFinding,
)
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

GENERATED_BY = "SolProof"
SOLSCAN_ACCOUNT_URL = "https://solscan.io/account/{address}"
CONTROL_FLOW_HIGH_COMPLEXITY = 70

# Report grouping of transaction kinds
TRANSACTION_TYPE_GROUPS: tuple[tuple[str, tuple[TransactionKind, ...]], ...] = (
    ("swaps", (TransactionKind.SWAP,)),
    ("transfers", (TransactionKind.TRANSFER,)),
    ("mints", (TransactionKind.MINT,)),
    ("burns", (TransactionKind.BURN,)),
    ("governance", (TransactionKind.GOVERNANCE,)),
    ("nftMints", (TransactionKind.NFT_MINT,)),
    ("others", (TransactionKind.UNKNOWN, TransactionKind.CUSTOM)),
)


@dataclass(frozen=True)
class AuditReport:
    """Composed audit artifact; sections are plain JSON-ready values."""

    program_address: str
    timestamp: str
    executive_summary: dict[str, Any]
    risk_assessment: dict[str, Any]
    binary_analysis: dict[str, Any]
    economic_analysis: dict[str, Any]
    authority_analysis: dict[str, Any]
    call_graph_analysis: dict[str, Any]
    vulnerability_analysis: list[dict[str, Any]]
    safety_analysis: dict[str, Any]
    recommendations: list[dict[str, Any]]
    metadata: dict[str, Any]
    computed: bool = True

    @property
    def safety_score(self) -> int:
        return int(self.executive_summary.get("safetyScore", 50))

    @property
    def degraded_sections(self) -> list[str]:
        return list(self.metadata.get("degradedSections", []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "programAddress": self.program_address,
            "timestamp": self.timestamp,
            "executiveSummary": self.executive_summary,
            "riskAssessment": self.risk_assessment,
            "binaryAnalysis": self.binary_analysis,
            "economicAnalysis": self.economic_analysis,
            "authorityAnalysis": self.authority_analysis,
            "callGraphAnalysis": self.call_graph_analysis,
            "vulnerabilityAnalysis": self.vulnerability_analysis,
            "safetyAnalysis": self.safety_analysis,
            "recommendations": self.recommendations,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ReportInputs:
    """Every stage output the composer reads."""

    address: str
    profile: BinaryProfile
    economics: EconomicProfile
    graph: CallGraph
    authorities: Sequence[AuthorityInsight]
    governance: GovernanceProfile
    vulnerabilities: Sequence[VulnerabilityFinding]
    safety: SafetyAssessment
    behavior: BehaviorProfile
    prediction: RiskPrediction
    fees: FeeAnalysis = field(default_factory=FeeAnalysis)
    deep_dive: DeepDiveResult = field(default_factory=DeepDiveResult)
    assessed_risks: Sequence[AssessedRisk] = ()
    idl: ProgramIdl = field(default_factory=ProgramIdl)
    upgrades: Sequence[UpgradeEvent] = ()
    sol_price_usd: float = 0.0
    degraded_sections: Sequence[str] = ()
    network: str = "mainnet"


def risk_level(safety_score: int) -> str:
    if safety_score < 50:
        return "High"
    if safety_score < 80:
        return "Moderate"
    return "Low"


def risk_breakdown(
    vulnerabilities: Sequence[VulnerabilityFinding], safety: SafetyAssessment
) -> dict[str, int]:
    """Counts by severity; malicious safety risks count High, other safety risks Moderate."""
    def count(sev: Severity) -> int:
        return sum(1 for v in vulnerabilities if v.severity is sev)

    malicious = sum(1 for r in safety.risks if r.malicious)
    return {
        "critical": count(Severity.CRITICAL),
        "high": count(Severity.HIGH) + malicious,
        "moderate": count(Severity.MODERATE) + (len(safety.risks) - malicious),
        "low": count(Severity.LOW),
    }


def prioritized_risks(
    vulnerabilities: Sequence[VulnerabilityFinding], safety: SafetyAssessment
) -> list[dict[str, Any]]:
    """Critical, High, malicious safety, Moderate, other safety, Low."""

    def vulns(sev: Severity) -> list[dict[str, Any]]:
        return [
            {"type": v.type, "severity": v.severity.value, "details": v.details, "mitigation": v.mitigation}
            for v in vulnerabilities
            if v.severity is sev
        ]

    def safety_risks(malicious: bool) -> list[dict[str, Any]]:
        sev = Severity.HIGH if malicious else Severity.MODERATE
        return [
            {"type": r.issue, "severity": sev.value, "details": r.implication, "mitigation": r.mitigation}
            for r in safety.risks
            if r.malicious is malicious
        ]

    return [
        *vulns(Severity.CRITICAL),
        *vulns(Severity.HIGH),
        *safety_risks(True),
        *vulns(Severity.MODERATE),
        *safety_risks(False),
        *vulns(Severity.LOW),
    ]


def key_findings(inputs: ReportInputs, breakdown: dict[str, int]) -> list[str]:
    n_auth = len(inputs.authorities)
    return [
        f"Safety Score: {inputs.safety.safety_score}/100",
        (
            f"Vulnerabilities: {len(inputs.vulnerabilities)} "
            f"({breakdown['high']} High, {breakdown['moderate']} Moderate)"
        ),
        f"Transaction Volume: {inputs.economics.total_volume_sol:.4f} SOL",
        f"Authority Control: {n_auth} {'single authority' if n_auth == 1 else 'authorities'}",
    ]


def recommendations(inputs: ReportInputs) -> list[dict[str, Any]]:
    governance_signal = (
        inputs.profile.suspected_type is ProgramType.GOVERNANCE
        or has_action(inputs.graph, TransactionKind.GOVERNANCE.value)
    )
    recs: list[dict[str, Any]] = [
        {
            "priority": "High",
            "action": "Monitor program updates on Solscan.",
            "link": SOLSCAN_ACCOUNT_URL.format(address=inputs.address) + "#events",
        },
        {
            "priority": "High" if governance_signal else "Moderate",
            "action": "Verify governance or token logic on-chain.",
            "link": SOLSCAN_ACCOUNT_URL.format(address=inputs.address),
        },
        {
            "priority": "High" if inputs.vulnerabilities else "Moderate",
            "action": "Address detected vulnerabilities.",
            "link": None,
        },
    ]
    if inputs.degraded_sections:
        recs.append({
            "priority": "Moderate",
            "action": (
                "Re-run the audit; some sections used fallback values: "
                + ", ".join(inputs.degraded_sections)
                + "."
            ),
            "link": None,
        })
    return recs


def _binary_section(inputs: ReportInputs) -> dict[str, Any]:
    p = inputs.profile
    cf = p.control_flow
    return {
        "size": p.byte_length,
        "instructionCount": p.instruction_count_estimate,
        "syscalls": sorted(p.syscalls),
        "likelyBehavior": p.suspected_type.value,
        "controlFlow": {
            "branches": cf.branches,
            "loops": cf.loops,
            "complexity": "High" if cf.total > CONTROL_FLOW_HIGH_COMPLEXITY else "Moderate",
        },
        "reentrancyRisk": p.reentrancy_risk.value,
        "usesBorsh": p.uses_borsh,
        "hiddenMintSignal": p.hidden_mint_signal,
        "dependencies": [n for n in inputs.graph.nodes if n != inputs.address],
        "deepDive": inputs.deep_dive.to_dict(),
        "idl": inputs.idl.to_dict(),
        "computed": p.computed,
    }


def _economic_section(inputs: ReportInputs) -> dict[str, Any]:
    e = inputs.economics
    price = inputs.sol_price_usd
    return {
        "totalVolumeSOL": f"{e.total_volume_sol:.4f}",
        "totalVolumeUSD": f"{e.total_volume_sol * price:.2f}",
        "averageFeeSOL": f"{e.average_fee_sol:.6f}",
        "transactionCount": e.transaction_count,
        "transactionTypes": {name: e.stats(*kinds).to_dict() for name, kinds in TRANSACTION_TYPE_GROUPS},
        "suspiciousVolumeSOL": f"{e.suspicious_volume_sol:.4f}",
        "suspiciousVolumeUSD": f"{e.suspicious_volume_sol * price:.2f}",
        "tokenFlows": e.token_flows.to_dict(),
        "volatility": e.volatility.to_dict(),
        "feeAnalysis": inputs.fees.to_dict(),
        "solPriceUSD": price,
        "computed": e.computed,
    }


def compose_report(inputs: ReportInputs, now: datetime | None = None) -> AuditReport:
    """Assemble the audit report; degrades to fallback_report() on any failure."""
    generated_at = (now or datetime.now(timezone.utc)).isoformat()
    try:
        breakdown = risk_breakdown(inputs.vulnerabilities, inputs.safety)
        prioritized = prioritized_risks(inputs.vulnerabilities, inputs.safety)
        report = AuditReport(
            program_address=inputs.address,
            timestamp=generated_at,
            executive_summary={
                "safetyScore": inputs.safety.safety_score,
                "riskLevel": risk_level(inputs.safety.safety_score),
                "programType": inputs.profile.suspected_type.value.upper(),
                "keyFindings": key_findings(inputs, breakdown),
                "riskScoreBreakdown": breakdown,
            },
            risk_assessment={
                "prioritizedRisks": prioritized,
                "riskScoreBreakdown": breakdown,
                "totalRisks": len(prioritized),
                "assessedRisks": [r.to_dict() for r in inputs.assessed_risks],
                "behavior": inputs.behavior.to_dict(),
                "prediction": inputs.prediction.to_dict(),
            },
            binary_analysis=_binary_section(inputs),
            economic_analysis=_economic_section(inputs),
            authority_analysis={
                "authorities": [a.to_dict() for a in inputs.authorities],
                "governance": inputs.governance.to_dict(),
                "upgradeHistory": [u.to_dict() for u in inputs.upgrades],
            },
            call_graph_analysis={
                "nodes": list(inputs.graph.nodes),
                "edges": [e.to_dict() for e in inputs.graph.edges],
                "summary": [e.to_dict() for e in summarize_edges(inputs.graph)],
                "interactionComplexity": interaction_complexity(inputs.graph),
                "computed": inputs.graph.computed,
            },
            vulnerability_analysis=[v.to_dict() for v in inputs.vulnerabilities],
            safety_analysis={
                "safetyScore": inputs.safety.safety_score,
                "feedback": [r.to_dict() for r in inputs.safety.risks],
                "computed": inputs.safety.computed,
            },
            recommendations=recommendations(inputs),
            metadata=_metadata(generated_at, inputs.network, inputs.degraded_sections),
        )
    except Exception as e:
        logger.warning("report_composition_failed", program=inputs.address, error=str(e))
        return fallback_report(inputs.address, now, network=inputs.network, degraded_sections=inputs.degraded_sections)
    logger.info(
        "report_composed",
        program=inputs.address,
        safety_score=inputs.safety.safety_score,
        total_risks=len(prioritized),
        degraded_sections=list(inputs.degraded_sections),
    )
    return report


def _metadata(generated_at: str, network: str, degraded: Sequence[str]) -> dict[str, Any]:
    return {
        "version": __version__,
        "generatedBy": GENERATED_BY,
        "generationTime": generated_at,
        "solanaNetwork": network,
        "degradedSections": list(degraded),
    }


def fallback_report(
    address: str,
    now: datetime | None = None,
    *,
    network: str = "mainnet",
    degraded_sections: Sequence[str] = (),
) -> AuditReport:
    """Neutral report: safety 50, no findings, 'report' listed as degraded."""
    generated_at = (now or datetime.now(timezone.utc)).isoformat()
    breakdown = {"critical": 0, "high": 0, "moderate": 0, "low": 0}
    degraded = list(dict.fromkeys([*degraded_sections, "report"]))
    return AuditReport(
        program_address=address or "unknown",
        timestamp=generated_at,
        executive_summary={
            "safetyScore": 50,
            "riskLevel": "Moderate",
            "programType": "UNKNOWN",
            "keyFindings": [],
            "riskScoreBreakdown": dict(breakdown),
        },
        risk_assessment={
            "prioritizedRisks": [],
            "riskScoreBreakdown": dict(breakdown),
            "totalRisks": 0,
            "assessedRisks": [],
        },
        binary_analysis={
            "size": 0,
            "instructionCount": 0,
            "syscalls": [],
            "likelyBehavior": "unknown",
            "controlFlow": {"branches": 0, "loops": 0, "complexity": "Low"},
            "dependencies": [],
            "idl": ProgramIdl().to_dict(),
            "computed": False,
        },
        economic_analysis={
            "totalVolumeSOL": "0.0000",
            "averageFeeSOL": "0.000000",
            "transactionCount": 0,
            "transactionTypes": {},
            "suspiciousVolumeSOL": "0.0000",
            "tokenFlows": {"topInflows": [], "topOutflows": [], "concentrationRisk": False},
            "computed": False,
        },
        authority_analysis={
            "authorities": [],
            "governance": {"type": "Unknown", "trustScore": 50, "details": []},
            "upgradeHistory": [],
        },
        call_graph_analysis={"nodes": [], "edges": [], "summary": [], "interactionComplexity": "Low", "computed": False},
        vulnerability_analysis=[],
        safety_analysis={"safetyScore": 50, "feedback": [], "computed": False},
        recommendations=[],
        metadata=_metadata(generated_at, network, degraded),
        computed=False,
    )
