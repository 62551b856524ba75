"""
Program analysis pipeline.

Stages (binary profiling, transaction classification, economics, call graph,
authorities, governance, vulnerabilities, behavior, safety, prediction, risk
list, pseudo-IDL, upgrade history) and the report composer. run_audit()
orchestrates them.
"""

from solproof.analysis.authority import analyze_authorities  # noqa: F401
from solproof.analysis.behavior import infer_behavior  # noqa: F401
from solproof.analysis.binary_profiler import BinaryPolicy, profile_binary  # noqa: F401
from solproof.analysis.call_graph import (  # noqa: F401
    build_call_graph,
    interaction_complexity,
    summarize_edges,
    to_dot,
)
from solproof.analysis.deep_dive import deep_dive  # noqa: F401
from solproof.analysis.economics import EconomicPolicy, aggregate_economics  # noqa: F401
from solproof.analysis.fee_analyzer import analyze_fees  # noqa: F401
from solproof.analysis.governance import infer_governance  # noqa: F401
from solproof.analysis.idl import generate_idl  # noqa: F401
from solproof.analysis.models import (  # noqa: F401
    BinaryProfile,
    CallGraph,
    EconomicProfile,
    ProgramType,
    SafetyAssessment,
    Severity,
    TransactionKind,
    VulnerabilityFinding,
)
from solproof.analysis.pipeline import AuditRun, run_audit  # noqa: F401
from solproof.analysis.quick_check import quick_check  # noqa: F401
from solproof.analysis.report import AuditReport, ReportInputs, compose_report  # noqa: F401
from solproof.analysis.risk_assessor import assess_risks  # noqa: F401
from solproof.analysis.risk_predictor import predict_risk  # noqa: F401
from solproof.analysis.safety import assess_safety  # noqa: F401
from solproof.analysis.transaction_classifier import (  # noqa: F401
    ClassificationPolicy,
    classify_transaction,
    get_recent_transactions,
)
from solproof.analysis.upgrade_history import upgrade_history  # noqa: F401
from solproof.analysis.vulnerability_scanner import scan_vulnerabilities  # noqa: F401

__all__ = [
    "AuditReport",
    "AuditRun",
    "BinaryPolicy",
    "BinaryProfile",
    "CallGraph",
    "ClassificationPolicy",
    "EconomicPolicy",
    "EconomicProfile",
    "ProgramType",
    "ReportInputs",
    "SafetyAssessment",
    "Severity",
    "TransactionKind",
    "VulnerabilityFinding",
    "aggregate_economics",
    "analyze_authorities",
    "analyze_fees",
    "assess_risks",
    "assess_safety",
    "build_call_graph",
    "classify_transaction",
    "compose_report",
    "deep_dive",
    "generate_idl",
    "get_recent_transactions",
    "infer_behavior",
    "infer_governance",
    "interaction_complexity",
    "predict_risk",
    "profile_binary",
    "quick_check",
    "run_audit",
    "scan_vulnerabilities",
    "summarize_edges",
    "to_dot",
    "upgrade_history",
]
