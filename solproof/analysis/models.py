"""
Data models for analysis stage outputs.

All entities are frozen dataclasses produced fresh per audit run. to_dict()
emits the camelCase keys used in the JSON audit report. Entities that can be
a neutral fallback carry computed=False so callers can tell a real value from
a default (e.g. a safety score of 50).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from solproof.chain.models import Transaction


def freeze_mapping(obj: Any, name: str) -> None:
    """Replace a dict field of a frozen dataclass with a read-only view of a copy."""
    object.__setattr__(obj, name, MappingProxyType(dict(getattr(obj, name))))


class Severity(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = (Severity.LOW, Severity.MODERATE, Severity.HIGH, Severity.CRITICAL)


class ProgramType(str, Enum):
    GOVERNANCE = "governance"
    AMM = "amm"
    NFT = "nft"
    UNKNOWN = "unknown"


class TransactionKind(str, Enum):
    SWAP = "swap"
    TRANSFER = "transfer"
    MINT = "mint"
    BURN = "burn"
    GOVERNANCE = "governance"
    NFT_MINT = "nft_mint"
    CUSTOM = "custom"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedTransaction:
    transaction: Transaction
    kind: TransactionKind
    non_standard: bool
    """True when no fungible-token-program instruction is present."""

    def to_dict(self) -> dict[str, Any]:
        out = self.transaction.to_dict()
        out["type"] = self.kind.value
        out["isNonStandard"] = self.non_standard
        return out


# ---------------------------------------------------------------------------
# Binary profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ControlFlow:
    branches: int = 0
    loops: int = 0

    @property
    def total(self) -> int:
        return self.branches + self.loops

    def to_dict(self) -> dict[str, Any]:
        return {"branches": self.branches, "loops": self.loops}


@dataclass(frozen=True)
class BinaryProfile:
    """
    Heuristic profile of raw program bytes.

    instruction_count_estimate is always byte_length // 8.
    """

    address: str
    byte_length: int = 0
    instruction_count_estimate: int = 0
    syscalls: frozenset[str] = frozenset()
    suspected_type: ProgramType = ProgramType.UNKNOWN
    control_flow: ControlFlow = field(default_factory=ControlFlow)
    reentrancy_risk: Severity = Severity.LOW
    uses_borsh: bool = False
    hidden_mint_signal: bool = False
    candidate_authorities: tuple[str, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "byteLength": self.byte_length,
            "instructionCountEstimate": self.instruction_count_estimate,
            "syscalls": sorted(self.syscalls),
            "suspectedType": self.suspected_type.value,
            "controlFlow": self.control_flow.to_dict(),
            "reentrancyRisk": self.reentrancy_risk.value,
            "usesBorsh": self.uses_borsh,
            "hiddenMintSignal": self.hidden_mint_signal,
            "candidateAuthorities": list(self.candidate_authorities),
            "computed": self.computed,
        }


# ---------------------------------------------------------------------------
# Economic profile
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeStats:
    count: int = 0
    volume_sol: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "volumeSOL": self.volume_sol}


@dataclass(frozen=True)
class TokenFlow:
    """Aggregated flow for one (account, mint, flow_type) key."""

    account: str
    mint: str
    flow_type: str
    amount: float
    tx_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "mint": self.mint,
            "flowType": self.flow_type,
            "amount": self.amount,
            "txCount": self.tx_count,
        }


@dataclass(frozen=True)
class TokenFlows:
    top_inflows: tuple[TokenFlow, ...] = ()
    top_outflows: tuple[TokenFlow, ...] = ()
    concentration_risk: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "topInflows": [f.to_dict() for f in self.top_inflows],
            "topOutflows": [f.to_dict() for f in self.top_outflows],
            "concentrationRisk": self.concentration_risk,
        }


@dataclass(frozen=True)
class Volatility:
    mean: float = 0.0
    stddev: float = 0.0
    high_volatility: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"meanVolumeSOL": self.mean, "stdDevVolumeSOL": self.stddev, "highVolatility": self.high_volatility}


@dataclass(frozen=True)
class EconomicProfile:
    total_volume_sol: float = 0.0
    average_fee_sol: float = 0.0
    transaction_count: int = 0
    by_type: Mapping[TransactionKind, TypeStats] = field(default_factory=dict, hash=False)
    suspicious_volume_sol: float = 0.0
    token_flows: TokenFlows = field(default_factory=TokenFlows)
    volatility: Volatility = field(default_factory=Volatility)
    computed: bool = True

    def __post_init__(self) -> None:
        freeze_mapping(self, "by_type")

    def stats(self, *kinds: TransactionKind) -> TypeStats:
        """Combined count/volume over the given kinds."""
        count = 0
        volume = 0.0
        for k in kinds:
            s = self.by_type.get(k)
            if s is not None:
                count += s.count
                volume += s.volume_sol
        return TypeStats(count=count, volume_sol=volume)

    @property
    def others(self) -> TypeStats:
        """unknown + custom transactions."""
        return self.stats(TransactionKind.UNKNOWN, TransactionKind.CUSTOM)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalVolumeSOL": self.total_volume_sol,
            "averageFeeSOL": self.average_fee_sol,
            "transactionCount": self.transaction_count,
            "byType": {k.value: s.to_dict() for k, s in self.by_type.items()},
            "suspiciousVolumeSOL": self.suspicious_volume_sol,
            "tokenFlows": self.token_flows.to_dict(),
            "volatility": self.volatility.to_dict(),
            "computed": self.computed,
        }


# ---------------------------------------------------------------------------
# Call graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CallEdge:
    source: str
    target: str
    action: str
    count: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.source, "to": self.target, "action": self.action, "count": self.count}


@dataclass(frozen=True)
class CallGraph:
    """Directed multigraph; parallel edges are kept. nodes is ordered by first appearance."""

    root: str
    nodes: tuple[str, ...] = ()
    edges: tuple[CallEdge, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "nodes": list(self.nodes),
            "edges": [e.to_dict() for e in self.edges],
            "computed": self.computed,
        }


# ---------------------------------------------------------------------------
# Authority / governance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthorityInsight:
    authority: str
    total_sol_withdrawn: float
    """Current balance, used as a withdrawal proxy."""
    wallet_age_days: int
    token_mint_count: int | None = None
    """None: mint counting is not computed."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "authority": self.authority,
            "totalSOLWithdrawn": self.total_sol_withdrawn,
            "walletAgeDays": self.wallet_age_days,
            "tokenMintCount": self.token_mint_count,
        }


@dataclass(frozen=True)
class GovernanceProfile:
    type: str
    trust_score: int
    details: tuple[str, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "trustScore": self.trust_score, "details": list(self.details)}


# ---------------------------------------------------------------------------
# Findings and scores
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VulnerabilityFinding:
    type: str
    severity: Severity
    details: str
    confidence: int
    """Percent, 0..100."""
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "details": self.details,
            "confidence": self.confidence,
            "mitigation": self.mitigation,
        }


@dataclass(frozen=True)
class SafetyRisk:
    issue: str
    implication: str
    mitigation: str

    @property
    def malicious(self) -> bool:
        return "malicious" in self.implication

    def to_dict(self) -> dict[str, Any]:
        return {"issue": self.issue, "implication": self.implication, "mitigation": self.mitigation}


@dataclass(frozen=True)
class SafetyAssessment:
    safety_score: int
    risks: tuple[SafetyRisk, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "safetyScore": self.safety_score,
            "risks": [r.to_dict() for r in self.risks],
            "computed": self.computed,
        }


@dataclass(frozen=True)
class BehaviorProfile:
    scam_probability: int
    laundering_likelihood: int
    program_type_confidence: Mapping[str, int] = field(hash=False)
    computed: bool = True

    def __post_init__(self) -> None:
        freeze_mapping(self, "program_type_confidence")

    def to_dict(self) -> dict[str, Any]:
        return {
            "scamProbability": self.scam_probability,
            "launderingLikelihood": self.laundering_likelihood,
            "programTypeConfidence": dict(self.program_type_confidence),
            "computed": self.computed,
        }


@dataclass(frozen=True)
class RiskFactor:
    issue: str
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {"issue": self.issue, "details": self.details}


@dataclass(frozen=True)
class RiskPrediction:
    risk_likelihood: int
    prediction: str
    risk_factors: tuple[RiskFactor, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "riskLikelihood": self.risk_likelihood,
            "prediction": self.prediction,
            "riskFactors": [f.to_dict() for f in self.risk_factors],
            "computed": self.computed,
        }


# ---------------------------------------------------------------------------
# Supplementary analyses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeeSpike:
    signature: str
    fee_sol: float
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {"issue": "Fee Spike", "signature": self.signature, "feeSOL": self.fee_sol, "details": self.details}


@dataclass(frozen=True)
class FeeAnalysis:
    total_transactions: int = 0
    average_fee_sol: float = 0.0
    spike_threshold_sol: float = 0.0
    spikes: tuple[FeeSpike, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "averageFeeSOL": self.average_fee_sol,
            "spikeThresholdSOL": self.spike_threshold_sol,
            "manipulation": [s.to_dict() for s in self.spikes],
        }


@dataclass(frozen=True)
class Anomaly:
    issue: str
    details: str

    def to_dict(self) -> dict[str, Any]:
        return {"issue": self.issue, "details": self.details}


@dataclass(frozen=True)
class DeepDiveResult:
    instruction_frequency: Mapping[str, int] = field(default_factory=dict, hash=False)
    anomalies: tuple[Anomaly, ...] = ()
    computed: bool = True

    def __post_init__(self) -> None:
        freeze_mapping(self, "instruction_frequency")

    def to_dict(self) -> dict[str, Any]:
        return {
            "instructionFrequency": dict(self.instruction_frequency),
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


@dataclass(frozen=True)
class QuickCheckResult:
    address: str
    active: bool = False
    last_transaction_time: int | None = None
    upgradeable: bool = False
    program_data_address: str | None = None
    basic_safety_score: int = 40
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "isActive": self.active,
            "lastTransaction": self.last_transaction_time,
            "isUpgradeable": self.upgradeable,
            "programDataAddress": self.program_data_address,
            "basicSafetyScore": self.basic_safety_score,
        }


# ---------------------------------------------------------------------------
# Risk list, IDL sketch, upgrade history
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssessedRisk:
    issue: str
    implication: str
    mitigation: str

    def to_dict(self) -> dict[str, Any]:
        return {"issue": self.issue, "implication": self.implication, "mitigation": self.mitigation}


@dataclass(frozen=True)
class IdlArg:
    name: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class IdlInstruction:
    name: str
    args: tuple[IdlArg, ...] = ()
    returns: str = "void"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "args": [a.to_dict() for a in self.args], "returns": self.returns}


@dataclass(frozen=True)
class ProgramIdl:
    """Pseudo-IDL inferred from observed instructions; not the program's published IDL."""

    name: str = "unknown"
    version: str = "0.1.0"
    instructions: tuple[IdlInstruction, ...] = ()
    computed: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "name": self.name,
            "instructions": [i.to_dict() for i in self.instructions],
        }


@dataclass(frozen=True)
class UpgradeEvent:
    signature: str
    timestamp: int | None
    changes: tuple[str, ...] = ("Program binary updated",)

    def to_dict(self) -> dict[str, Any]:
        return {"signature": self.signature, "timestamp": self.timestamp, "changes": list(self.changes)}
