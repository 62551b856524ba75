"""
Tests for the flat risk list, the pseudo-IDL and upgrade history.
"""

from __future__ import annotations

from solproof.analysis.idl import generate_idl
from solproof.analysis.models import (
    BinaryProfile,
    ClassifiedTransaction,
    ProgramType,
    Severity,
    TransactionKind,
    VulnerabilityFinding,
)
from solproof.analysis.program_fetcher import BPF_LOADER_UPGRADEABLE_ID
from solproof.analysis.risk_assessor import assess_risks
from solproof.analysis.upgrade_history import upgrade_history

from conftest import AUTHORITY, GOVERNANCE, NOW, PROGRAM, TOKEN_PROGRAM, ix, make_tx

HIDDEN_MINT = VulnerabilityFinding(
    type="Unchecked Minting",
    severity=Severity.HIGH,
    details="Mint marker present",
    confidence=60,
    mitigation="Verify mint authority checks",
)


def _classified(tx, kind=TransactionKind.SWAP):
    return ClassifiedTransaction(transaction=tx, kind=kind, non_standard=True)


def test_risk_per_vulnerability():
    risks = assess_risks(BinaryProfile(address=PROGRAM), [HIDDEN_MINT])
    assert [r.to_dict() for r in risks] == [{
        "issue": "Vulnerability: Unchecked Minting",
        "implication": "Mint marker present",
        "mitigation": "Address High issue",
    }]


def test_reentrancy_and_instruction_count_risks():
    profile = BinaryProfile(address=PROGRAM, instruction_count_estimate=1001, reentrancy_risk=Severity.MODERATE)
    assert [r.issue for r in assess_risks(profile, [])] == ["Potential reentrancy risk", "High instruction count"]


def test_instruction_count_threshold_is_strict():
    profile = BinaryProfile(address=PROGRAM, instruction_count_estimate=1000)
    assert assess_risks(profile, []) == ()


def test_idl_names_and_args():
    classified = [
        _classified(make_tx("g", [ix(GOVERNANCE, parsed_type="vote")]), TransactionKind.GOVERNANCE),
        _classified(make_tx("t", [ix(TOKEN_PROGRAM, parsed_type="transfer"), ix(PROGRAM)]), TransactionKind.TRANSFER),
    ]
    idl = generate_idl(BinaryProfile(address=PROGRAM, suspected_type=ProgramType.AMM), classified)
    assert idl.to_dict() == {
        "version": "0.1.0",
        "name": "amm",
        "instructions": [
            {"name": "governanceInstruction0", "args": [{"name": "arg0", "type": "vote"}], "returns": "void"},
            {
                "name": "instruction1",
                "args": [{"name": "arg0", "type": "transfer"}, {"name": "arg1", "type": "unknown"}],
                "returns": "void",
            },
        ],
    }


def test_idl_keeps_first_five_transactions():
    classified = [_classified(make_tx(f"s{i}", [ix(PROGRAM)])) for i in range(8)]
    idl = generate_idl(BinaryProfile(address=PROGRAM), classified)
    assert [i.name for i in idl.instructions] == [f"instruction{i}" for i in range(5)]


def test_idl_empty_window():
    idl = generate_idl(BinaryProfile(address=PROGRAM), [])
    assert idl.to_dict() == {"version": "0.1.0", "name": "unknown", "instructions": []}


def test_upgrade_history_picks_loader_upgrades():
    upgrade = ix(BPF_LOADER_UPGRADEABLE_ID, [PROGRAM, AUTHORITY], "upgrade")
    classified = [
        _classified(make_tx("up2", [upgrade], block_time=int(NOW) - 60)),
        _classified(make_tx("swap", [ix(PROGRAM)])),
        _classified(make_tx("close", [ix(BPF_LOADER_UPGRADEABLE_ID, [PROGRAM], "close")])),
        _classified(make_tx("up1", [upgrade], block_time=None)),
    ]
    events = upgrade_history(classified)
    assert [e.to_dict() for e in events] == [
        {"signature": "up2", "timestamp": int(NOW) - 60, "changes": ["Program binary updated"]},
        {"signature": "up1", "timestamp": None, "changes": ["Program binary updated"]},
    ]


def test_upgrade_history_empty():
    assert upgrade_history([_classified(make_tx("swap", [ix(PROGRAM)]))]) == ()
