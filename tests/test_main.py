"""
Tests for the command-line entry point (no network).
"""

from __future__ import annotations

import json
from unittest.mock import patch

import main
from solproof.chain.source import StaticPriceOracle
from solproof.config import env

from conftest import AUTHORITY, PROGRAM, FakeChainDataSource, ix, make_tx


def _clear_env(monkeypatch):
    monkeypatch.setattr(env, "load_solproof_env", lambda: None)
    for name in ("SOLANA_RPC_URL", "HELIUS_API_KEY", "SOLPROOF_TX_LIMIT", "SOLPROOF_TIMEFRAME"):
        monkeypatch.delenv(name, raising=False)


def test_missing_configuration_exits_1(monkeypatch, capsys):
    _clear_env(monkeypatch)
    monkeypatch.setattr("sys.argv", ["main.py", PROGRAM])
    assert main.main() == 1
    assert "ERROR:" in capsys.readouterr().err


def test_invalid_address_exits_2(monkeypatch, capsys):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://127.0.0.1:1")
    monkeypatch.setattr("sys.argv", ["main.py", "not-a-program"])
    assert main.main() == 2
    assert "Invalid program address" in capsys.readouterr().err


def test_invalid_timeframe_exits_2(monkeypatch, capsys):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://127.0.0.1:1")
    monkeypatch.setattr("sys.argv", ["main.py", PROGRAM, "--timeframe", "7x"])
    source = FakeChainDataSource()
    with patch("solproof.chain.RpcChainDataSource") as rpc_cls:
        rpc_cls.return_value.__aenter__.return_value = source
        assert main.main() == 2
    captured = capsys.readouterr()
    assert "Invalid timeframe" in captured.err
    assert captured.out == ""
    assert source.calls == []


def test_quick_check_prints_json(monkeypatch, capsys):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://127.0.0.1:1")
    monkeypatch.setattr("sys.argv", ["main.py", PROGRAM, "--quick"])
    source = FakeChainDataSource(transactions={PROGRAM: [make_tx("s1")]})
    with patch("solproof.chain.RpcChainDataSource") as rpc_cls:
        rpc_cls.return_value.__aenter__.return_value = source
        assert main.main() == 0
    out = json.loads(capsys.readouterr().out)
    assert out["address"] == PROGRAM
    assert out["isActive"] is False
    assert out["basicSafetyScore"] == 40


def test_audit_writes_dot(monkeypatch, capsys, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://127.0.0.1:1")
    dot_path = tmp_path / "graph.dot"
    monkeypatch.setattr("sys.argv", ["main.py", PROGRAM, "--timeframe", "all", "--dot", str(dot_path)])
    source = FakeChainDataSource(transactions={PROGRAM: [make_tx("s1", [ix(PROGRAM, [AUTHORITY, PROGRAM])])]})
    with patch("solproof.chain.RpcChainDataSource") as rpc_cls, patch(
        "solproof.chain.CoinGeckoPriceOracle", return_value=StaticPriceOracle(100.0)
    ):
        rpc_cls.return_value.__aenter__.return_value = source
        assert main.main() == 0
    report = json.loads(capsys.readouterr().out)
    assert report["programAddress"] == PROGRAM
    assert "program" in report["metadata"]["degradedSections"]
    assert dot_path.read_text(encoding="utf-8") == (
        f'digraph {{\n  "{AUTHORITY}" -> "{PROGRAM}" [label="swap (1)"];\n}}\n'
    )
