"""
Tests for environment-driven configuration.
"""

from __future__ import annotations

import pytest

from solproof.config import FetchConfig, PipelineConfig, get_settings
from solproof.config import env
from solproof.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(env, "load_solproof_env", lambda: None)
    for name in (
        "SOLANA_RPC_URL",
        "HELIUS_API_KEY",
        "SOLANA_NETWORK",
        "SOLANA_CLUSTER",
        "SOLPROOF_SOL_PRICE_USD",
        "SOLPROOF_CACHE_TTL_SEC",
        "SOLPROOF_STAGE_TIMEOUT_SEC",
        "SOLPROOF_TX_LIMIT",
        "SOLPROOF_TIMEFRAME",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert FetchConfig().limit == 25
    assert FetchConfig().timeframe == "7d"
    assert FetchConfig().max_retries == 5
    assert PipelineConfig().stage_timeout_sec == 5.0


def test_missing_rpc_endpoint_raises():
    with pytest.raises(ConfigurationError):
        get_settings()


def test_explicit_rpc_url_wins(monkeypatch):
    monkeypatch.setenv("SOLANA_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("HELIUS_API_KEY", "k")
    assert env.get_solana_rpc_url() == "https://rpc.example"


def test_helius_url_by_network(monkeypatch):
    monkeypatch.setenv("HELIUS_API_KEY", "k123")
    assert env.get_solana_rpc_url() == "https://mainnet.helius-rpc.com/?api-key=k123"
    monkeypatch.setenv("SOLANA_NETWORK", "devnet")
    assert env.get_solana_rpc_url() == "https://devnet.helius-rpc.com/?api-key=k123"


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("HELIUS_API_KEY", "k123")
    monkeypatch.setenv("SOLPROOF_TX_LIMIT", "50")
    monkeypatch.setenv("SOLPROOF_TIMEFRAME", "24h")
    monkeypatch.setenv("SOLPROOF_STAGE_TIMEOUT_SEC", "2.5")
    settings = get_settings()
    assert settings.pipeline.fetch.limit == 50
    assert settings.pipeline.fetch.timeframe == "24h"
    assert settings.pipeline.stage_timeout_sec == 2.5
    assert settings.default_sol_price_usd == 150.0
    assert settings.masked_rpc_url() == "https://mainnet.helius-rpc.com/?api-key=***"


def test_invalid_number_is_configuration_error(monkeypatch):
    monkeypatch.setenv("SOLPROOF_TX_LIMIT", "many")
    with pytest.raises(ConfigurationError):
        env.get_tx_limit(25)
