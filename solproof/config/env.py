"""
Environment variable loading and validation for SolProof.

- SOLANA_NETWORK: devnet | mainnet (default: mainnet)
- SOLANA_RPC_URL: RPC endpoint (read from .env)
- HELIUS_API_KEY: Helius API key (used to build the RPC URL when SOLANA_RPC_URL is unset)
- SOLPROOF_SOL_PRICE_USD: default SOL/USD price when the price oracle is unavailable
- SOLPROOF_CACHE_TTL_SEC, SOLPROOF_STAGE_TIMEOUT_SEC, SOLPROOF_TX_LIMIT, SOLPROOF_TIMEFRAME
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from solproof.core.exceptions import ConfigurationError

# Project root: config is solproof/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"

DEFAULT_SOL_PRICE_USD = 150.0


def load_solproof_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def get_solana_network() -> str:
    """
    Return SOLANA_NETWORK from env: devnet | mainnet.
    Default: mainnet.
    """
    load_solproof_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "mainnet").strip().lower()
    if raw == "devnet":
        return "devnet"
    return "mainnet"


def get_helius_api_key() -> str | None:
    load_solproof_env()
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    return key or None


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific).
    Raises ConfigurationError when neither is set.
    """
    load_solproof_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    key = get_helius_api_key()
    if not key:
        raise ConfigurationError("HELIUS_API_KEY or SOLANA_RPC_URL must be set (env or .env)")
    if get_solana_network() == "devnet":
        return HELIUS_DEVNET_URL_TEMPLATE.format(key=key)
    return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)


def mask_rpc_url(url: str) -> str:
    """Hide the API key portion of an RPC URL for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def get_default_sol_price_usd() -> float:
    load_solproof_env()
    return _env_float("SOLPROOF_SOL_PRICE_USD", DEFAULT_SOL_PRICE_USD)


def get_cache_ttl_sec(default: float) -> float:
    load_solproof_env()
    return _env_float("SOLPROOF_CACHE_TTL_SEC", default)


def get_stage_timeout_sec(default: float) -> float:
    load_solproof_env()
    return _env_float("SOLPROOF_STAGE_TIMEOUT_SEC", default)


def get_tx_limit(default: int) -> int:
    load_solproof_env()
    return _env_int("SOLPROOF_TX_LIMIT", default)


def get_timeframe(default: str) -> str:
    load_solproof_env()
    return (os.getenv("SOLPROOF_TIMEFRAME") or "").strip() or default
