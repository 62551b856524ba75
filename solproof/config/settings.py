"""
Application settings and per-stage configuration.

FetchConfig and PipelineConfig replace loose option dicts: every recognized
option (fetch limit, timeframe, retry schedule, timeouts) is a named field.
get_settings() resolves them from the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from solproof.config import env

RATE_LIMIT_RETRY_DELAYS_SEC = (1.0, 2.0, 4.0, 8.0, 16.0)
DEFAULT_TX_LIMIT = 25
DEFAULT_TIMEFRAME = "7d"
DEFAULT_STAGE_TIMEOUT_SEC = 5.0
DEFAULT_FETCH_STAGE_TIMEOUT_SEC = 60.0
DEFAULT_CACHE_TTL_SEC = 600.0


@dataclass(frozen=True)
class FetchConfig:
    """Transaction window and retry schedule for the transaction fetch."""

    limit: int = DEFAULT_TX_LIMIT
    timeframe: str = DEFAULT_TIMEFRAME
    """Window such as '7d', '24h', '30m', or 'all'."""
    retry_delays_sec: tuple[float, ...] = RATE_LIMIT_RETRY_DELAYS_SEC
    """Sleep before each retry; len() is the retry count (attempts = retries + 1)."""

    @property
    def max_retries(self) -> int:
        return len(self.retry_delays_sec)


@dataclass(frozen=True)
class PipelineConfig:
    """Timeouts and fetch window for one audit run."""

    stage_timeout_sec: float = DEFAULT_STAGE_TIMEOUT_SEC
    """Budget for each externally-facing stage."""
    fetch_stage_timeout_sec: float = DEFAULT_FETCH_STAGE_TIMEOUT_SEC
    """Budget for the transaction fetch stage, which includes the retry schedule."""
    fetch: FetchConfig = field(default_factory=FetchConfig)
    network: str = "mainnet"


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    network: str
    cache_ttl_sec: float
    default_sol_price_usd: float
    pipeline: PipelineConfig

    def masked_rpc_url(self) -> str:
        return env.mask_rpc_url(self.rpc_url)


def get_settings() -> Settings:
    """
    Return the current application settings.

    Raises ConfigurationError when no RPC endpoint can be resolved.
    """
    network = env.get_solana_network()
    pipeline = PipelineConfig(
        stage_timeout_sec=env.get_stage_timeout_sec(DEFAULT_STAGE_TIMEOUT_SEC),
        fetch=FetchConfig(
            limit=env.get_tx_limit(DEFAULT_TX_LIMIT),
            timeframe=env.get_timeframe(DEFAULT_TIMEFRAME),
        ),
        network=network,
    )
    return Settings(
        rpc_url=env.get_solana_rpc_url(),
        network=network,
        cache_ttl_sec=env.get_cache_ttl_sec(DEFAULT_CACHE_TTL_SEC),
        default_sol_price_usd=env.get_default_sol_price_usd(),
        pipeline=pipeline,
    )
