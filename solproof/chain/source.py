"""
Boundary capabilities consumed by the analysis pipeline.

ChainDataSource: account, transaction history and mint metadata lookups.
PriceOracle: SOL/USD price for report USD values.
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

import httpx

from solproof.chain.models import AccountInfo, TokenMetadata, Transaction
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

COINGECKO_SIMPLE_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"


@runtime_checkable
class ChainDataSource(Protocol):
    async def get_account(self, address: str) -> AccountInfo | None:
        """Account snapshot, or None when the account does not exist."""
        ...

    async def get_transactions(self, address: str, limit: int) -> list[Transaction]:
        """Most recent transactions, newest first. May raise on transport failure."""
        ...

    async def get_token_metadata(self, mint: str | None) -> TokenMetadata:
        """Mint metadata; neutral default on failure."""
        ...


@runtime_checkable
class PriceOracle(Protocol):
    async def sol_price_usd(self) -> float:
        ...


class StaticPriceOracle:
    """Fixed SOL/USD price."""

    def __init__(self, price_usd: float) -> None:
        self._price = float(price_usd)

    async def sol_price_usd(self) -> float:
        return self._price


class CoinGeckoPriceOracle:
    """
    SOL/USD from CoinGecko simple/price. The price is cached for ttl_sec;
    any failure returns the last known price or default_usd.
    """

    def __init__(
        self,
        *,
        default_usd: float,
        ttl_sec: float = 600.0,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        request_timeout_sec: float = 10.0,
    ) -> None:
        self._default = float(default_usd)
        self._ttl = ttl_sec
        self._api_key = api_key
        self._client = client
        self._timeout = request_timeout_sec
        self._cached: float | None = None
        self._cached_at = 0.0

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"x-cg-demo-api-key": self._api_key}
        return {}

    async def _fetch(self, client: httpx.AsyncClient) -> float:
        r = await client.get(
            COINGECKO_SIMPLE_PRICE_URL,
            params={"ids": "solana", "vs_currencies": "usd"},
            headers=self._headers(),
            timeout=self._timeout,
        )
        r.raise_for_status()
        return float(r.json()["solana"]["usd"])

    async def sol_price_usd(self) -> float:
        now = time.monotonic()
        if self._cached is not None and now - self._cached_at < self._ttl:
            return self._cached
        try:
            if self._client is not None:
                price = await self._fetch(self._client)
            else:
                async with httpx.AsyncClient() as client:
                    price = await self._fetch(client)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            fallback = self._cached if self._cached is not None else self._default
            logger.warning("sol_price_fetch_failed", error=str(e), fallback_usd=fallback)
            return fallback
        self._cached = price
        self._cached_at = now
        logger.debug("sol_price_fetched", price_usd=price)
        return price
