"""
ChainDataSource over Solana JSON-RPC (httpx async client).

Responsibilities:
- JSON-RPC calls for getAccountInfo, getSignaturesForAddress and getTransaction.
- Map HTTP 429/5xx, transport failures and rate-limit error codes to
  TransientFetchError; other JSON-RPC errors to RpcResponseError.
- Read-through TTL cache keyed by (method, params).
- Concurrency cap plus minimum spacing between requests.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

import httpx

from solproof.chain.cache import TTLCache
from solproof.chain.models import AccountInfo, TokenMetadata, Transaction
from solproof.chain.parser import parse_mint_account, parse_transaction
from solproof.core.exceptions import RpcResponseError, TransientFetchError
from solproof.solproof_logging import get_logger

logger = get_logger(__name__)

# Server-side rate limit / node-behind codes seen on public and Helius endpoints
TRANSIENT_RPC_ERROR_CODES = frozenset({-32005, -32429, 429})
NEUTRAL_MINTS = frozenset({"SOL", "GOVERNANCE", "None"})

_request_id = 0


def _next_id() -> int:
    global _request_id
    _request_id += 1
    return _request_id


def _build_rpc_body(method: str, params: list[Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": _next_id(), "method": method, "params": params}


class RateLimiter:
    """At most max_concurrency requests in flight, started at least min_interval_sec apart."""

    def __init__(self, max_concurrency: int = 4, min_interval_sec: float = 0.0) -> None:
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._min_interval = min_interval_sec
        self._lock = asyncio.Lock()
        self._last_start = 0.0

    async def __aenter__(self) -> "RateLimiter":
        await self._semaphore.acquire()
        if self._min_interval > 0:
            async with self._lock:
                wait = self._last_start + self._min_interval - time.monotonic()
                if wait > 0:
                    await asyncio.sleep(wait)
                self._last_start = time.monotonic()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._semaphore.release()


class RpcChainDataSource:
    """
    Solana JSON-RPC adapter implementing ChainDataSource.

    Pass an httpx.AsyncClient to share a connection pool (or a MockTransport
    in tests); otherwise one is created and closed by aclose().
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        cache_ttl_sec: float = 600.0,
        max_concurrency: int = 4,
        min_interval_sec: float = 0.0,
        request_timeout_sec: float = 30.0,
        commitment: str = "finalized",
    ) -> None:
        self._rpc_url = rpc_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(request_timeout_sec))
        self._cache = TTLCache(cache_ttl_sec)
        self._limiter = RateLimiter(max_concurrency, min_interval_sec)
        self._commitment = commitment

    async def __aenter__(self) -> "RpcChainDataSource":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call through cache and limiter; return result."""
        key = (method, json.dumps(params, sort_keys=True, default=str))
        hit, cached = self._cache.get(key)
        if hit:
            return cached

        body = _build_rpc_body(method, params)
        async with self._limiter:
            try:
                resp = await self._client.post(self._rpc_url, json=body)
            except httpx.TransportError as e:
                raise TransientFetchError(f"{method} transport error: {e}") from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientFetchError(f"{method} HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RpcResponseError(f"{method} HTTP {resp.status_code}", code=resp.status_code) from e

        data = resp.json()
        if "error" in data:
            err = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
            code = err.get("code")
            message = f"Solana RPC error: {err.get('message', err)} (code={code})"
            if code in TRANSIENT_RPC_ERROR_CODES:
                raise TransientFetchError(message, status_code=429)
            raise RpcResponseError(message, code=code)

        result = data.get("result")
        self._cache.set(key, result)
        return result

    async def get_account(self, address: str) -> AccountInfo | None:
        result = await self._rpc(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self._commitment}],
        )
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            logger.debug("account_not_found", address=address)
            return None
        return AccountInfo.from_rpc_value(value)

    async def _get_transaction(self, signature: str) -> Transaction | None:
        raw = await self._rpc(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": self._commitment,
                },
            ],
        )
        if raw is None:
            return None
        return parse_transaction(raw, signature=signature)

    async def get_transactions(self, address: str, limit: int) -> list[Transaction]:
        """Newest first, as returned by getSignaturesForAddress."""
        items = await self._rpc(
            "getSignaturesForAddress",
            [address, {"limit": limit, "commitment": self._commitment}],
        )
        signatures = [
            item["signature"]
            for item in (items if isinstance(items, list) else [])
            if isinstance(item, dict) and item.get("signature")
        ]
        fetched = await asyncio.gather(*(self._get_transaction(s) for s in signatures))
        txs = [tx for tx in fetched if tx is not None]
        logger.info(
            "transactions_fetched",
            program=address,
            signature_count=len(signatures),
            transaction_count=len(txs),
        )
        return txs

    async def get_token_metadata(self, mint: str | None) -> TokenMetadata:
        if not mint or mint in NEUTRAL_MINTS:
            return TokenMetadata.neutral(mint)
        try:
            result = await self._rpc(
                "getAccountInfo",
                [mint, {"encoding": "jsonParsed", "commitment": self._commitment}],
            )
        except (TransientFetchError, RpcResponseError) as e:
            logger.warning("token_metadata_failed", mint=mint, error=str(e))
            return TokenMetadata.neutral(mint)
        value = result.get("value") if isinstance(result, dict) else None
        return parse_mint_account(mint, value)
