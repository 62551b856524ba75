"""
Tests for retry, TTL cache and the SOL price oracle.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from solproof.chain.cache import TTLCache
from solproof.chain.retry import call_with_retry
from solproof.chain.source import CoinGeckoPriceOracle
from solproof.core.exceptions import RpcResponseError, TransientFetchError


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_cache_expiry():
    clock = FakeClock()
    cache = TTLCache(10, clock=clock)
    cache.set("k", {"v": 1})
    assert cache.get("k") == (True, {"v": 1})
    clock.now = 9.9
    assert cache.get("k")[0] is True
    clock.now = 10.0
    assert cache.get("k") == (False, None)
    assert len(cache) == 0


def test_cache_caches_none_results():
    cache = TTLCache(10, clock=FakeClock())
    cache.set("missing", None)
    assert cache.get("missing") == (True, None)


def test_cache_evicts_oldest():
    cache = TTLCache(10, clock=FakeClock(), max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") == (False, None)
    assert cache.get("c") == (True, 3)


def test_retry_preserves_status_code(recording_sleep, recorded_sleeps):
    async def always_rate_limited():
        raise TransientFetchError("slow down", status_code=429)

    with pytest.raises(TransientFetchError) as info:
        asyncio.run(call_with_retry(always_rate_limited, delays=(1.0, 2.0), sleep=recording_sleep))
    assert info.value.rate_limited
    assert recorded_sleeps == [1.0, 2.0]


def test_retry_returns_first_success(recording_sleep, recorded_sleeps):
    async def ok(x, y=0):
        return x + y

    assert asyncio.run(call_with_retry(ok, 1, y=2, delays=(1.0,), sleep=recording_sleep)) == 3
    assert recorded_sleeps == []


def test_retry_does_not_retry_response_errors(recording_sleep, recorded_sleeps):
    calls = []

    async def bad_params():
        calls.append(1)
        raise RpcResponseError("Invalid param", code=-32602)

    with pytest.raises(RpcResponseError) as info:
        asyncio.run(call_with_retry(bad_params, delays=(1.0, 2.0), sleep=recording_sleep))
    assert info.value.code == -32602
    assert calls == [1]
    assert recorded_sleeps == []


def _oracle(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client, CoinGeckoPriceOracle(default_usd=150.0, client=client, **kwargs)


def test_price_oracle_fetches_and_caches():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"solana": {"usd": 187.5}})

    async def main():
        client, oracle = _oracle(handler, api_key="demo")
        async with client:
            return await oracle.sol_price_usd(), await oracle.sol_price_usd()

    assert asyncio.run(main()) == (187.5, 187.5)
    assert len(calls) == 1
    assert calls[0].headers["x-cg-demo-api-key"] == "demo"
    assert calls[0].url.params["ids"] == "solana"


def test_price_oracle_falls_back_to_default():
    def handler(request):
        return httpx.Response(429, json={})

    async def main():
        client, oracle = _oracle(handler)
        async with client:
            return await oracle.sol_price_usd()

    assert asyncio.run(main()) == 150.0


def test_price_oracle_malformed_payload():
    def handler(request):
        return httpx.Response(200, json={"bitcoin": {}})

    async def main():
        client, oracle = _oracle(handler)
        async with client:
            return await oracle.sol_price_usd()

    assert asyncio.run(main()) == 150.0
