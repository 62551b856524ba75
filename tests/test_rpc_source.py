"""
Tests for the JSON-RPC adapter using httpx.MockTransport (no network).
"""

from __future__ import annotations

import asyncio
import base64
import json

import httpx
import pytest

from solproof.chain.rpc_source import RpcChainDataSource
from solproof.core.exceptions import RpcResponseError, TransientFetchError

from conftest import AUTHORITY, PROGRAM, SYSTEM_PROGRAM, TOKEN_PROGRAM

RPC_URL = "https://rpc.test/?api-key=secret"
USDC = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def _tx_result(signature: str, slot: int) -> dict:
    return {
        "slot": slot,
        "blockTime": 1767222000,
        "meta": {"fee": 5000, "preBalances": [3_000_000_000, 0], "postBalances": [1_000_000_000, 0]},
        "transaction": {
            "signatures": [signature],
            "message": {
                "accountKeys": [{"pubkey": AUTHORITY}, {"pubkey": PROGRAM}],
                "instructions": [
                    {
                        "programId": TOKEN_PROGRAM,
                        "parsed": {"type": "transfer", "info": {"source": AUTHORITY, "destination": PROGRAM}},
                    },
                ],
            },
        },
    }


class RpcStub:
    """Routes JSON-RPC methods to canned results and records requests."""

    def __init__(self, results: dict, status: int = 200) -> None:
        self.results = results
        self.status = status
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        if self.status != 200:
            return httpx.Response(self.status, json={})
        handler = self.results[body["method"]]
        payload = handler(body["params"]) if callable(handler) else handler
        if isinstance(payload, dict) and "error" in payload:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **payload})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": payload})

    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]


def _run(stub: RpcStub, coro_fn, **kwargs):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(stub)) as client:
            source = RpcChainDataSource(RPC_URL, client=client, **kwargs)
            return await coro_fn(source)

    return asyncio.run(main())


def test_get_account_decodes_base64():
    stub = RpcStub({"getAccountInfo": {"value": {
        "lamports": 42, "owner": SYSTEM_PROGRAM, "executable": True,
        "data": [base64.b64encode(b"\x02\x00\x00\x00abc").decode(), "base64"],
    }}})
    account = _run(stub, lambda s: s.get_account(PROGRAM))
    assert account.lamports == 42
    assert account.data == b"\x02\x00\x00\x00abc"
    assert account.executable
    assert stub.requests[0]["params"][1]["encoding"] == "base64"


def test_get_account_missing():
    stub = RpcStub({"getAccountInfo": {"value": None}})
    assert _run(stub, lambda s: s.get_account(PROGRAM)) is None


def test_get_transactions_newest_first():
    stub = RpcStub({
        "getSignaturesForAddress": [{"signature": "sigB"}, {"signature": "sigA"}],
        "getTransaction": lambda params: _tx_result(params[0], 10 if params[0] == "sigB" else 5),
    })
    txs = _run(stub, lambda s: s.get_transactions(PROGRAM, 2))
    assert [t.signature for t in txs] == ["sigB", "sigA"]
    assert txs[0].volume_sol == pytest.approx(2.0)
    assert txs[0].fee_sol == pytest.approx(0.000005)
    assert txs[0].instructions[0].parsed_type == "transfer"
    assert stub.requests[0]["params"][1]["limit"] == 2


def test_missing_transaction_dropped():
    stub = RpcStub({
        "getSignaturesForAddress": [{"signature": "sigA"}, {"signature": "gone"}],
        "getTransaction": lambda params: None if params[0] == "gone" else _tx_result(params[0], 1),
    })
    txs = _run(stub, lambda s: s.get_transactions(PROGRAM, 10))
    assert [t.signature for t in txs] == ["sigA"]


@pytest.mark.parametrize("status", [429, 503])
def test_http_rate_limit_and_server_errors_are_transient(status):
    stub = RpcStub({}, status=status)
    with pytest.raises(TransientFetchError) as info:
        _run(stub, lambda s: s.get_account(PROGRAM))
    assert info.value.status_code == status


def test_http_client_error_is_not_transient():
    stub = RpcStub({}, status=403)
    with pytest.raises(RpcResponseError):
        _run(stub, lambda s: s.get_account(PROGRAM))


def test_rpc_rate_limit_code_is_transient():
    stub = RpcStub({"getAccountInfo": {"error": {"code": -32429, "message": "Too many requests"}}})
    with pytest.raises(TransientFetchError) as info:
        _run(stub, lambda s: s.get_account(PROGRAM))
    assert info.value.rate_limited


def test_rpc_error_is_response_error():
    stub = RpcStub({"getAccountInfo": {"error": {"code": -32602, "message": "Invalid param"}}})
    with pytest.raises(RpcResponseError) as info:
        _run(stub, lambda s: s.get_account(PROGRAM))
    assert info.value.code == -32602


def test_transport_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await RpcChainDataSource(RPC_URL, client=client).get_account(PROGRAM)

    with pytest.raises(TransientFetchError):
        asyncio.run(main())


def test_repeated_calls_are_cached():
    stub = RpcStub({"getAccountInfo": {"value": None}})

    async def twice(source):
        await source.get_account(PROGRAM)
        await source.get_account(PROGRAM)
        await source.get_account(AUTHORITY)

    _run(stub, twice)
    assert stub.methods() == ["getAccountInfo", "getAccountInfo"]


def test_cache_disabled_with_zero_ttl():
    stub = RpcStub({"getAccountInfo": {"value": None}})

    async def twice(source):
        await source.get_account(PROGRAM)
        await source.get_account(PROGRAM)

    _run(stub, twice, cache_ttl_sec=0)
    assert len(stub.requests) == 2


def test_token_metadata_parsed():
    stub = RpcStub({"getAccountInfo": {"value": {"data": {"parsed": {"type": "mint", "info": {
        "decimals": 6, "supply": "5000000", "mintAuthority": AUTHORITY, "freezeAuthority": None,
    }}}}}})
    meta = _run(stub, lambda s: s.get_token_metadata(USDC))
    assert meta.decimals == 6
    assert meta.supply == "5.0"
    assert meta.mint_authority == AUTHORITY


@pytest.mark.parametrize("mint", [None, "SOL", "GOVERNANCE", "None"])
def test_token_metadata_neutral_without_fetch(mint):
    stub = RpcStub({})
    meta = _run(stub, lambda s: s.get_token_metadata(mint))
    assert meta.decimals == 9
    assert stub.requests == []


def test_token_metadata_failure_is_neutral():
    stub = RpcStub({}, status=500)
    meta = _run(stub, lambda s: s.get_token_metadata(USDC))
    assert meta.mint == USDC
    assert meta.decimals == 9
