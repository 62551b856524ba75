"""
Pytest fixtures for SolProof tests: in-memory ChainDataSource and
transaction builders. No network access.
"""

from __future__ import annotations

from typing import Any

import pytest

from solproof.chain.models import (
    AccountInfo,
    Instruction,
    ParsedInstruction,
    TokenMetadata,
    Transaction,
)
from solproof.core.exceptions import TransientFetchError

PROGRAM = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
AUTHORITY = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
WSOL_MINT = "So11111111111111111111111111111111111111112"
SYSTEM_PROGRAM = "11111111111111111111111111111111"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
RAYDIUM = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
GOVERNANCE = "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw"
METADATA = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"

# 2026-01-01T00:00:00Z
NOW = 1767225600.0
DAY = 86400


def ix(
    program_id: str,
    accounts: list[str] | tuple[str, ...] = (),
    parsed_type: str | None = None,
    info: dict[str, Any] | None = None,
) -> Instruction:
    parsed = ParsedInstruction(type=parsed_type, info=info or {}) if parsed_type else None
    return Instruction(program_id=program_id, accounts=tuple(accounts), parsed=parsed)


def make_tx(
    signature: str,
    instructions: list[Instruction] | None = None,
    *,
    volume: float = 0.0,
    fee: float = 0.000005,
    block_time: int | None = int(NOW) - 3600,
    slot: int = 1,
) -> Transaction:
    return Transaction(
        signature=signature,
        slot=slot,
        block_time=block_time,
        instructions=tuple(instructions or ()),
        volume_sol=volume,
        fee_sol=fee,
    )


class FakeChainDataSource:
    """
    In-memory ChainDataSource.

    fail_transactions: number of leading get_transactions calls that raise
    error (a rate-limit TransientFetchError unless given).
    """

    def __init__(
        self,
        accounts: dict[str, AccountInfo] | None = None,
        transactions: dict[str, list[Transaction]] | None = None,
        metadata: dict[str, TokenMetadata] | None = None,
        fail_transactions: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.accounts = accounts or {}
        self.transactions = transactions or {}
        self.metadata = metadata or {}
        self.fail_transactions = fail_transactions
        self.error = error or TransientFetchError("rate limited", status_code=429)
        self.calls: list[tuple[str, Any]] = []

    async def get_account(self, address: str) -> AccountInfo | None:
        self.calls.append(("get_account", address))
        return self.accounts.get(address)

    async def get_transactions(self, address: str, limit: int) -> list[Transaction]:
        self.calls.append(("get_transactions", (address, limit)))
        if self.fail_transactions > 0:
            self.fail_transactions -= 1
            raise self.error
        return list(self.transactions.get(address, []))[:limit]

    async def get_token_metadata(self, mint: str | None) -> TokenMetadata:
        self.calls.append(("get_token_metadata", mint))
        return self.metadata.get(mint or "", TokenMetadata.neutral(mint))

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


async def no_sleep(delay: float) -> None:
    """Drop-in for asyncio.sleep in retry tests."""
    return None


@pytest.fixture
def fake_source() -> FakeChainDataSource:
    return FakeChainDataSource()


@pytest.fixture
def recorded_sleeps() -> list[float]:
    return []


@pytest.fixture
def recording_sleep(recorded_sleeps):
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep
