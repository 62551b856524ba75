"""
Tests for authority profiling and governance inference.
"""

from __future__ import annotations

import asyncio

from solproof.analysis.authority import analyze_authorities, valid_authorities, wallet_age_days
from solproof.analysis.governance import infer_governance, neutral_governance
from solproof.analysis.models import AuthorityInsight, CallEdge, CallGraph
from solproof.chain.models import AccountInfo

from conftest import AUTHORITY, DAY, NOW, PROGRAM, WSOL_MINT, FakeChainDataSource, make_tx


def _insight(addr: str) -> AuthorityInsight:
    return AuthorityInsight(authority=addr, total_sol_withdrawn=0.0, wallet_age_days=0)


def test_valid_authorities_dedup_and_filter():
    """Duplicates collapse; invalid addresses are dropped silently."""
    assert valid_authorities([AUTHORITY, "not-an-address", AUTHORITY, None, WSOL_MINT]) == [AUTHORITY, WSOL_MINT]


def test_wallet_age_days():
    assert wallet_age_days(None, NOW) == 0
    assert wallet_age_days(int(NOW) - 3 * DAY - 10, NOW) == 3
    assert wallet_age_days(int(NOW) + DAY, NOW) == 0


def test_analyze_authorities():
    source = FakeChainDataSource(
        accounts={AUTHORITY: AccountInfo(lamports=2_500_000_000, owner="11111111111111111111111111111111", executable=False)},
        transactions={AUTHORITY: [make_tx("latest", block_time=int(NOW) - 10 * DAY)]},
    )
    insights = asyncio.run(analyze_authorities(source, [AUTHORITY, WSOL_MINT, "bad"], NOW))
    assert [i.authority for i in insights] == [AUTHORITY, WSOL_MINT]
    first, second = insights
    assert first.total_sol_withdrawn == 2.5
    assert first.wallet_age_days == 10
    assert first.token_mint_count is None
    assert second.total_sol_withdrawn == 0.0
    assert second.wallet_age_days == 0
    assert first.to_dict()["tokenMintCount"] is None


def test_analyze_authorities_empty():
    source = FakeChainDataSource()
    assert asyncio.run(analyze_authorities(source, [], NOW)) == []
    assert source.calls == []


def test_single_authority_is_centralized():
    profile = infer_governance([_insight(AUTHORITY)], CallGraph(root=PROGRAM))
    assert profile.type == "Centralized"
    assert profile.trust_score == 50
    assert "Single authority detected" in profile.details


def test_multiple_authorities_decentralized_with_voting_bonus():
    graph = CallGraph(root=PROGRAM, edges=(CallEdge(AUTHORITY, PROGRAM, "governance"),))
    profile = infer_governance([_insight(AUTHORITY), _insight(WSOL_MINT)], graph)
    assert profile.type == "Decentralized"
    assert profile.trust_score == 80
    assert profile.details == ("Multiple authorities detected", "Voting interactions observed")


def test_neutral_governance():
    g = neutral_governance()
    assert (g.type, g.trust_score, g.computed) == ("Unknown", 50, False)
