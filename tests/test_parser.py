"""
Tests for jsonParsed payload parsing.
"""

from __future__ import annotations

import pytest

from solproof.chain.parser import balance_delta_sol, parse_instruction, parse_mint_account, parse_transaction

from conftest import AUTHORITY, PROGRAM, SYSTEM_PROGRAM, TOKEN_PROGRAM


def test_balance_delta_uses_first_account():
    assert balance_delta_sol([5_000_000_000, 1], [2_000_000_000, 9]) == 3.0
    assert balance_delta_sol([1_000_000_000], [3_000_000_000]) == 2.0
    assert balance_delta_sol([], [1]) == 0.0


def test_parse_instruction_json_parsed():
    ix = parse_instruction({
        "programId": TOKEN_PROGRAM,
        "accounts": [AUTHORITY, PROGRAM],
        "parsed": {"type": "transferChecked", "info": {"mint": "x"}},
    })
    assert ix.program_id == TOKEN_PROGRAM
    assert ix.accounts == (AUTHORITY, PROGRAM)
    assert ix.parsed_type == "transferChecked"
    assert ix.parsed_info == {"mint": "x"}


def test_parse_instruction_raw_indices():
    keys = [AUTHORITY, PROGRAM, SYSTEM_PROGRAM]
    ix = parse_instruction({"programIdIndex": 2, "accounts": [0, 1, 7], "data": "3Bxs"}, keys)
    assert ix.program_id == SYSTEM_PROGRAM
    assert ix.accounts == (AUTHORITY, PROGRAM)
    assert ix.parsed is None


def test_parse_instruction_without_program():
    assert parse_instruction({"accounts": []}) is None
    assert parse_instruction("junk") is None


def test_parse_transaction():
    tx = parse_transaction({
        "slot": 7,
        "blockTime": 1767222000,
        "meta": {"fee": 10000, "preBalances": [2_000_000_000], "postBalances": [1_500_000_000]},
        "transaction": {
            "signatures": ["abc"],
            "message": {"accountKeys": [AUTHORITY], "instructions": [{"programId": PROGRAM, "accounts": [AUTHORITY]}]},
        },
    })
    assert tx.signature == "abc"
    assert tx.slot == 7
    assert tx.fee_sol == 0.00001
    assert tx.volume_sol == 0.5
    assert len(tx.instructions) == 1


def test_parse_transaction_without_message():
    assert parse_transaction({"transaction": {}}) is None
    assert parse_transaction({"slot": 1}) is None


def test_parse_transaction_without_meta():
    tx = parse_transaction({"transaction": {"message": {"instructions": []}}}, signature="s")
    assert tx.signature == "s"
    assert tx.fee_sol == 0.0
    assert tx.volume_sol == 0.0


def test_parse_mint_account_unreadable():
    meta = parse_mint_account("mintX", {"data": ["AAAA", "base64"]})
    assert meta.mint == "mintX"
    assert meta.decimals == 9
    assert meta.supply == "Unknown"


def _transfer(info):
    return parse_instruction({
        "programId": TOKEN_PROGRAM,
        "accounts": [AUTHORITY],
        "parsed": {"type": "transfer", "info": info},
    })


def test_parsed_info_is_read_only_snapshot():
    info = {"mint": "x", "amount": "5"}
    ix = _transfer(info)
    info["amount"] = "999"
    assert ix.parsed_info["amount"] == "5"
    with pytest.raises(TypeError):
        ix.parsed_info["amount"] = "1"
    assert ix.to_dict()["parsed"]["info"] == {"mint": "x", "amount": "5"}
    assert len({ix, _transfer({"mint": "x", "amount": "5"})}) == 1
