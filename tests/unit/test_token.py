"""
test_token.py - Unit tests for the in-memory token and its gateway

Tests:
- Minting, balances, total supply
- Moves and insufficient balance
- Allowances consumed by transfer_from
- Input validation
"""

import pytest
from lending import InMemoryToken


@pytest.fixture
def usd():
    token = InMemoryToken("USD")
    token.mint("alice", 1_000)
    return token


class TestInMemoryToken:

    def test_mint_and_balance(self, usd):
        assert usd.balance_of("alice") == 1_000
        assert usd.balance_of("nobody") == 0
        assert usd.total_supply() == 1_000

    def test_move(self, usd):
        assert usd.move("alice", "bob", 400) is True
        assert usd.balance_of("alice") == 600
        assert usd.balance_of("bob") == 400
        assert usd.total_supply() == 1_000

    def test_move_insufficient_returns_false(self, usd):
        assert usd.move("alice", "bob", 1_001) is False
        assert usd.balance_of("alice") == 1_000
        assert usd.balance_of("bob") == 0

    def test_negative_amount_raises(self, usd):
        with pytest.raises(ValueError, match="cannot be negative"):
            usd.move("alice", "bob", -1)

    def test_non_int_amount_raises(self, usd):
        with pytest.raises(ValueError, match="must be int"):
            usd.mint("alice", 1.0)

    def test_empty_symbol_raises(self):
        with pytest.raises(ValueError, match="symbol cannot be empty"):
            InMemoryToken("  ")

    def test_approve_overwrites(self, usd):
        usd.approve("alice", "market", 10)
        usd.approve("alice", "market", 3)
        assert usd.allowance("alice", "market") == 3


class TestTokenAccount:

    def test_transfer_spends_holder_balance(self, usd):
        gateway = usd.account("alice")
        assert gateway.transfer("bob", 250) is True
        assert gateway.balance_of("bob") == 250

    def test_transfer_from_requires_allowance(self, usd):
        gateway = usd.account("market")
        assert gateway.transfer_from("alice", "market", 1) is False
        assert usd.balance_of("market") == 0

    def test_transfer_from_consumes_allowance(self, usd):
        usd.approve("alice", "market", 500)
        gateway = usd.account("market")
        assert gateway.transfer_from("alice", "market", 200) is True
        assert usd.allowance("alice", "market") == 300
        assert usd.balance_of("market") == 200

    def test_transfer_from_keeps_allowance_when_balance_short(self, usd):
        usd.approve("alice", "market", 5_000)
        gateway = usd.account("market")
        assert gateway.transfer_from("alice", "market", 2_000) is False
        assert usd.allowance("alice", "market") == 5_000
