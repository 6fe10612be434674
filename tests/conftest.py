"""
conftest.py - Shared pytest fixtures for lending ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Empty market (fresh tokens, quote liquidity, price 2000)
- Reference position (10 ETH collateral, 10 000 USD debt at price 2000)
- Liquidator funded and approved to cover any debt
"""

import pytest

from lending import WAD

from tests.market_helpers import build_market, fund, open_position


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def market():
    """Fresh market at price 2000 with no positions: (ledger, usd, eth)."""
    return build_market()


@pytest.fixture
def ledger(market):
    return market[0]


@pytest.fixture
def usd(market):
    return market[1]


@pytest.fixture
def eth(market):
    return market[2]


# =============================================================================
# POSITION FIXTURES
# =============================================================================

@pytest.fixture
def alice_position(market):
    """Alice holds 10 ETH collateral and 10 000 USD debt at price 2000 (HF 133)."""
    ledger, usd, eth = market
    open_position(ledger, usd, eth, "alice", 10 * WAD, 10_000 * WAD)
    return market


@pytest.fixture
def liquidator(alice_position):
    """Bob is funded with 1 000 000 USD and has approved the market to pull it."""
    _, usd, _ = alice_position
    fund(usd, "bob", 1_000_000 * WAD)
    return "bob"


@pytest.fixture
def underwater(alice_position, liquidator):
    """Alice's position after the price drops to 1300 (HF 86)."""
    ledger, _, _ = alice_position
    ledger.set_price(1300 * WAD)
    return alice_position
