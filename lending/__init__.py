"""
lending - Collateralized Lending Ledger

A single-market lending ledger built as a deterministic target for
liquidation-monitoring tools: accounts deposit a base asset, borrow a quote
asset against it, and may be liquidated once their health factor drops below 100.

Usage:
    from lending import LendingLedger, InMemoryToken, WAD

    usd, eth = InMemoryToken("USD"), InMemoryToken("ETH")
    ledger = LendingLedger(
        "market",
        quote_token=usd.account("market"),
        base_asset=eth.account("market"),
        initial_price=2000 * WAD,
    )

    eth.mint("alice", 10 * WAD)
    eth.approve("alice", "market", 10 * WAD)
    ledger.deposit("alice", 10 * WAD)

    usd.mint("market", 1_000_000 * WAD)
    ledger.borrow("alice", 10_000 * WAD)
    ledger.get_health_factor("alice")      # 133

    ledger.set_price(1300 * WAD)
    ledger.is_liquidatable("alice")        # True
"""

# Core types
from .core import (
    WAD,
    LIQUIDATION_THRESHOLD,
    LIQUIDATION_BONUS,
    PRECISION,
    MAX_HEALTH_FACTOR,
    MarketTerms,
    AccountPosition,
    PositionSummary,
    LiquidationQuote,
    LedgerEvent,
    EventType,
    TokenGateway,
    LendingError,
    InvalidInput,
    UndercollateralizedAction,
    NotLiquidatable,
    InvalidLiquidationAmount,
    ExternalTransferFailure,
)

# Health factor arithmetic
from .health import (
    calculate_collateral_value,
    calculate_max_safe_debt,
    calculate_health_factor,
    is_position_liquidatable,
    calculate_seize_amount,
    calculate_max_borrow,
    calculate_max_withdraw,
)

# Ledger
from .ledger import LendingLedger

# Price
from .price_feed import PriceSource, SettablePriceFeed

# Token
from .token import InMemoryToken, TokenAccount

__all__ = [
    # Core
    'WAD', 'LIQUIDATION_THRESHOLD', 'LIQUIDATION_BONUS', 'PRECISION', 'MAX_HEALTH_FACTOR',
    'MarketTerms', 'AccountPosition', 'PositionSummary', 'LiquidationQuote',
    'LedgerEvent', 'EventType', 'TokenGateway',
    'LendingError', 'InvalidInput', 'UndercollateralizedAction', 'NotLiquidatable',
    'InvalidLiquidationAmount', 'ExternalTransferFailure',
    # Health
    'calculate_collateral_value', 'calculate_max_safe_debt', 'calculate_health_factor',
    'is_position_liquidatable', 'calculate_seize_amount',
    'calculate_max_borrow', 'calculate_max_withdraw',
    # Ledger
    'LendingLedger',
    # Price
    'PriceSource', 'SettablePriceFeed',
    # Token
    'InMemoryToken', 'TokenAccount',
]

__version__ = '1.0.0'
