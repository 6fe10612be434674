"""
test_core_types.py - Unit tests for core value types

Tests:
- AccountPosition validation and value semantics
- MarketTerms defaults and validation
- LedgerEvent fields and repr
- Exception hierarchy
"""

import pytest
from dataclasses import replace, FrozenInstanceError
from lending import (
    AccountPosition, MarketTerms, LedgerEvent, EventType, TokenGateway,
    InMemoryToken,
    LendingError, InvalidInput, UndercollateralizedAction, NotLiquidatable,
    InvalidLiquidationAmount, ExternalTransferFailure,
    LIQUIDATION_THRESHOLD, LIQUIDATION_BONUS, PRECISION,
)


class TestAccountPosition:
    """Tests for AccountPosition."""

    def test_defaults_to_empty(self):
        position = AccountPosition()
        assert position.collateral == 0
        assert position.debt == 0
        assert position.is_empty()

    def test_is_frozen(self):
        position = AccountPosition(1, 2)
        with pytest.raises(FrozenInstanceError):
            position.collateral = 5

    def test_replace_produces_new_value(self):
        position = AccountPosition(10, 5)
        staged = replace(position, debt=0)
        assert position.debt == 5
        assert staged == AccountPosition(10, 0)

    def test_negative_collateral_rejected(self):
        with pytest.raises(ValueError, match="collateral cannot be negative"):
            AccountPosition(-1, 0)

    def test_negative_debt_rejected(self):
        with pytest.raises(ValueError, match="debt cannot be negative"):
            AccountPosition(0, -1)

    def test_replace_cannot_underflow(self):
        with pytest.raises(ValueError):
            replace(AccountPosition(1, 0), collateral=-1)

    def test_float_rejected(self):
        with pytest.raises(ValueError, match="collateral must be int"):
            AccountPosition(1.5, 0)

    def test_bool_rejected(self):
        with pytest.raises(ValueError, match="debt must be int"):
            AccountPosition(0, True)


class TestMarketTerms:
    """Tests for MarketTerms."""

    def test_defaults(self):
        terms = MarketTerms()
        assert terms.threshold_percent == LIQUIDATION_THRESHOLD == 150
        assert terms.liquidation_bonus_percent == LIQUIDATION_BONUS == 110
        assert terms.precision == PRECISION == 100

    @pytest.mark.parametrize("field", ["threshold_percent", "liquidation_bonus_percent", "precision"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(ValueError, match=f"{field} must be positive"):
            MarketTerms(**{field: 0})

    def test_non_int_rejected(self):
        with pytest.raises(ValueError, match="must be int"):
            MarketTerms(threshold_percent=1.5)


class TestLedgerEvent:
    """Tests for LedgerEvent."""

    def test_liquidation_event(self):
        event = LedgerEvent(EventType.LIQUIDATE, "alice", 100, 7, counterparty="bob", collateral_seized=55)
        assert event.liquidator == "bob"
        assert "Liquidate" in repr(event)
        assert "seized=55" in repr(event)

    def test_liquidator_only_for_liquidations(self):
        event = LedgerEvent(EventType.DEPOSIT, "alice", 100, 0)
        assert event.liquidator is None

    def test_price_update_has_no_account(self):
        event = LedgerEvent(EventType.PRICE_UPDATE, None, 1300, 3)
        assert "account=" not in repr(event)

    def test_event_type_values_match_names(self):
        assert {e.value for e in EventType} == {
            "Deposit", "Withdraw", "Borrow", "Repay", "Liquidate", "PriceUpdate",
        }


class TestExceptions:
    """All operation errors share one base."""

    @pytest.mark.parametrize("exc", [
        InvalidInput, UndercollateralizedAction, NotLiquidatable,
        InvalidLiquidationAmount, ExternalTransferFailure,
    ])
    def test_subclass_of_lending_error(self, exc):
        assert issubclass(exc, LendingError)


class TestTokenGatewayProtocol:

    def test_token_account_satisfies_protocol(self):
        assert isinstance(InMemoryToken("USD").account("market"), TokenGateway)

    def test_plain_object_does_not(self):
        assert not isinstance(object(), TokenGateway)
