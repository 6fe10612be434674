"""
Core types and constants for the lending ledger.

This module provides the foundational data structures shared by every other module:
1. Constants: fixed-point scale and default market parameters
2. Configuration: MarketTerms, the immutable parameter sheet of the market
3. Immutable data structures: AccountPosition, PositionSummary, LiquidationQuote, LedgerEvent
4. Protocols: TokenGateway, the external asset-transfer collaborator
5. Exceptions: LendingError and the operation-specific error types

Nothing in this module mutates ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# 18-decimal fixed-point scale used for prices and quote-asset amounts.
WAD = 10 ** 18

# Minimum collateral-value-to-debt ratio, in percent.
LIQUIDATION_THRESHOLD = 150

# Collateral awarded to a liquidator per unit of debt value repaid, in percent.
LIQUIDATION_BONUS = 110

# Scale factor for percentages and health factors (100 = 1.0).
PRECISION = 100

# Health factor reported for a position with no debt.
MAX_HEALTH_FACTOR = 2 ** 256 - 1


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def _is_amount(value) -> bool:
    """True for plain ints (bool excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_account(account: str, label: str = "account") -> None:
    if not isinstance(account, str) or not account.strip():
        raise ValueError(f"{label} cannot be empty")


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class MarketTerms:
    """
    Immutable parameter sheet for the market - set at construction, never changes.

    Attributes:
        threshold_percent: Required collateral value per unit of debt, in percent (150 = 150%).
        liquidation_bonus_percent: Collateral paid to a liquidator per unit of repaid
            debt value, in percent (110 = 10% bonus).
        precision: Percentage scale; a health factor equal to precision sits exactly
            on the liquidation boundary.
    """
    threshold_percent: int = LIQUIDATION_THRESHOLD
    liquidation_bonus_percent: int = LIQUIDATION_BONUS
    precision: int = PRECISION

    def __post_init__(self):
        for name in ('threshold_percent', 'liquidation_bonus_percent', 'precision'):
            value = getattr(self, name)
            if not _is_amount(value):
                raise ValueError(f"{name} must be int, got {type(value).__name__}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")


# ============================================================================
# ENUMS
# ============================================================================

class EventType(Enum):
    """Kind of successful mutation recorded in the event log."""
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    BORROW = "Borrow"
    REPAY = "Repay"
    LIQUIDATE = "Liquidate"
    PRICE_UPDATE = "PriceUpdate"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """Base exception for all lending ledger errors."""
    pass


class InvalidInput(LendingError):
    """Raised for a zero amount, or a repay/withdraw that exceeds the recorded balance."""
    pass


class UndercollateralizedAction(LendingError):
    """Raised when a borrow or withdraw would leave the position below the threshold."""
    pass


class NotLiquidatable(LendingError):
    """Raised when a liquidation targets a position with no debt or a health factor at or above the threshold."""
    pass


class InvalidLiquidationAmount(LendingError):
    """Raised when debt_to_cover is zero, exceeds the target's debt, or would seize more collateral than exists."""
    pass


class ExternalTransferFailure(LendingError):
    """Raised when a token gateway call returns False or raises."""
    pass


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class TokenGateway(Protocol):
    """
    Asset-transfer interface the ledger consumes for one asset.

    A gateway is bound to the ledger's own account: transfer() pays out of the
    ledger's holdings, transfer_from() pulls from a third party (which must have
    authorized the ledger). Returning False or raising is treated as a failed
    transfer and aborts the enclosing ledger operation.
    """

    def transfer(self, to: str, amount: int) -> bool:
        """Move amount from the ledger's holdings to `to`."""
        ...

    def transfer_from(self, source: str, to: str, amount: int) -> bool:
        """Move amount from `source` to `to` on the ledger's authority."""
        ...

    def balance_of(self, account: str) -> int:
        """Return the amount held by account."""
        ...


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountPosition:
    """
    Collateral/debt pair of one account.

    Attributes:
        collateral: Base asset deposited, in its smallest unit.
        debt: Quote asset owed, 18-decimal fixed point.

    Positions are values: every change produces a new instance via
    dataclasses.replace(), which is what lets the ledger stage a change and
    commit it only once every check and transfer has succeeded.
    """
    collateral: int = 0
    debt: int = 0

    def __post_init__(self):
        if not _is_amount(self.collateral):
            raise ValueError(f"collateral must be int, got {type(self.collateral).__name__}")
        if not _is_amount(self.debt):
            raise ValueError(f"debt must be int, got {type(self.debt).__name__}")
        if self.collateral < 0:
            raise ValueError(f"collateral cannot be negative, got {self.collateral}")
        if self.debt < 0:
            raise ValueError(f"debt cannot be negative, got {self.debt}")

    def is_empty(self) -> bool:
        return self.collateral == 0 and self.debt == 0


@dataclass(frozen=True, slots=True)
class PositionSummary:
    """Read-only view of a position together with its health factor."""
    collateral: int
    debt: int
    health_factor: int


@dataclass(frozen=True, slots=True)
class LiquidationQuote:
    """
    Result of a read-only liquidation preview.

    Attributes:
        target: Account that would be liquidated.
        debt_to_cover: Quote asset the liquidator would repay.
        collateral_to_seize: Base asset the liquidator would receive.
        health_factor: Target's current health factor.
        liquidatable: Whether the target is currently eligible for liquidation.
        executable: Whether liquidate() with these arguments would pass every
            precondition (eligibility, amount bounds, enough collateral).
    """
    target: str
    debt_to_cover: int
    collateral_to_seize: int
    health_factor: int
    liquidatable: bool
    executable: bool


@dataclass(frozen=True, slots=True)
class LedgerEvent:
    """
    Immutable record of a successful mutation - the signal consumed by monitors.

    Attributes:
        event_type: Kind of mutation.
        account: Account whose position changed (None for price updates).
        amount: Amount moved; the new price for PRICE_UPDATE; debt covered for LIQUIDATE.
        sequence_number: Monotonic position in the ledger's event log.
        counterparty: Liquidator for LIQUIDATE, otherwise None.
        collateral_seized: Base asset paid to the liquidator for LIQUIDATE, otherwise 0.
    """
    event_type: EventType
    account: Optional[str]
    amount: int
    sequence_number: int
    counterparty: Optional[str] = None
    collateral_seized: int = 0

    @property
    def liquidator(self) -> Optional[str]:
        return self.counterparty if self.event_type is EventType.LIQUIDATE else None

    def __repr__(self) -> str:
        parts = [f"#{self.sequence_number} {self.event_type.value}"]
        if self.account is not None:
            parts.append(f"account={self.account}")
        parts.append(f"amount={self.amount}")
        if self.counterparty is not None:
            parts.append(f"counterparty={self.counterparty}")
        if self.collateral_seized:
            parts.append(f"seized={self.collateral_seized}")
        return f"LedgerEvent({', '.join(parts)})"
