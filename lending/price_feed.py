"""
price_feed.py - Price state for ledger valuation

Provides the single price the ledger values collateral with: the 18-decimal
fixed-point price of one base-asset unit in quote-asset units.

Classes:
- PriceSource: Protocol defining the read interface
- SettablePriceFeed: A scalar anyone may overwrite (last write wins, no history)

SettablePriceFeed deliberately has no access control. It exists so tests and
monitoring tools can move the market at will; it is not an oracle.
"""

from typing import Protocol, runtime_checkable

from .core import WAD, InvalidInput, _is_amount


@runtime_checkable
class PriceSource(Protocol):
    """Protocol for the ledger's price input."""

    def get_price(self) -> int:
        """Return the current price, 18-decimal fixed point."""
        ...


class SettablePriceFeed:
    """
    Mutable price scalar.

    Example:
        feed = SettablePriceFeed(2000 * WAD)
        feed.set_price(1300 * WAD)
        feed.get_price()   # 1300 * 10**18
    """

    def __init__(self, initial_price: int):
        self._price = self._validate(initial_price)

    @staticmethod
    def _validate(price: int) -> int:
        if not _is_amount(price):
            raise InvalidInput(f"price must be int, got {type(price).__name__}")
        if price <= 0:
            raise InvalidInput(f"price must be positive, got {price}")
        return price

    def get_price(self) -> int:
        return self._price

    def set_price(self, new_price: int) -> int:
        """Overwrite the price and return the previous one."""
        previous = self._price
        self._price = self._validate(new_price)
        return previous

    def __repr__(self):
        whole, frac = divmod(self._price, WAD)
        return f"SettablePriceFeed({whole}.{frac:018d})"
