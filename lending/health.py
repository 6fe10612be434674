"""
health.py - Health Factor and Liquidation Arithmetic

Pure functions computing solvency and liquidation amounts for a single
collateral/debt position. No ledger state, no hidden inputs: every function
takes collateral, debt and price explicitly, so each is trivially testable and
can be re-run under stressed prices.

All amounts are integers. Prices are 18-decimal fixed point (WAD = 1e18 is a
price of 1.0). Every division is a floor division applied in the documented
order; the truncation biases health factors downward, and reproducing it
exactly is what keeps results bit-compatible with the reference market.

Key Formulas:
    collateral_value = collateral * price // WAD
    max_safe_debt    = collateral_value * precision // threshold_percent
    health_factor    = max_safe_debt * precision // debt      (MAX_HEALTH_FACTOR if debt == 0)
    seize            = (debt_to_cover * WAD // price) * bonus_percent // precision
"""

from __future__ import annotations

from .core import (
    WAD, LIQUIDATION_THRESHOLD, LIQUIDATION_BONUS, PRECISION, MAX_HEALTH_FACTOR,
)


def calculate_collateral_value(collateral: int, price: int) -> int:
    """
    Value of collateral in quote-asset units.

    PURE FUNCTION - All inputs explicit.
    """
    return collateral * price // WAD


def calculate_max_safe_debt(
    collateral: int,
    price: int,
    threshold_percent: int = LIQUIDATION_THRESHOLD,
    precision: int = PRECISION,
) -> int:
    """
    Debt level at which the health factor equals exactly `precision`.

    PURE FUNCTION - All inputs explicit.
    """
    collateral_value = calculate_collateral_value(collateral, price)
    return collateral_value * precision // threshold_percent


def calculate_health_factor(
    collateral: int,
    debt: int,
    price: int,
    threshold_percent: int = LIQUIDATION_THRESHOLD,
    precision: int = PRECISION,
) -> int:
    """
    Compute a position's scaled solvency ratio.

    PURE FUNCTION - All inputs explicit, no hidden state.

    Args:
        collateral: Base asset held, smallest unit
        debt: Quote asset owed, 18-decimal fixed point
        price: Quote per base unit, 18-decimal fixed point
        threshold_percent: Required collateralization (150 = 150%)
        precision: Percentage scale (100 = 1.0)

    Returns:
        Health factor scaled by precision. A value >= precision is solvent,
        < precision is eligible for liquidation. MAX_HEALTH_FACTOR when debt is 0.

    Example:
        # 10 units at 2000, 10 000 debt -> 20 000 value -> 13 333 safe debt -> 133
        calculate_health_factor(10 * WAD, 10_000 * WAD, 2000 * WAD)
    """
    if debt == 0:
        return MAX_HEALTH_FACTOR
    max_safe_debt = calculate_max_safe_debt(collateral, price, threshold_percent, precision)
    return max_safe_debt * precision // debt


def is_position_liquidatable(
    collateral: int,
    debt: int,
    price: int,
    threshold_percent: int = LIQUIDATION_THRESHOLD,
    precision: int = PRECISION,
) -> bool:
    """True iff the position carries debt and its health factor is below precision."""
    if debt == 0:
        return False
    return calculate_health_factor(collateral, debt, price, threshold_percent, precision) < precision


def calculate_seize_amount(
    debt_to_cover: int,
    price: int,
    bonus_percent: int = LIQUIDATION_BONUS,
    precision: int = PRECISION,
) -> int:
    """
    Collateral a liquidator receives for repaying debt_to_cover.

    PURE FUNCTION - All inputs explicit.

    The repaid debt is converted to base units first and the bonus applied
    second, each step truncating:
        seize = (debt_to_cover * WAD // price) * bonus_percent // precision

    Raises:
        ValueError: If price is not positive.
    """
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    collateral_value_of_debt = debt_to_cover * WAD // price
    return collateral_value_of_debt * bonus_percent // precision


def calculate_max_borrow(
    collateral: int,
    debt: int,
    price: int,
    threshold_percent: int = LIQUIDATION_THRESHOLD,
    precision: int = PRECISION,
) -> int:
    """
    Largest additional debt that keeps the health factor >= precision.

    floor(m * p / d) >= p holds exactly when d <= m, so the headroom is
    max_safe_debt - debt with no rounding slack.
    """
    max_safe_debt = calculate_max_safe_debt(collateral, price, threshold_percent, precision)
    return max(0, max_safe_debt - debt)


def calculate_max_withdraw(
    collateral: int,
    debt: int,
    price: int,
    threshold_percent: int = LIQUIDATION_THRESHOLD,
    precision: int = PRECISION,
) -> int:
    """
    Largest collateral withdrawal that keeps the health factor >= precision.

    The smallest collateral still supporting `debt` is found by inverting both
    floor divisions with ceilings:
        min_value      = ceil(debt * threshold_percent / precision)
        min_collateral = ceil(min_value * WAD / price)

    Returns:
        The full collateral when there is no debt, 0 when the position is
        already at or below the boundary.
    """
    if debt == 0:
        return collateral
    if price <= 0:
        return 0
    min_value = -(-debt * threshold_percent // precision)
    min_collateral = -(-min_value * WAD // price)
    return max(0, collateral - min_collateral)
