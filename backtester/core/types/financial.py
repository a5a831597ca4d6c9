"""
Financial helpers for backtest P&L calculations.

All values are plain floats. Position sizing is fixed: every trade risks
the same dollar amount derived from the initial capital, so results do not
compound.
"""

import math

from backtester.core.enums import ActionType
from backtester.core.exceptions.backtest import ValidationError

PRICE_DECIMALS = 2  # 2 decimal places for USD prices

ZERO = 0.0
HUNDRED = 100.0
SECONDS_PER_DAY = 86400
MS_PER_DAY = SECONDS_PER_DAY * 1000


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round half away from zero for positive values, like Math.round.

    Python's built-in round() uses banker's rounding, which would turn
    0.25 days into 0.2 instead of 0.3.

    Examples:
        >>> round_half_up(0.25, 1)
        0.3
        >>> round_half_up(104.995, 2)
        105.0
    """
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def round_price(price: float) -> float:
    """Round price to cents."""
    return round_half_up(price, PRICE_DECIMALS)


def calculate_shares(position_size: float, entry_price: float) -> float:
    """Calculate the share count bought with a fixed dollar position size.

    Raises:
        ValidationError: If entry price is not positive
    """
    if entry_price <= ZERO:
        raise ValidationError(f"Entry price must be positive, got {entry_price}")
    return position_size / entry_price


def calculate_pnl_percent(action: ActionType, entry_price: float, exit_price: float) -> float:
    """Calculate P&L as a percentage of the entry price.

    Short positions profit when the price goes down.
    """
    if entry_price <= ZERO:
        raise ValidationError(f"Entry price must be positive, got {entry_price}")

    if action == ActionType.BUY:
        return (exit_price - entry_price) / entry_price * HUNDRED
    return (entry_price - exit_price) / entry_price * HUNDRED


def calculate_pnl_dollar(
    action: ActionType, entry_price: float, exit_price: float, position_size: float
) -> float:
    """Calculate P&L in dollars for a fixed dollar position size."""
    shares = calculate_shares(position_size, entry_price)
    if action == ActionType.BUY:
        return (exit_price - entry_price) * shares
    return (entry_price - exit_price) * shares


def calculate_days_held(entry_time: int, exit_time: int) -> float:
    """Calculate holding period in days, rounded to one decimal.

    Args:
        entry_time: Entry candle time in unix seconds
        exit_time: Exit candle time in unix seconds
    """
    return round_half_up((exit_time - entry_time) / SECONDS_PER_DAY, 1)
