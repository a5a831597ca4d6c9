"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    HUNDRED,
    MS_PER_DAY,
    PRICE_DECIMALS,
    SECONDS_PER_DAY,
    ZERO,
    calculate_days_held,
    calculate_pnl_dollar,
    calculate_pnl_percent,
    calculate_shares,
    round_half_up,
    round_price,
)

__all__ = [
    # Constants
    "HUNDRED",
    "MS_PER_DAY",
    "PRICE_DECIMALS",
    "SECONDS_PER_DAY",
    "ZERO",
    # Utility functions
    "calculate_days_held",
    "calculate_pnl_dollar",
    "calculate_pnl_percent",
    "calculate_shares",
    "round_half_up",
    "round_price",
]
