"""
Validation utilities for core domain models.

Provides consistent validation across the application. Each validator
returns the validated value or raises ValidationError.
"""

from backtester.core.exceptions.backtest import ValidationError


def validate_symbol(symbol: object, param_name: str = "symbol") -> str:
    """Validate that a value is a non-empty ticker symbol.

    Args:
        symbol: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The symbol, stripped and upper-cased

    Raises:
        ValidationError: If symbol is not a non-empty string
    """
    if not isinstance(symbol, str):
        raise ValidationError(f"{param_name} must be a string, got {type(symbol).__name__}")
    cleaned = symbol.strip().upper()
    if not cleaned:
        raise ValidationError(f"{param_name} must not be empty")
    return cleaned


def validate_positive(value: float, param_name: str) -> float:
    """Validate that a numeric value is positive.

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_percentage(value: float, param_name: str = "percentage") -> float:
    """Validate that a value is a valid position percentage (0 exclusive, 100 inclusive).

    Raises:
        ValidationError: If value is not in (0, 100]
    """
    if value <= 0 or value > 100:
        raise ValidationError(f"{param_name} must be between 0 and 100, got {value}")
    return value


def validate_score(value: float, param_name: str = "score") -> float:
    """Validate that a value is a 0-100 score (both ends inclusive).

    Raises:
        ValidationError: If value is not in [0, 100]
    """
    if value < 0 or value > 100:
        raise ValidationError(f"{param_name} must be between 0 and 100, got {value}")
    return value
