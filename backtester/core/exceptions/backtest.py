"""
Custom exception hierarchy for the backtest engine.

This module defines domain-specific exceptions for better error handling.
The public entry point converts every one of them into a returned result.
"""


class BacktestException(Exception):
    """Base exception for all backtesting-related errors."""

    pass


class ValidationError(BacktestException):
    """Raised when input validation fails."""

    pass


class ConfigurationError(BacktestException):
    """Raised when a backtest configuration is invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(f"Invalid backtest configuration: {'; '.join(problems)}")


class DataError(BacktestException):
    """Raised when data access or processing fails."""

    pass


class InsufficientDataError(DataError):
    """Raised when fewer candles than required are available."""

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient data: need {required} candles, got {available}")


class OracleError(BacktestException):
    """Raised when the decision oracle fails to produce a recommendation."""

    def __init__(self, symbol: str, candle_time: int, reason: str):
        self.symbol = symbol
        self.candle_time = candle_time
        self.reason = reason
        super().__init__(f"Decision oracle failed for {symbol} at {candle_time}: {reason}")


class BacktestCancelledError(BacktestException):
    """Raised internally when a run is cancelled through its token."""

    def __init__(self, message: str = "Backtest cancelled"):
        super().__init__(message)


class PositionError(BacktestException):
    """Raised when position state machine operations fail."""

    pass


class PositionAlreadyOpenError(PositionError):
    """Raised when opening a position while another one is open."""

    def __init__(self, trade_id: str):
        self.trade_id = trade_id
        super().__init__(f"Position already open: {trade_id}")


class NoOpenPositionError(PositionError):
    """Raised when closing or marking a position while flat."""

    def __init__(self, operation: str = "operation"):
        self.operation = operation
        super().__init__(f"No open position for {operation}")


class TradeAlreadyClosedError(PositionError):
    """Raised when a finalized trade would be closed a second time."""

    def __init__(self, trade_id: str, outcome: str):
        self.trade_id = trade_id
        self.outcome = outcome
        super().__init__(f"Trade {trade_id} already closed with outcome={outcome}")
