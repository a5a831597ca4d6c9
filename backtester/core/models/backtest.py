"""
Backtest configuration, equity curve, metrics and results models.
"""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime

from backtester.core.enums import BacktestPhase, Timeframe
from backtester.core.exceptions.backtest import ConfigurationError, ValidationError
from backtester.core.types.financial import MS_PER_DAY
from backtester.core.utils.validation import (
    validate_percentage,
    validate_positive,
    validate_score,
    validate_symbol,
)

from .trade import Trade


def generate_id() -> str:
    """Generate a short unique identifier for configs, trades and results."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for a backtest execution.

    Dates are unix timestamps in milliseconds.
    """

    symbol: str
    start_date: int
    end_date: int
    timeframe: Timeframe = Timeframe.D1
    initial_capital: float = 10000.0
    position_size_percent: float = 10.0
    confidence_threshold: float = 70.0
    max_concurrent_trades: int = 1  # Accepted but only one position is ever held
    include_news: bool = False
    id: str = field(default_factory=generate_id)

    def __post_init__(self) -> None:
        """Accept timeframe strings such as "1h"."""
        if not isinstance(self.timeframe, Timeframe):
            object.__setattr__(self, "timeframe", Timeframe.from_string(str(self.timeframe)))

    @property
    def position_size(self) -> float:
        """Fixed dollar amount allocated to every trade."""
        return self.initial_capital * (self.position_size_percent / 100)

    @property
    def start_datetime(self) -> datetime:
        """Start date as an aware UTC datetime."""
        return datetime.fromtimestamp(self.start_date / 1000, tz=UTC)

    @property
    def end_datetime(self) -> datetime:
        """End date as an aware UTC datetime."""
        return datetime.fromtimestamp(self.end_date / 1000, tz=UTC)

    def duration_days(self) -> float:
        """Calculate duration of backtest in calendar days."""
        return (self.end_date - self.start_date) / MS_PER_DAY

    def is_valid_date_range(self) -> bool:
        """Validate that end_date is after start_date."""
        return self.end_date > self.start_date

    def is_valid_position_size(self) -> bool:
        """Validate position size percent is in (0, 100]."""
        return 0 < self.position_size_percent <= 100

    def is_valid_confidence_threshold(self) -> bool:
        """Validate confidence threshold is in [0, 100]."""
        return 0 <= self.confidence_threshold <= 100

    def validate(self) -> None:
        """Validate every configuration rule at once.

        Raises:
            ConfigurationError: Listing all violated rules
        """
        problems: list[str] = []
        checks = [
            lambda: validate_symbol(self.symbol),
            lambda: validate_positive(self.initial_capital, "initial_capital"),
            lambda: validate_percentage(self.position_size_percent, "position_size_percent"),
            lambda: validate_score(self.confidence_threshold, "confidence_threshold"),
            lambda: validate_positive(self.max_concurrent_trades, "max_concurrent_trades"),
        ]
        for check in checks:
            try:
                check()
            except ValidationError as e:
                problems.append(str(e))

        if not self.is_valid_date_range():
            problems.append("end_date must be after start_date")

        if problems:
            raise ConfigurationError(problems)

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "timeframe": self.timeframe.value,
            "initial_capital": self.initial_capital,
            "position_size_percent": self.position_size_percent,
            "confidence_threshold": self.confidence_threshold,
            "max_concurrent_trades": self.max_concurrent_trades,
            "include_news": self.include_news,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BacktestConfig":
        """Build a config from a dictionary produced by to_dict()."""
        values = dict(data)
        if not values.get("id"):
            values.pop("id", None)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class EquityPoint:
    """Equity snapshot recorded once per simulated step."""

    date: int
    equity: float
    drawdown_percent: float

    def to_dict(self) -> dict:
        """Convert equity point to dictionary."""
        return {"date": self.date, "equity": self.equity, "drawdown_percent": self.drawdown_percent}


@dataclass(frozen=True)
class BacktestMetrics:
    """Performance and risk statistics derived from trades and the equity curve."""

    total_trades: int = 0
    completed_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    max_drawdown_percent: float = 0.0
    sharpe_ratio: float = 0.0
    avg_holding_days: float = 0.0
    total_return: float = 0.0
    total_return_percent: float = 0.0
    annualized_return: float = 0.0
    longest_win_streak: int = 0
    longest_lose_streak: int = 0
    expectancy: float = 0.0

    @classmethod
    def empty(cls) -> "BacktestMetrics":
        """Zeroed metrics reported for failed runs."""
        return cls()

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class BacktestResult:
    """Results from a backtest execution, never mutated after return."""

    id: str
    config: BacktestConfig
    trades: tuple[Trade, ...]
    metrics: BacktestMetrics
    equity_curve: tuple[EquityPoint, ...]
    errors: tuple[str, ...]
    completed_at: int
    duration: int
    phase: BacktestPhase = BacktestPhase.COMPLETE

    @property
    def is_complete(self) -> bool:
        """Check if the run finished normally."""
        return self.phase == BacktestPhase.COMPLETE

    @property
    def is_cancelled(self) -> bool:
        """Check if the run was cancelled through its token."""
        return self.phase == BacktestPhase.CANCELLED

    @property
    def is_failed(self) -> bool:
        """Check if the run aborted with an error."""
        return self.phase == BacktestPhase.ERROR

    def is_profitable(self) -> bool:
        """Check if the backtest was profitable."""
        return self.metrics.total_return > 0.0

    def performance_summary(self) -> dict:
        """Get a summary of key performance metrics."""
        final_equity = (
            self.equity_curve[-1].equity if self.equity_curve else self.config.initial_capital
        )
        return {
            "initial_value": self.config.initial_capital,
            "final_value": final_equity,
            "total_return_percent": self.metrics.total_return_percent,
            "win_rate": self.metrics.win_rate,
            "total_trades": self.metrics.total_trades,
            "duration_days": self.config.duration_days(),
        }

    def to_dict(self) -> dict:
        """Convert results to dictionary."""
        return {
            "id": self.id,
            "config": self.config.to_dict(),
            "trades": [trade.to_dict() for trade in self.trades],
            "metrics": self.metrics.to_dict(),
            "equity_curve": [point.to_dict() for point in self.equity_curve],
            "errors": list(self.errors),
            "completed_at": self.completed_at,
            "duration": self.duration,
            "phase": self.phase.value,
        }
