"""
Performance metrics interface.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from backtester.core.models.backtest import BacktestConfig, BacktestMetrics, EquityPoint
from backtester.core.models.trade import Trade


class IMetricsCalculator(ABC):
    """Abstract interface for performance metrics calculation."""

    @abstractmethod
    def calculate_trade_metrics(self, trades: Sequence[Trade]) -> dict[str, float]:
        """Calculate trade statistics."""
        pass

    @abstractmethod
    def calculate_return_metrics(
        self, equity_curve: Sequence[EquityPoint], config: BacktestConfig
    ) -> dict[str, float]:
        """Calculate return metrics."""
        pass

    @abstractmethod
    def calculate_risk_metrics(self, equity_curve: Sequence[EquityPoint]) -> dict[str, float]:
        """Calculate risk-adjusted metrics."""
        pass

    @abstractmethod
    def calculate(
        self,
        trades: Sequence[Trade],
        equity_curve: Sequence[EquityPoint],
        config: BacktestConfig,
    ) -> BacktestMetrics:
        """Calculate the full metrics set."""
        pass
