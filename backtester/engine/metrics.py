"""
Backtest metrics calculation.

Every metric is a pure function of the finished trade ledger, the equity
curve and the configuration, so results can be recomputed independently
of the engine that produced them.
"""

import math
from collections.abc import Sequence

import numpy as np

from backtester.core.constants import (
    DAYS_PER_YEAR,
    PROFIT_FACTOR_SENTINEL,
    TRADING_DAYS_PER_YEAR,
)
from backtester.core.enums import TradeOutcome
from backtester.core.interfaces.metrics import IMetricsCalculator
from backtester.core.models.backtest import BacktestConfig, BacktestMetrics, EquityPoint
from backtester.core.models.trade import Trade
from backtester.core.types.financial import HUNDRED, MS_PER_DAY, ZERO


def calculate_daily_returns(equity_curve: Sequence[EquityPoint]) -> list[float]:
    """Step-over-step returns of the equity curve.

    A step starting from zero equity has no defined return and is skipped.
    """
    return [
        (current.equity - previous.equity) / previous.equity
        for previous, current in zip(equity_curve, equity_curve[1:])
        if previous.equity != 0
    ]


def calculate_sharpe_ratio(
    returns: Sequence[float], periods_per_year: int = TRADING_DAYS_PER_YEAR
) -> float:
    """
    Annualized Sharpe ratio with a zero risk-free rate.

    Uses the population standard deviation. Returns 0.0 when there are no
    returns or when their standard deviation is zero.
    """
    if len(returns) == 0:
        return ZERO

    values = np.asarray(returns, dtype=float)
    std_dev = float(np.std(values))
    if std_dev == 0:
        return ZERO
    return float(np.mean(values)) * math.sqrt(periods_per_year) / std_dev


def calculate_profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit over gross loss, with a finite sentinel when nothing was lost."""
    if gross_loss > 0:
        return gross_profit / gross_loss
    return PROFIT_FACTOR_SENTINEL if gross_profit > 0 else ZERO


def calculate_streaks(trades: Sequence[Trade]) -> tuple[int, int]:
    """
    Longest consecutive win and loss runs, scanning trades in order.

    Expired and pending trades neither extend nor reset a streak.

    Returns:
        (longest_win_streak, longest_lose_streak)
    """
    current_win = current_lose = 0
    longest_win = longest_lose = 0

    for trade in trades:
        if trade.outcome == TradeOutcome.WIN:
            current_win += 1
            current_lose = 0
            longest_win = max(longest_win, current_win)
        elif trade.outcome == TradeOutcome.LOSS:
            current_lose += 1
            current_win = 0
            longest_lose = max(longest_lose, current_lose)

    return longest_win, longest_lose


def calculate_annualized_return(total_return_percent: float, years: float) -> float:
    """Compound annual growth rate in percent; 0 for non-positive periods."""
    if years <= 0:
        return ZERO
    growth = 1 + total_return_percent / HUNDRED
    if growth <= 0:
        return -HUNDRED
    return (growth ** (1 / years) - 1) * HUNDRED


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else ZERO


class BacktestMetricsCalculator(IMetricsCalculator):
    """Computes the fixed metrics set of a backtest run."""

    def calculate_trade_metrics(self, trades: Sequence[Trade]) -> dict[str, float]:
        """Win rate, averages, profit factor, streaks and expectancy."""
        winners = [t for t in trades if t.outcome == TradeOutcome.WIN]
        losers = [t for t in trades if t.outcome == TradeOutcome.LOSS]
        completed = [t for t in trades if t.outcome.is_completed]

        win_rate = len(winners) / len(completed) * HUNDRED if completed else ZERO
        avg_win = _mean([t.profit_loss_percent for t in winners])
        # Magnitude of the mean loss percent, so a loss closed above entry offsets others
        avg_loss = abs(_mean([t.profit_loss_percent for t in losers]))

        gross_profit = sum(t.profit_loss_dollar for t in winners)
        gross_loss = abs(sum(t.profit_loss_dollar for t in losers))
        longest_win, longest_lose = calculate_streaks(trades)

        return {
            "total_trades": len(trades),
            "completed_trades": len(completed),
            "winning_trades": len(winners),
            "losing_trades": len(losers),
            "win_rate": win_rate,
            "avg_win": avg_win,
            "avg_loss": avg_loss,
            "profit_factor": calculate_profit_factor(gross_profit, gross_loss),
            "avg_holding_days": _mean([t.days_held for t in completed]),
            "longest_win_streak": longest_win,
            "longest_lose_streak": longest_lose,
            "expectancy": win_rate / HUNDRED * avg_win - (1 - win_rate / HUNDRED) * avg_loss,
        }

    def calculate_return_metrics(
        self, equity_curve: Sequence[EquityPoint], config: BacktestConfig
    ) -> dict[str, float]:
        """Total and annualized return from the final equity point."""
        final_equity = equity_curve[-1].equity if equity_curve else config.initial_capital
        total_return = final_equity - config.initial_capital
        total_return_percent = total_return / config.initial_capital * HUNDRED
        years = (config.end_date - config.start_date) / MS_PER_DAY / DAYS_PER_YEAR

        return {
            "total_return": total_return,
            "total_return_percent": total_return_percent,
            "annualized_return": calculate_annualized_return(total_return_percent, years),
        }

    def calculate_risk_metrics(self, equity_curve: Sequence[EquityPoint]) -> dict[str, float]:
        """Maximum drawdown and Sharpe ratio."""
        max_drawdown = max((point.drawdown_percent for point in equity_curve), default=ZERO)
        return {
            "max_drawdown": max_drawdown,
            "max_drawdown_percent": max_drawdown,
            "sharpe_ratio": calculate_sharpe_ratio(calculate_daily_returns(equity_curve)),
        }

    def calculate(
        self,
        trades: Sequence[Trade],
        equity_curve: Sequence[EquityPoint],
        config: BacktestConfig,
    ) -> BacktestMetrics:
        """Calculate the full metrics set."""
        return BacktestMetrics(
            **self.calculate_trade_metrics(trades),
            **self.calculate_return_metrics(equity_curve, config),
            **self.calculate_risk_metrics(equity_curve),
        )


def calculate_backtest_metrics(
    trades: Sequence[Trade], equity_curve: Sequence[EquityPoint], config: BacktestConfig
) -> BacktestMetrics:
    """Calculate metrics with the default calculator."""
    return BacktestMetricsCalculator().calculate(trades, equity_curve, config)
