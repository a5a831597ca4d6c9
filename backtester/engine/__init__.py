"""
Backtest simulation engine.

Replays candles through a decision oracle one step at a time, manages a
single open position, tracks equity and derives performance metrics.
"""

from .analyzer import analyze_backtest_results, calculate_detailed_stats
from .metrics import BacktestMetricsCalculator, calculate_backtest_metrics
from .progress import CancellationToken, ProgressReporter
from .runner import BacktestEngine, estimate_ai_calls, run_backtest

__all__ = [
    "BacktestEngine",
    "BacktestMetricsCalculator",
    "CancellationToken",
    "ProgressReporter",
    "analyze_backtest_results",
    "calculate_backtest_metrics",
    "calculate_detailed_stats",
    "estimate_ai_calls",
    "run_backtest",
]
