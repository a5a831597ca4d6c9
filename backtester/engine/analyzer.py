"""
Backtest results analyzer.

Derives optimization insights from a finished BacktestResult: which
patterns and weekdays work, whether oracle confidence predicts outcomes,
and rule-based suggestions for the next configuration.
"""

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime

from backtester.core.enums import ActionType, TradeOutcome
from backtester.core.models.backtest import BacktestResult
from backtester.core.models.insights import BacktestInsights, DetailedStats, GroupStats, SideStats
from backtester.core.models.trade import Trade

from .metrics import calculate_profit_factor

MIN_GROUP_SAMPLE = 3  # Minimum trades before a pattern or weekday is ranked
MIN_CONFIDENCE_SAMPLE = 5
DEFAULT_CONFIDENCE_THRESHOLD = 70.0
HIGH_CONFIDENCE = 80
LOW_CONFIDENCE = 70
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def analyze_backtest_results(result: BacktestResult) -> BacktestInsights:
    """Analyze backtest results and generate insights."""
    trades = result.trades
    best_patterns, worst_patterns = analyze_patterns(trades)
    correlation, optimal_threshold = analyze_confidence(trades)

    return BacktestInsights(
        best_patterns=best_patterns,
        worst_patterns=worst_patterns,
        best_day_of_week=analyze_day_of_week(trades),
        performance_by_regime=analyze_regimes(trades),
        confidence_correlation=correlation,
        optimal_confidence_threshold=optimal_threshold,
        suggestions=generate_optimization_suggestions(result),
    )


def _win_rate(trades: Sequence[Trade]) -> float:
    if not trades:
        return 0.0
    return sum(1 for t in trades if t.outcome == TradeOutcome.WIN) / len(trades) * 100


def analyze_patterns(trades: Sequence[Trade]) -> tuple[list[GroupStats], list[GroupStats]]:
    """Rank candlestick patterns recorded at entry by win rate.

    Returns:
        (best five, worst five), each from patterns seen at least 3 times
    """
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in trades:
        for pattern in trade.patterns:
            groups[pattern].append(trade)

    ranked = sorted(
        (
            GroupStats(pattern, _win_rate(members), len(members))
            for pattern, members in groups.items()
            if len(members) >= MIN_GROUP_SAMPLE
        ),
        key=lambda stats: stats.win_rate,
        reverse=True,
    )
    return ranked[:5], list(reversed(ranked[-5:]))


def analyze_day_of_week(trades: Sequence[Trade]) -> GroupStats:
    """Weekday (UTC, by entry date) with the best win rate."""
    by_day: list[list[Trade]] = [[] for _ in DAY_NAMES]
    for trade in trades:
        weekday = datetime.fromtimestamp(trade.entry_date, tz=UTC).weekday()
        by_day[(weekday + 1) % 7].append(trade)

    best = GroupStats("N/A", 0.0, 0)
    for day_name, members in zip(DAY_NAMES, by_day, strict=True):
        if len(members) < MIN_GROUP_SAMPLE:
            continue
        win_rate = _win_rate(members)
        if win_rate > best.win_rate:
            best = GroupStats(day_name, win_rate, len(members))
    return best


def analyze_regimes(trades: Sequence[Trade]) -> list[GroupStats]:
    """Win rate and average return per market regime recorded at entry."""
    groups: dict[str, list[Trade]] = defaultdict(list)
    for trade in trades:
        if trade.regime:
            groups[trade.regime].append(trade)

    return [
        GroupStats(
            regime,
            _win_rate(members),
            len(members),
            sum(t.profit_loss_percent for t in members) / len(members),
        )
        for regime, members in sorted(groups.items())
    ]


def analyze_confidence(trades: Sequence[Trade]) -> tuple[float, float]:
    """
    Relate oracle confidence to outcomes.

    Correlation is the win-rate gap between high (>= 80) and low (< 70)
    confidence trades normalized to 0-1. The optimal threshold is the
    5-point step in 50..90 whose filtered trades have the best profit
    factor (percent based) with at least 5 trades.

    Returns:
        (correlation, optimal_threshold)
    """
    completed = [t for t in trades if t.outcome.is_completed]
    if len(completed) < MIN_CONFIDENCE_SAMPLE:
        return 0.0, DEFAULT_CONFIDENCE_THRESHOLD

    high = [t for t in completed if t.confidence >= HIGH_CONFIDENCE]
    low = [t for t in completed if t.confidence < LOW_CONFIDENCE]
    correlation = (_win_rate(high) - _win_rate(low)) / 100 / 2 + 0.5

    optimal_threshold = DEFAULT_CONFIDENCE_THRESHOLD
    best_profit_factor = 0.0
    for threshold in range(50, 91, 5):
        filtered = [t for t in completed if t.confidence >= threshold]
        if len(filtered) < MIN_CONFIDENCE_SAMPLE:
            continue

        gross_profit = sum(
            t.profit_loss_percent for t in filtered if t.outcome == TradeOutcome.WIN
        )
        gross_loss = abs(
            sum(t.profit_loss_percent for t in filtered if t.outcome == TradeOutcome.LOSS)
        )
        profit_factor = calculate_profit_factor(gross_profit, gross_loss)
        if profit_factor > best_profit_factor:
            best_profit_factor = profit_factor
            optimal_threshold = float(threshold)

    return correlation, optimal_threshold


def generate_optimization_suggestions(result: BacktestResult) -> list[str]:
    """Rule-based suggestions for improving the next backtest configuration."""
    metrics = result.metrics
    config = result.config
    suggestions: list[str] = []

    if metrics.win_rate < 45:
        suggestions.append(
            "Win rate is below 45%. Consider increasing the confidence threshold "
            "to filter out weak signals."
        )
    elif metrics.win_rate < 55:
        suggestions.append(
            "Win rate is moderate. Fine-tuning the confidence threshold may improve results."
        )

    if metrics.profit_factor < 1.0:
        suggestions.append(
            "Profit factor is below 1.0 (losing money overall). "
            "Review price target and stop loss levels."
        )
    elif metrics.profit_factor < 1.5:
        suggestions.append(
            "Profit factor is weak. Consider widening price targets or tightening stop losses."
        )

    if metrics.max_drawdown_percent > 25:
        suggestions.append(
            "Maximum drawdown exceeds 25%. Consider reducing position size to limit risk."
        )
    elif metrics.max_drawdown_percent > 15:
        suggestions.append(
            "Drawdown is elevated. Consider adding position sizing rules based on "
            "market volatility."
        )

    if len(result.trades) < 10:
        suggestions.append(
            "Very few trades generated. Consider lowering the confidence threshold "
            "or extending the backtest period."
        )

    if metrics.avg_loss > metrics.avg_win:
        suggestions.append(
            "Average loss exceeds average win. Tighten stop losses or widen price targets."
        )

    if metrics.sharpe_ratio < 0.5:
        suggestions.append(
            "Risk-adjusted returns are poor (Sharpe < 0.5). "
            "The strategy may not be suitable for this market."
        )
    elif metrics.sharpe_ratio >= 1.5:
        suggestions.append(
            "Strong risk-adjusted returns (Sharpe > 1.5). "
            "Consider increasing position size gradually."
        )

    if metrics.avg_holding_days > 10:
        suggestions.append(
            "Long average holding period. Consider using tighter targets for faster exits."
        )
    elif metrics.avg_holding_days < 1:
        suggestions.append(
            "Very short holding period. Ensure this aligns with your trading style and costs."
        )

    if metrics.longest_lose_streak >= 5:
        suggestions.append(
            f"Experienced {metrics.longest_lose_streak}-trade losing streak. "
            "Consider adding circuit breakers or pause rules."
        )

    if config.position_size_percent > 20:
        suggestions.append(
            "Large position size (>20%). Consider reducing to limit per-trade risk."
        )

    if not suggestions:
        if metrics.win_rate >= 60 and metrics.profit_factor >= 2.0:
            suggestions.append(
                "Excellent performance! Consider live trading with small position sizes "
                "to validate."
            )
        else:
            suggestions.append(
                "Solid results. Continue monitoring and consider extending the backtest "
                "period for more data."
            )

    return suggestions


def _side_stats(trades: Sequence[Trade]) -> SideStats:
    if not trades:
        return SideStats(count=0, win_rate=0.0, avg_return=0.0)
    return SideStats(
        count=len(trades),
        win_rate=_win_rate(trades),
        avg_return=sum(t.profit_loss_percent for t in trades) / len(trades),
    )


def calculate_detailed_stats(trades: Sequence[Trade]) -> DetailedStats:
    """Per-side statistics and confidence buckets over completed trades."""
    completed = [t for t in trades if t.outcome.is_completed]
    return DetailedStats(
        buy_stats=_side_stats([t for t in completed if t.action == ActionType.BUY]),
        sell_stats=_side_stats([t for t in completed if t.action == ActionType.SELL]),
        confidence_distribution={
            "high": sum(1 for t in completed if t.confidence >= HIGH_CONFIDENCE),
            "medium": sum(
                1 for t in completed if LOW_CONFIDENCE <= t.confidence < HIGH_CONFIDENCE
            ),
            "low": sum(1 for t in completed if t.confidence < LOW_CONFIDENCE),
        },
    )
