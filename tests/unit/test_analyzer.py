"""
Unit tests for backtest results analysis.
"""

from datetime import UTC, datetime

import pytest

from backtester.core.enums import ActionType, TradeOutcome
from backtester.core.models.backtest import BacktestConfig, BacktestMetrics, BacktestResult
from backtester.core.models.trade import Trade
from backtester.engine.analyzer import (
    analyze_backtest_results,
    analyze_confidence,
    analyze_day_of_week,
    analyze_patterns,
    analyze_regimes,
    calculate_detailed_stats,
    generate_optimization_suggestions,
)

TUESDAY = int(datetime(2024, 1, 9, tzinfo=UTC).timestamp())
DAY = 86400


def make_trade(
    outcome: TradeOutcome,
    confidence: float = 75.0,
    action: ActionType = ActionType.BUY,
    entry_date: int = TUESDAY,
    patterns: tuple[str, ...] = (),
    regime: str | None = None,
) -> Trade:
    """Trade at 100 closed to +10% (win), -5% (loss) or +1% (expired)."""
    long = action == ActionType.BUY
    trade = Trade(
        id="t",
        entry_date=entry_date,
        symbol="AAPL",
        action=action,
        entry_price=100.0,
        price_target=110.0 if long else 90.0,
        stop_loss=95.0 if long else 105.0,
        confidence=confidence,
        patterns=patterns,
        regime=regime,
    )
    exits = {
        TradeOutcome.WIN: 110.0 if long else 90.0,
        TradeOutcome.LOSS: 95.0 if long else 105.0,
        TradeOutcome.EXPIRED: 101.0 if long else 99.0,
    }
    return trade.close(entry_date + 2 * DAY, exits[outcome], outcome, 1000.0)


def make_result(trades, metrics: BacktestMetrics | None = None, **config) -> BacktestResult:
    return BacktestResult(
        id="r",
        config=BacktestConfig(symbol="AAPL", start_date=0, end_date=DAY * 1000, **config),
        trades=tuple(trades),
        metrics=metrics or BacktestMetrics(),
        equity_curve=(),
        errors=(),
        completed_at=0,
        duration=0,
    )


class TestPatternAnalysis:
    """Test suite for pattern ranking."""

    def test_should_rank_patterns_with_enough_samples(self) -> None:
        """Test patterns need three trades and are ranked by win rate."""
        win, loss = TradeOutcome.WIN, TradeOutcome.LOSS
        trades = (
            [make_trade(win, patterns=("hammer",)) for _ in range(3)]
            + [make_trade(loss, patterns=("doji",)) for _ in range(2)]
            + [make_trade(win, patterns=("doji",))]
            + [make_trade(win, patterns=("engulfing",)) for _ in range(2)]
        )

        best, worst = analyze_patterns(trades)

        assert [p.label for p in best] == ["hammer", "doji"]
        assert best[0].win_rate == 100.0
        assert best[1].count == 3
        assert worst[0].label == "doji"

    def test_should_return_nothing_without_patterns(self) -> None:
        """Test trades without recorded patterns."""
        assert analyze_patterns([make_trade(TradeOutcome.WIN)]) == ([], [])


class TestDayOfWeekAnalysis:
    """Test suite for best weekday detection."""

    def test_should_pick_weekday_with_best_win_rate(self) -> None:
        """Test weekday grouping by UTC entry date."""
        tuesday = [make_trade(TradeOutcome.WIN) for _ in range(3)]
        wednesday = [make_trade(TradeOutcome.LOSS, entry_date=TUESDAY + DAY) for _ in range(3)]

        best = analyze_day_of_week(tuesday + wednesday)

        assert best.label == "Tuesday"
        assert best.win_rate == 100.0
        assert best.count == 3

    def test_should_default_to_not_available(self) -> None:
        """Test too few trades per day."""
        assert analyze_day_of_week([make_trade(TradeOutcome.WIN)]).label == "N/A"


class TestRegimeAnalysis:
    """Test suite for regime grouping."""

    def test_should_group_by_regime(self) -> None:
        """Test win rate and average return per regime."""
        trades = [
            make_trade(TradeOutcome.WIN, regime="trending"),
            make_trade(TradeOutcome.LOSS, regime="trending"),
            make_trade(TradeOutcome.WIN, regime="ranging"),
            make_trade(TradeOutcome.WIN),
        ]

        stats = analyze_regimes(trades)

        assert [s.label for s in stats] == ["ranging", "trending"]
        assert stats[1].win_rate == 50.0
        assert stats[1].avg_return == pytest.approx(2.5)


class TestConfidenceAnalysis:
    """Test suite for confidence correlation and threshold search."""

    def test_should_use_defaults_with_few_trades(self) -> None:
        """Test fewer than five completed trades."""
        trades = [make_trade(TradeOutcome.WIN) for _ in range(4)]

        assert analyze_confidence(trades) == (0.0, 70.0)

    def test_should_correlate_high_confidence_with_wins(self) -> None:
        """Test correlation and optimal threshold."""
        trades = [make_trade(TradeOutcome.WIN, confidence=85.0) for _ in range(5)] + [
            make_trade(TradeOutcome.LOSS, confidence=60.0) for _ in range(5)
        ]

        correlation, threshold = analyze_confidence(trades)

        assert correlation == 1.0
        assert threshold == 65.0  # first threshold keeping only winners

    def test_should_ignore_expired_trades(self) -> None:
        """Test only wins and losses count."""
        trades = [make_trade(TradeOutcome.EXPIRED) for _ in range(10)]

        assert analyze_confidence(trades) == (0.0, 70.0)


class TestSuggestions:
    """Test suite for optimization suggestions."""

    def test_should_flag_weak_strategy(self) -> None:
        """Test suggestions for a losing configuration."""
        metrics = BacktestMetrics(
            win_rate=30.0,
            profit_factor=0.6,
            max_drawdown_percent=30.0,
            avg_win=2.0,
            avg_loss=4.0,
            sharpe_ratio=0.1,
            avg_holding_days=12.0,
            longest_lose_streak=6,
        )

        suggestions = generate_optimization_suggestions(
            make_result([], metrics, position_size_percent=25.0)
        )

        assert len(suggestions) == 9
        assert suggestions[0].startswith("Win rate is below 45%")
        assert "6-trade losing streak" in suggestions[-2]
        assert suggestions[-1].startswith("Large position size")

    def test_should_praise_excellent_results(self) -> None:
        """Test the fallback suggestion for strong results."""
        metrics = BacktestMetrics(
            win_rate=65.0,
            profit_factor=2.5,
            sharpe_ratio=1.0,
            avg_holding_days=3.0,
        )
        trades = [make_trade(TradeOutcome.WIN) for _ in range(10)]

        suggestions = generate_optimization_suggestions(make_result(trades, metrics))

        assert suggestions == [
            "Excellent performance! Consider live trading with small position sizes to validate."
        ]


class TestDetailedStats:
    """Test suite for per-side statistics."""

    def test_should_split_by_side_and_confidence(self) -> None:
        """Test buy/sell stats and confidence buckets over completed trades."""
        trades = [
            make_trade(TradeOutcome.WIN, confidence=85.0),
            make_trade(TradeOutcome.LOSS, confidence=72.0),
            make_trade(TradeOutcome.WIN, confidence=60.0, action=ActionType.SELL),
            make_trade(TradeOutcome.EXPIRED, confidence=90.0),
        ]

        stats = calculate_detailed_stats(trades)

        assert stats.buy_stats.count == 2
        assert stats.buy_stats.win_rate == 50.0
        assert stats.buy_stats.avg_return == pytest.approx(2.5)
        assert stats.sell_stats.count == 1
        assert stats.sell_stats.avg_return == pytest.approx(10.0)
        assert stats.confidence_distribution == {"high": 1, "medium": 1, "low": 1}
        assert stats.to_dict()["buy_stats"]["count"] == 2


class TestAnalyzeBacktestResults:
    """Test suite for the combined insights."""

    def test_should_build_serializable_insights(self) -> None:
        """Test the insights object and its dictionary form."""
        trades = [make_trade(TradeOutcome.WIN, patterns=("hammer",)) for _ in range(3)]

        insights = analyze_backtest_results(make_result(trades))
        data = insights.to_dict()

        assert insights.best_patterns[0].label == "hammer"
        assert insights.best_day_of_week.label == "Tuesday"
        assert insights.optimal_confidence_threshold == 70.0
        assert data["best_day_of_week"]["label"] == "Tuesday"
        assert isinstance(data["suggestions"], list)
