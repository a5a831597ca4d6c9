"""
Integration tests for the full backtest pipeline.

Runs CSV data through the engine with a rule-based oracle, then feeds the
result to the analyzer and the result store.
"""

import math
from collections.abc import Sequence
from pathlib import Path

import pytest

from backtester.core.enums import ActionType, BacktestPhase, TradeOutcome
from backtester.core.interfaces.oracle import IDecisionOracle
from backtester.core.models.backtest import BacktestConfig
from backtester.core.models.candle import Candle
from backtester.core.models.recommendation import Recommendation, RecommendationOptions
from backtester.engine import BacktestEngine, analyze_backtest_results, calculate_detailed_stats
from backtester.infrastructure.data import CSVCandleProvider
from backtester.infrastructure.storage import ResultStore

MONDAY = 1704672000  # 2024-01-08 00:00 UTC
DAY = 86400
LOOKBACK = 20


class MovingAverageOracle(IDecisionOracle):
    """Buys above and sells below the 5-candle average of the visible history."""

    def __init__(self) -> None:
        self.seen: list[tuple[int, int]] = []

    async def generate_recommendation(
        self, symbol: str, candles: Sequence[Candle], options: RecommendationOptions
    ) -> Recommendation | None:
        self.seen.append((len(candles), candles[-1].time))
        closes = [candle.close for candle in candles[-5:]]
        average = sum(closes) / len(closes)
        last = candles[-1].close
        if abs(last - average) < 0.5:
            return None
        action = ActionType.BUY if last > average else ActionType.SELL
        return Recommendation(action=action, confidence=80.0, rationale="sma5")


class TestBacktestPipeline:
    """Integration tests for CSV data, engine, analyzer and store."""

    @pytest.fixture
    def data_dir(self, tmp_path: Path) -> Path:
        """Sixty daily candles of an oscillating price series."""
        (tmp_path / "AAPL").mkdir()
        rows = ["time,open,high,low,close,volume"]
        previous = 100.0
        for i in range(60):
            close = round(100.0 + 10.0 * math.sin(i / 4), 2)
            high = max(previous, close) + 1.0
            low = min(previous, close) - 1.0
            rows.append(f"{MONDAY + i * DAY},{previous},{high},{low},{close},{1000 + i}")
            previous = close
        (tmp_path / "AAPL" / "1d.csv").write_text("\n".join(rows) + "\n")
        return tmp_path

    @pytest.fixture
    def config(self) -> BacktestConfig:
        """Thirty-day window starting after the lookback."""
        return BacktestConfig(
            symbol="AAPL",
            start_date=(MONDAY + 30 * DAY) * 1000,
            end_date=(MONDAY + 59 * DAY) * 1000,
            initial_capital=25000.0,
            position_size_percent=20.0,
        )

    @pytest.mark.asyncio
    async def test_should_run_csv_backtest_end_to_end(self, data_dir, config) -> None:
        """Test a complete run honors lookback, point-in-time data and accounting."""
        oracle = MovingAverageOracle()
        engine = BacktestEngine(
            CSVCandleProvider(data_dir), oracle, lookback=LOOKBACK, oracle_delay_seconds=0
        )
        start_seconds = config.start_date // 1000

        result = await engine.run(config)

        assert result.phase == BacktestPhase.COMPLETE
        assert result.errors == ()
        assert len(result.equity_curve) == 30
        assert result.equity_curve[0].date == start_seconds

        # Warm-up candles are visible to the oracle but never simulated
        assert all(length > LOOKBACK for length, _ in oracle.seen)
        assert all(last_time >= start_seconds for _, last_time in oracle.seen)

        assert result.trades
        assert all(trade.outcome.is_closed for trade in result.trades)
        assert all(trade.entry_date >= start_seconds for trade in result.trades)
        for earlier, later in zip(result.trades, result.trades[1:]):
            assert later.entry_date >= earlier.exit_date

        final_equity = result.equity_curve[-1].equity
        assert result.metrics.total_return == pytest.approx(final_equity - config.initial_capital)
        assert result.metrics.total_trades == len(result.trades)
        assert result.metrics.winning_trades == sum(
            1 for trade in result.trades if trade.outcome == TradeOutcome.WIN
        )
        assert result.metrics.max_drawdown == max(p.drawdown_percent for p in result.equity_curve)

    @pytest.mark.asyncio
    async def test_should_analyze_and_store_result(self, data_dir, config) -> None:
        """Test the analyzer and store accept engine output."""
        engine = BacktestEngine(
            CSVCandleProvider(data_dir),
            MovingAverageOracle(),
            lookback=LOOKBACK,
            oracle_delay_seconds=0,
        )
        store = ResultStore()

        result = await engine.run(config)
        store.save(result)
        insights = analyze_backtest_results(store.get(result.id))
        stats = calculate_detailed_stats(result.trades)

        assert store.list() == [result]
        assert insights.suggestions
        completed = [t for t in result.trades if t.outcome.is_completed]
        assert stats.buy_stats.count + stats.sell_stats.count == len(completed)

    @pytest.mark.asyncio
    async def test_should_fail_when_lookback_exceeds_file(self, data_dir, config) -> None:
        """Test insufficient history in the file aborts the run."""
        engine = BacktestEngine(
            CSVCandleProvider(data_dir), MovingAverageOracle(), oracle_delay_seconds=0
        )

        result = await engine.run(config)

        assert result.is_failed
        assert result.errors[0] == "Insufficient data: need 210 candles, got 60"
        assert result.equity_curve == ()
