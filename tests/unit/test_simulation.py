"""
Unit tests for the point-in-time simulation clock.
"""

import dataclasses

import pytest

from backtester.core.enums import ActionType, Timeframe, TradeOutcome
from backtester.core.exceptions.backtest import OracleError
from backtester.core.models.backtest import BacktestConfig
from backtester.core.models.recommendation import Recommendation
from backtester.engine.progress import CancellationToken
from backtester.engine.simulation import SimulationClock, find_start_index

HOLD = Recommendation(action=ActionType.HOLD, confidence=50.0)


def make_clock(candles, oracle, timeframe=Timeframe.D1, **kwargs) -> SimulationClock:
    config = BacktestConfig(
        symbol="AAPL",
        start_date=candles[0].time * 1000,
        end_date=candles[-1].time * 1000,
        timeframe=timeframe,
        confidence_threshold=65.0,
    )
    return SimulationClock(
        config, candles, oracle, start_index=0, oracle_delay_seconds=0, **kwargs
    )


class TestFindStartIndex:
    """Test suite for locating the first simulated candle."""

    def test_should_skip_lookback_and_candles_before_start(self, rising_candles) -> None:
        """Test start index honors both lookback and start date."""
        start_ms = rising_candles[12].time * 1000

        assert find_start_index(rising_candles, start_ms, lookback=5) == 12
        assert find_start_index(rising_candles, 0, lookback=5) == 5

    def test_should_fall_back_to_lookback(self, rising_candles) -> None:
        """Test a start date after the data returns the lookback."""
        start_ms = (rising_candles[-1].time + 1) * 1000

        assert find_start_index(rising_candles, start_ms, lookback=3) == 3


class TestPointInTime:
    """Test suite for the no-lookahead guarantee."""

    @pytest.mark.asyncio
    async def test_should_pass_only_candles_up_to_current_step(
        self, hourly_candles, oracle_factory
    ) -> None:
        """Every oracle call at step i receives candles[0..i]."""
        oracle = oracle_factory(default=HOLD)
        clock = make_clock(hourly_candles, oracle, Timeframe.H1)

        assert await clock.run()

        assert len(oracle.calls) == len(hourly_candles)
        for index, (length, last_time) in enumerate(oracle.calls):
            assert length == index + 1
            assert last_time == hourly_candles[index].time

    @pytest.mark.asyncio
    async def test_should_pass_threshold_and_no_news(self, hourly_candles, oracle_factory) -> None:
        """Test recommendation options."""
        oracle = oracle_factory(default=HOLD)
        await make_clock(hourly_candles, oracle, Timeframe.H1).run()

        options = oracle.options[0]
        assert options.confidence_threshold == 65.0
        assert options.skip_budget_check is True
        assert options.news_headlines == ()


class TestStepOrdering:
    """Test suite for the exit-then-entry order within a step."""

    @pytest.mark.asyncio
    async def test_should_allow_reentry_on_exit_candle(
        self, hourly_candles, oracle_factory, buy
    ) -> None:
        """A trade closed on candle i frees the slot for an entry on candle i."""
        oracle = oracle_factory(
            {5: buy(price_target=110.0, stop_loss=95.0), 10: buy(price_target=120.0)}
        )
        clock = make_clock(hourly_candles, oracle, Timeframe.H1)

        await clock.run()
        first, second = clock.trades[:2]

        assert first.outcome == TradeOutcome.WIN
        assert first.exit_date == hourly_candles[10].time
        assert second.entry_date == hourly_candles[10].time
        assert second.entry_price == 110.0

    @pytest.mark.asyncio
    async def test_should_not_consult_oracle_while_position_open(
        self, hourly_candles, oracle_factory, buy
    ) -> None:
        """At most one trade is pending at any simulated step."""
        oracle = oracle_factory(default=buy())
        clock = make_clock(hourly_candles, oracle, Timeframe.H1)

        await clock.run()

        assert len(clock.trades) >= 2
        for _, call_time in oracle.calls:
            for trade in clock.trades:
                assert not trade.entry_date < call_time < trade.exit_date
        assert sum(1 for t in clock.ledger(include_open=True) if t.is_open) == 0

    @pytest.mark.asyncio
    async def test_should_record_one_equity_point_per_step(
        self, rising_candles, oracle_factory
    ) -> None:
        """Test equity points include weekend steps."""
        clock = make_clock(rising_candles, oracle_factory(default=HOLD))

        await clock.run()

        assert len(clock.equity_curve) == len(rising_candles)
        assert clock.steps_completed == len(rising_candles)
        assert clock.progress_percent == 100.0


class TestWeekendEntries:
    """Test suite for the daily weekend entry rule."""

    @pytest.mark.asyncio
    async def test_should_skip_oracle_on_daily_weekends(
        self, rising_candles, oracle_factory
    ) -> None:
        """Test the oracle is never asked on Saturday or Sunday daily candles."""
        oracle = oracle_factory(default=HOLD)
        await make_clock(rising_candles, oracle).run()

        weekdays = [i for i, candle in enumerate(rising_candles) if not candle.is_weekend()]
        assert oracle.called_indices == weekdays
        assert 3 not in oracle.called_indices  # 2024-01-06 is a Saturday

    @pytest.mark.asyncio
    async def test_should_still_check_exits_on_weekends(
        self, rising_candles, oracle_factory, buy
    ) -> None:
        """Test an open position can close on a weekend candle."""
        oracle = oracle_factory({5: buy(price_target=110.0, stop_loss=95.0)})
        clock = make_clock(rising_candles, oracle)

        await clock.run()

        assert rising_candles[10].is_weekend()
        assert clock.trades[0].exit_date == rising_candles[10].time

    @pytest.mark.asyncio
    async def test_should_consult_oracle_on_intraday_weekends(
        self, candle_builder, oracle_factory
    ) -> None:
        """Test the weekend rule applies to daily data only."""
        saturday = 1704499200  # 2024-01-06 00:00 UTC
        candles = candle_builder([100.0] * 12, start=saturday, step=3600)
        oracle = oracle_factory(default=HOLD)

        await make_clock(candles, oracle, Timeframe.H1).run()

        assert len(oracle.calls) == 12


class TestEquityAndExpiry:
    """Test suite for equity marking and forced expiry."""

    @pytest.mark.asyncio
    async def test_should_keep_equity_constant_without_trades(
        self, rising_candles, oracle_factory
    ) -> None:
        """Test zero-trade equity conservation."""
        clock = make_clock(rising_candles, oracle_factory(default=HOLD))

        await clock.run()

        assert all(point.equity == 10000.0 for point in clock.equity_curve)
        assert all(point.drawdown_percent == 0.0 for point in clock.equity_curve)
        assert clock.trades == []

    @pytest.mark.asyncio
    async def test_should_mark_open_position_on_top_of_cash(
        self, rising_candles, oracle_factory, buy
    ) -> None:
        """Test mark-to-market adds position size plus unrealized P&L to cash."""
        oracle = oracle_factory({5: buy(price_target=200.0, stop_loss=50.0)})
        clock = make_clock(rising_candles, oracle)

        await clock.run()

        assert clock.equity_curve[4].equity == 10000.0
        assert clock.equity_curve[5].equity == pytest.approx(11000.0)
        assert clock.equity_curve[6].equity == pytest.approx(11000.0 + 1000.0 / 105.0)

    @pytest.mark.asyncio
    async def test_should_expire_position_opened_on_last_step(
        self, rising_candles, oracle_factory, buy
    ) -> None:
        """Test forced expiry at the final close without an extra equity point."""
        oracle = oracle_factory({29: buy()})
        clock = make_clock(rising_candles, oracle)

        await clock.run()
        trade = clock.trades[-1]

        assert trade.outcome == TradeOutcome.EXPIRED
        assert trade.exit_price == rising_candles[-1].close
        assert trade.days_held == 0.0
        assert len(clock.equity_curve) == len(rising_candles)
        assert clock.equity_tracker.cash == pytest.approx(10000.0)

    @pytest.mark.asyncio
    async def test_should_return_frozen_ledger(self, rising_candles, oracle_factory, buy) -> None:
        """Test ledger entries cannot be edited by callers."""
        oracle = oracle_factory({5: buy(price_target=110.0, stop_loss=95.0)})
        clock = make_clock(rising_candles, oracle)
        await clock.run()

        ledger = clock.ledger()
        with pytest.raises(dataclasses.FrozenInstanceError):
            ledger[0].rationale = "edited"

        assert clock.trades[0].rationale == "scripted"


class TestFailuresAndCancellation:
    """Test suite for oracle failures and cancellation."""

    @pytest.mark.asyncio
    async def test_should_wrap_oracle_failures(self, rising_candles, oracle_factory) -> None:
        """Test oracle exceptions surface as OracleError."""

        def explode(index: int) -> None:
            raise RuntimeError("quota exceeded")

        clock = make_clock(rising_candles, oracle_factory(on_call=explode))

        with pytest.raises(OracleError, match="quota exceeded") as exc_info:
            await clock.run()

        assert exc_info.value.symbol == "AAPL"
        assert exc_info.value.candle_time == rising_candles[0].time

    @pytest.mark.asyncio
    async def test_should_stop_at_next_step_after_cancel(
        self, hourly_candles, oracle_factory
    ) -> None:
        """Test cancellation is polled before each step."""
        token = CancellationToken()

        def cancel_at_four(index: int) -> None:
            if index == 4:
                token.cancel()

        oracle = oracle_factory(default=HOLD, on_call=cancel_at_four)
        clock = make_clock(hourly_candles, oracle, Timeframe.H1, cancellation_token=token)

        finished = await clock.run()

        assert not finished
        assert clock.steps_completed == 5
        assert len(clock.equity_curve) == 5
        assert len(oracle.calls) == 5
