"""
Point-in-time simulation clock.

Walks the candle sequence one index at a time. At step i the oracle only
ever sees candles[0..i]; the open position is checked against the current
candle before any new entry is considered.
"""

import asyncio
from collections.abc import Sequence

from loguru import logger

from backtester.core.constants import DEFAULT_ORACLE_DELAY_SECONDS
from backtester.core.enums import BacktestPhase
from backtester.core.exceptions.backtest import OracleError
from backtester.core.interfaces.oracle import IDecisionOracle
from backtester.core.models.backtest import BacktestConfig, EquityPoint
from backtester.core.models.candle import Candle
from backtester.core.models.recommendation import Recommendation, RecommendationOptions
from backtester.core.models.trade import Trade

from .equity_tracker import EquityTracker
from .position_manager import PositionManager
from .progress import CancellationToken, ProgressReporter


def find_start_index(candles: Sequence[Candle], start_date: int, lookback: int) -> int:
    """First index at or after `lookback` whose candle is at or after start_date.

    Args:
        candles: Candles ascending by time
        start_date: Simulation start in unix milliseconds
        lookback: Number of warm-up candles never simulated

    Returns:
        The start index, or `lookback` when no candle qualifies
    """
    start_seconds = start_date / 1000
    for index in range(lookback, len(candles)):
        if candles[index].time >= start_seconds:
            return index
    return lookback


class SimulationClock:
    """Drives one backtest run over a fixed candle sequence.

    The clock owns all mutable run state: the position manager, the
    equity tracker and the closed-trade ledger.
    """

    def __init__(
        self,
        config: BacktestConfig,
        candles: Sequence[Candle],
        oracle: IDecisionOracle,
        start_index: int,
        reporter: ProgressReporter | None = None,
        cancellation_token: CancellationToken | None = None,
        oracle_delay_seconds: float = DEFAULT_ORACLE_DELAY_SECONDS,
    ):
        if oracle_delay_seconds < 0:
            raise ValueError("oracle_delay_seconds must be non-negative")

        self.config = config
        self.candles = tuple(candles)
        self.oracle = oracle
        self.start_index = start_index
        self.reporter = reporter or ProgressReporter()
        self.cancellation_token = cancellation_token or CancellationToken()
        self.oracle_delay_seconds = oracle_delay_seconds

        self.position_manager = PositionManager(config)
        self.equity_tracker = EquityTracker(config.initial_capital)
        self.trades: list[Trade] = []
        self.oracle_calls = 0
        self.steps_completed = 0
        self._options = RecommendationOptions(
            confidence_threshold=config.confidence_threshold,
            skip_budget_check=True,
            news_headlines=(),  # No point-in-time news archive
        )

    @property
    def total_steps(self) -> int:
        """Number of candles that will be simulated."""
        return max(len(self.candles) - self.start_index, 0)

    @property
    def progress_percent(self) -> float:
        """Share of simulation steps completed so far."""
        if self.total_steps == 0:
            return 100.0
        return self.steps_completed / self.total_steps * 100

    @property
    def equity_curve(self) -> tuple[EquityPoint, ...]:
        """Equity points recorded so far."""
        return self.equity_tracker.equity_curve

    async def run(self) -> bool:
        """Simulate every remaining candle, then expire any open position.

        Returns:
            True if the run finished, False if it was cancelled
        """
        logger.info(
            f"Simulating {self.config.symbol} from index {self.start_index} "
            f"to {len(self.candles)} ({self.total_steps} steps)"
        )
        self.reporter.report(BacktestPhase.RUNNING_SIMULATION, 0, "Starting simulation...")

        for index in range(self.start_index, len(self.candles)):
            if self.cancellation_token.is_cancelled:
                logger.warning(
                    f"Backtest {self.config.id} cancelled after {self.steps_completed} steps"
                )
                return False

            candle = self.candles[index]
            self.reporter.report_step(
                self.steps_completed,
                self.total_steps,
                f"Processing {candle.timestamp:%Y-%m-%d}...",
            )
            await self.step(index)
            self.steps_completed += 1

        self.finish()
        return True

    async def step(self, index: int) -> None:
        """Process one candle.

        Order is fixed: exit check for the open position, then (only when
        flat and entries are allowed) an oracle consultation, then one
        equity point.
        """
        candle = self.candles[index]

        closed = self.position_manager.check_exit(candle)
        if closed is not None:
            self._book(closed)

        if self.position_manager.is_flat and self.entries_allowed(candle):
            recommendation = await self._consult_oracle(index)
            if recommendation is not None and recommendation.is_actionable:
                self.position_manager.open_position(candle, recommendation)

        self.equity_tracker.record(
            candle.time, self.position_manager.mark_to_market(candle.close)
        )

    def entries_allowed(self, candle: Candle) -> bool:
        """New positions are not opened on weekend candles of daily data."""
        return self.config.timeframe.is_intraday or not candle.is_weekend()

    def finish(self) -> Trade | None:
        """Expire a still-open position at the last candle's close."""
        if not self.candles:
            return None
        expired = self.position_manager.force_close(self.candles[-1])
        if expired is not None:
            self._book(expired)
        return expired

    def ledger(self, include_open: bool = False) -> tuple[Trade, ...]:
        """The frozen trades produced so far, in entry order.

        Args:
            include_open: Also include the pending trade, if any
        """
        trades = list(self.trades)
        open_trade = self.position_manager.open_trade
        if include_open and open_trade is not None:
            trades.append(open_trade)
        return tuple(trades)

    async def _consult_oracle(self, index: int) -> Recommendation | None:
        """Ask the oracle about candles[0..index], pausing between calls."""
        if self.oracle_calls > 0 and self.oracle_delay_seconds > 0:
            await asyncio.sleep(self.oracle_delay_seconds)

        history = self.candles[: index + 1]
        self.oracle_calls += 1
        try:
            return await self.oracle.generate_recommendation(
                self.config.symbol, history, self._options
            )
        except Exception as e:
            raise OracleError(self.config.symbol, history[-1].time, str(e)) from e

    def _book(self, trade: Trade) -> None:
        """Add a closed trade to the ledger and realize its P&L."""
        self.equity_tracker.realize(trade.profit_loss_dollar)
        self.trades.append(trade)
