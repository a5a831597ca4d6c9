"""
Backtest engine entry point.

`BacktestEngine.run` never raises: cancellation and every failure mode
resolve to a returned BacktestResult whose phase tells them apart.
"""

import math
import time
from collections.abc import Sequence

from loguru import logger

from backtester.core.constants import (
    DEFAULT_ORACLE_DELAY_SECONDS,
    INDICATOR_LOOKBACK,
    MAX_REPORTED_VALIDATION_ISSUES,
    MIN_SIMULATION_CANDLES,
    PROGRESS_STEP_PERCENT,
    TRADING_DAY_RATIO,
)
from backtester.core.enums import BacktestPhase, Timeframe
from backtester.core.exceptions.backtest import (
    BacktestCancelledError,
    DataError,
    InsufficientDataError,
)
from backtester.core.interfaces.data import IHistoricalDataProvider
from backtester.core.interfaces.metrics import IMetricsCalculator
from backtester.core.interfaces.oracle import IDecisionOracle
from backtester.core.models.backtest import (
    BacktestConfig,
    BacktestMetrics,
    BacktestResult,
    EquityPoint,
    generate_id,
)
from backtester.core.models.candle import Candle
from backtester.core.models.trade import Trade
from backtester.core.protocols import CandleValidator, ProgressCallback
from backtester.infrastructure.data.candle_validator import validate_candle_data

from .metrics import BacktestMetricsCalculator
from .progress import CancellationToken, ProgressReporter
from .simulation import SimulationClock, find_start_index


class BacktestEngine:
    """Runs point-in-time backtests against a data provider and a decision oracle.

    The engine keeps no per-run state, so one instance may serve several
    concurrent runs.
    """

    def __init__(
        self,
        data_provider: IHistoricalDataProvider,
        oracle: IDecisionOracle,
        *,
        validator: CandleValidator = validate_candle_data,
        metrics_calculator: IMetricsCalculator | None = None,
        lookback: int = INDICATOR_LOOKBACK,
        oracle_delay_seconds: float = DEFAULT_ORACLE_DELAY_SECONDS,
        progress_step_percent: int = PROGRESS_STEP_PERCENT,
    ):
        if lookback < 0:
            raise ValueError("lookback must be non-negative")
        if oracle_delay_seconds < 0:
            raise ValueError("oracle_delay_seconds must be non-negative")

        self.data_provider = data_provider
        self.oracle = oracle
        self.validator = validator
        self.metrics_calculator = metrics_calculator or BacktestMetricsCalculator()
        self.lookback = lookback
        self.oracle_delay_seconds = oracle_delay_seconds
        self.progress_step_percent = progress_step_percent

    async def run(
        self,
        config: BacktestConfig,
        on_progress: ProgressCallback | None = None,
        cancellation_token: CancellationToken | None = None,
    ) -> BacktestResult:
        """
        Run a backtest simulation.

        Args:
            config: Backtest configuration
            on_progress: Optional (phase, percent, message) callback
            cancellation_token: Optional token to stop the run early

        Returns:
            BacktestResult with phase COMPLETE, CANCELLED or ERROR
        """
        started = time.perf_counter()
        errors: list[str] = []
        reporter = ProgressReporter(on_progress, self.progress_step_percent)
        token = cancellation_token or CancellationToken()
        clock: SimulationClock | None = None

        logger.info(
            f"Starting backtest {config.id}: {config.symbol} {config.timeframe} "
            f"capital={config.initial_capital} size={config.position_size_percent}%"
        )

        try:
            config.validate()
            candles = await self._fetch_candles(config, reporter, token, errors)

            start_index = find_start_index(candles, config.start_date, self.lookback)
            clock = SimulationClock(
                config,
                candles,
                self.oracle,
                start_index=start_index,
                reporter=reporter,
                cancellation_token=token,
                oracle_delay_seconds=self.oracle_delay_seconds,
            )
            if not await clock.run():
                return self._cancelled_result(config, clock, reporter, errors, started)

            reporter.report(BacktestPhase.ANALYZING, 90, "Calculating metrics...")
            trades = clock.ledger()
            metrics = self.metrics_calculator.calculate(trades, clock.equity_curve, config)

            reporter.report(
                BacktestPhase.COMPLETE,
                100,
                f"Completed: {len(trades)} trades, {metrics.win_rate:.1f}% win rate",
            )
            logger.info(
                f"Backtest {config.id} complete: {len(trades)} trades, "
                f"return={metrics.total_return_percent:.2f}%, "
                f"max drawdown={metrics.max_drawdown_percent:.2f}%"
            )
            return self._build_result(
                config, trades, metrics, clock.equity_curve, errors, started, BacktestPhase.COMPLETE
            )

        except BacktestCancelledError:
            logger.warning(f"Backtest {config.id} cancelled before simulation")
            return self._cancelled_result(config, clock, reporter, errors, started)

        except Exception as e:
            logger.exception(f"Backtest {config.id} failed: {e}")
            errors.append(str(e) or type(e).__name__)
            reporter.report(BacktestPhase.ERROR, 100, errors[-1])
            trades = clock.ledger() if clock is not None else ()
            curve = clock.equity_curve if clock is not None else ()
            return self._build_result(
                config, trades, BacktestMetrics.empty(), curve, errors, started, BacktestPhase.ERROR
            )

    async def _fetch_candles(
        self,
        config: BacktestConfig,
        reporter: ProgressReporter,
        token: CancellationToken,
        errors: list[str],
    ) -> list[Candle]:
        """Fetch and validate candles; validation issues become warnings.

        Raises:
            BacktestCancelledError: If cancelled around the fetch
            DataError: If the fetch fails or too few candles are available
        """
        reporter.report(
            BacktestPhase.FETCHING_DATA, 0, f"Fetching historical data for {config.symbol}..."
        )
        token.raise_if_cancelled()

        try:
            candles = await self.data_provider.fetch_historical_data_range(
                config.symbol,
                config.start_date,
                config.end_date,
                config.timeframe,
                self.lookback,
            )
        except DataError:
            raise
        except Exception as e:
            raise DataError(f"Failed to fetch historical data for {config.symbol}: {e}") from e

        token.raise_if_cancelled()

        validation = self.validator(candles)
        if not validation.valid:
            errors.extend(validation.issues[:MAX_REPORTED_VALIDATION_ISSUES])
            logger.warning(f"Data validation issues: {validation.issues}")

        required = self.lookback + MIN_SIMULATION_CANDLES
        if len(candles) < required:
            raise InsufficientDataError(required, len(candles))

        reporter.report(BacktestPhase.FETCHING_DATA, 100, f"Loaded {len(candles)} candles")
        return list(candles)

    def _cancelled_result(
        self,
        config: BacktestConfig,
        clock: SimulationClock | None,
        reporter: ProgressReporter,
        errors: list[str],
        started: float,
    ) -> BacktestResult:
        """Partial result for a cancelled run, including a still-pending trade."""
        trades = clock.ledger(include_open=True) if clock is not None else ()
        curve = clock.equity_curve if clock is not None else ()
        percent = clock.progress_percent if clock is not None else 0.0

        reporter.report(BacktestPhase.CANCELLED, percent, "Backtest cancelled")
        metrics = self.metrics_calculator.calculate(trades, curve, config)
        return self._build_result(
            config, trades, metrics, curve, errors, started, BacktestPhase.CANCELLED
        )

    @staticmethod
    def _build_result(
        config: BacktestConfig,
        trades: Sequence[Trade],
        metrics: BacktestMetrics,
        equity_curve: Sequence[EquityPoint],
        errors: Sequence[str],
        started: float,
        phase: BacktestPhase,
    ) -> BacktestResult:
        return BacktestResult(
            id=generate_id(),
            config=config,
            trades=tuple(trades),
            metrics=metrics,
            equity_curve=tuple(equity_curve),
            errors=tuple(errors),
            completed_at=int(time.time() * 1000),
            duration=int((time.perf_counter() - started) * 1000),
            phase=phase,
        )


async def run_backtest(
    config: BacktestConfig,
    data_provider: IHistoricalDataProvider,
    oracle: IDecisionOracle,
    on_progress: ProgressCallback | None = None,
    cancellation_token: CancellationToken | None = None,
    **engine_options,
) -> BacktestResult:
    """Run one backtest with a throwaway engine; see BacktestEngine for options."""
    engine = BacktestEngine(data_provider, oracle, **engine_options)
    return await engine.run(config, on_progress, cancellation_token)


def estimate_ai_calls(config: BacktestConfig) -> int:
    """
    Estimate oracle invocations for a backtest before running it.

    Assumes ~70% of calendar days are trading days, scaled by the number
    of candles per trading session for the timeframe.
    """
    days_in_range = max(config.duration_days(), 0.0)
    per_day = Timeframe.candles_per_trading_day(config.timeframe)
    return math.ceil(days_in_range * TRADING_DAY_RATIO * per_day)
