"""
CSV candle provider implementation.

Loads one OHLCV CSV file per symbol and timeframe from
<data_directory>/<SYMBOL>/<timeframe>.csv and serves date ranges widened by
the requested warm-up lookback.
"""

import asyncio
import re
from pathlib import Path

import pandas as pd
from loguru import logger

from backtester.core.enums import Timeframe
from backtester.core.exceptions.backtest import DataError, ValidationError
from backtester.core.interfaces.data import IHistoricalDataProvider
from backtester.core.models.candle import CANDLE_COLUMNS, Candle, candles_from_dataframe

# Daily bars skip weekends and holidays, so 200 bars span ~280 calendar days
DAILY_LOOKBACK_CALENDAR_FACTOR = 1.4


class CSVCandleProvider(IHistoricalDataProvider):
    """
    CSV-based candle provider.

    Features:
    - Accepts a `time` column in unix seconds or a `timestamp` column in unix ms
    - Lookback-aware range widening per timeframe
    - Sorting and de-duplication of timestamps
    - Path sanitization of symbol and timeframe components
    """

    def __init__(self, data_directory: str | Path = "data"):
        """
        Initialize the CSV candle provider.

        Args:
            data_directory: Root directory containing <SYMBOL>/<timeframe>.csv files
        """
        self.data_dir = Path(data_directory)
        if not self.data_dir.exists():
            raise DataError(f"Data directory not found: {self.data_dir}")

    async def fetch_historical_data_range(
        self,
        symbol: str,
        start_date: int,
        end_date: int,
        timeframe: Timeframe,
        lookback: int,
    ) -> list[Candle]:
        """
        Load candles for the specified range including warm-up lookback.

        Raises:
            ValidationError: If parameters are invalid
            DataError: If data cannot be loaded
        """
        if start_date > end_date:
            raise ValidationError("start_date must be before or equal to end_date")

        file_path = self._file_path(symbol, timeframe)
        adjusted_start = start_date - self.lookback_ms(timeframe, lookback)

        data = await self._load_csv(file_path)
        data = self._filter_range(data, adjusted_start, end_date)
        candles = candles_from_dataframe(data)

        logger.info(
            f"Loaded {len(candles)} candles for {symbol} {timeframe} "
            f"(lookback={lookback}, file={file_path.name})"
        )
        return candles

    @staticmethod
    def lookback_ms(timeframe: Timeframe, lookback: int) -> int:
        """Calendar span in milliseconds needed to cover `lookback` candles."""
        span_seconds = lookback * Timeframe.to_seconds(timeframe)
        if timeframe == Timeframe.D1:
            span_seconds *= DAILY_LOOKBACK_CALENDAR_FACTOR
        return int(span_seconds * 1000)

    def available_symbols(self) -> list[str]:
        """Get list of symbols that have a data directory."""
        return sorted(path.name for path in self.data_dir.iterdir() if path.is_dir())

    def _file_path(self, symbol: str, timeframe: Timeframe) -> Path:
        """Build and sanity-check the CSV path for a symbol and timeframe."""
        safe_symbol = self._sanitize_path_component(symbol.upper(), "symbol")
        safe_timeframe = self._sanitize_path_component(str(timeframe), "timeframe")
        file_path = self.data_dir / safe_symbol / f"{safe_timeframe}.csv"

        if not file_path.resolve().is_relative_to(self.data_dir.resolve()):
            raise ValidationError(f"Path escapes data directory: {file_path}")
        if not file_path.exists():
            raise DataError(f"Data file not found: {file_path}")
        return file_path

    @staticmethod
    def _sanitize_path_component(component: str, component_name: str) -> str:
        """Reject path components with traversal or unexpected characters."""
        if not component:
            raise ValidationError(f"{component_name.capitalize()} cannot be empty")
        if ".." in component or not re.fullmatch(r"[A-Za-z0-9_.^-]{1,50}", component):
            raise ValidationError(f"Invalid {component_name}: '{component}'")
        return component

    async def _load_csv(self, file_path: Path) -> pd.DataFrame:
        """Read the CSV in the default executor and normalize the time column."""
        loop = asyncio.get_running_loop()

        try:
            data = await loop.run_in_executor(None, pd.read_csv, file_path)
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=CANDLE_COLUMNS)
        except (OSError, pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.error(f"CSV loading failed for {file_path.name}: {e}")
            raise DataError(f"Failed to load CSV file: {file_path.name}") from e

        if "time" not in data.columns:
            if "timestamp" not in data.columns:
                raise DataError(f"{file_path.name} has neither a time nor a timestamp column")
            data["time"] = data["timestamp"] // 1000
        return data

    @staticmethod
    def _filter_range(data: pd.DataFrame, start_ms: int, end_ms: int) -> pd.DataFrame:
        """Filter to [start_ms, end_ms], sort ascending and drop duplicate times."""
        if data.empty:
            return data

        time_ms = data["time"].astype("int64") * 1000
        filtered = data[(time_ms >= start_ms) & (time_ms <= end_ms)]
        return (
            filtered.sort_values("time", kind="stable")
            .drop_duplicates(subset=["time"], keep="first")
            .reset_index(drop=True)
        )
