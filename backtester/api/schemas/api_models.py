"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from backtester.core.enums import Timeframe
from backtester.core.models.backtest import BacktestConfig


class BacktestRequest(BaseModel):
    """Request model for backtest submission and AI call estimation."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Ticker symbol")
    start_date: datetime = Field(..., description="Backtest start date")
    end_date: datetime = Field(..., description="Backtest end date")
    timeframe: Timeframe = Field(default=Timeframe.D1, description="Candle timeframe")
    initial_capital: float = Field(default=10000.0, gt=0, description="Starting capital")
    position_size_percent: float = Field(
        default=10.0, gt=0, le=100, description="Share of initial capital per trade"
    )
    confidence_threshold: float = Field(
        default=70.0, ge=0, le=100, description="Minimum oracle confidence"
    )
    max_concurrent_trades: int = Field(
        default=1, ge=1, description="Accepted for compatibility; one position is held"
    )
    include_news: bool = Field(default=False, description="Pass news headlines to the oracle")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        """Upper-case and strip the symbol."""
        cleaned = v.strip().upper()
        if not cleaned:
            raise ValueError("symbol must not be empty")
        return cleaned

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, v: datetime, info: ValidationInfo) -> datetime:
        """Validate that end_date is after start_date."""
        if "start_date" in info.data and v <= info.data["start_date"]:
            raise ValueError("end_date must be after start_date")
        return v

    def to_config(self) -> BacktestConfig:
        """Convert the request into an engine configuration (dates in unix ms)."""
        return BacktestConfig(
            symbol=self.symbol,
            start_date=int(self.start_date.timestamp() * 1000),
            end_date=int(self.end_date.timestamp() * 1000),
            timeframe=self.timeframe,
            initial_capital=self.initial_capital,
            position_size_percent=self.position_size_percent,
            confidence_threshold=self.confidence_threshold,
            max_concurrent_trades=self.max_concurrent_trades,
            include_news=self.include_news,
        )


class EstimateResponse(BaseModel):
    """Response model for the AI call estimate."""

    estimated_ai_calls: int


class BacktestResponse(BaseModel):
    """Response model for backtest submission."""

    backtest_id: str
    status: str
    message: str
    errors: list[str] = Field(default_factory=list)


class BacktestSummary(BaseModel):
    """Response model for one entry of the results list."""

    backtest_id: str
    symbol: str
    status: str
    total_trades: int
    total_return_percent: float
    completed_at: int


class BacktestResults(BaseModel):
    """Response model for backtest results."""

    backtest_id: str
    status: str
    config: dict
    metrics: dict
    trades: list[dict]
    equity_curve: list[dict]
    errors: list[str]
    completed_at: int
    duration: int


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str
    message: str
    backtest_id: str | None = None
