"""
Trade domain model.

A trade is created pending when a position opens and is finalized exactly
once, either by a target/stop touch or by forced expiry. Trades are frozen:
closing one yields a new closed trade and leaves the pending one untouched.
"""

from dataclasses import dataclass, field, replace

from backtester.core.enums import ActionType, TradeOutcome
from backtester.core.exceptions.backtest import TradeAlreadyClosedError, ValidationError
from backtester.core.types.financial import (
    ZERO,
    calculate_days_held,
    calculate_pnl_dollar,
    calculate_pnl_percent,
)


@dataclass(frozen=True)
class Trade:
    """Represents one simulated position from entry to exit."""

    id: str
    entry_date: int
    symbol: str
    action: ActionType
    entry_price: float
    price_target: float
    stop_loss: float
    confidence: float
    rationale: str = ""
    exit_date: int | None = None
    exit_price: float | None = None
    outcome: TradeOutcome = TradeOutcome.PENDING
    profit_loss_percent: float = ZERO
    profit_loss_dollar: float = ZERO
    days_held: float = ZERO
    patterns: tuple[str, ...] = field(default_factory=tuple)
    regime: str | None = None

    def __post_init__(self) -> None:
        """Validate trade data after initialization."""
        if not self.action.is_opening:
            raise ValidationError(f"Trade action must be BUY or SELL, got {self.action}")
        if self.entry_price <= ZERO:
            raise ValidationError(f"Entry price must be positive, got {self.entry_price}")
        if self.outcome == TradeOutcome.PENDING and (
            self.exit_date is not None or self.exit_price is not None
        ):
            raise ValidationError("Pending trade must not have exit date or exit price")

    @property
    def is_open(self) -> bool:
        """Check if the trade is still pending."""
        return self.outcome == TradeOutcome.PENDING

    def close(
        self, exit_date: int, exit_price: float, outcome: TradeOutcome, position_size: float
    ) -> "Trade":
        """Return the finalized trade with its P&L fields computed.

        Args:
            exit_date: Exit candle time in unix seconds
            exit_price: Fill price at exit
            outcome: WIN, LOSS or EXPIRED
            position_size: Fixed dollar amount allocated to the trade

        Returns:
            A closed copy of this trade

        Raises:
            TradeAlreadyClosedError: If the trade was already finalized
            ValidationError: If outcome is PENDING
        """
        if not self.is_open:
            raise TradeAlreadyClosedError(self.id, self.outcome.value)
        if not outcome.is_closed:
            raise ValidationError("Cannot close a trade with a pending outcome")

        return replace(
            self,
            exit_date=exit_date,
            exit_price=exit_price,
            outcome=outcome,
            days_held=calculate_days_held(self.entry_date, exit_date),
            profit_loss_percent=calculate_pnl_percent(self.action, self.entry_price, exit_price),
            profit_loss_dollar=calculate_pnl_dollar(
                self.action, self.entry_price, exit_price, position_size
            ),
        )

    def to_dict(self) -> dict:
        """Convert trade to dictionary."""
        return {
            "id": self.id,
            "entry_date": self.entry_date,
            "exit_date": self.exit_date,
            "symbol": self.symbol,
            "action": self.action.value,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "price_target": self.price_target,
            "stop_loss": self.stop_loss,
            "confidence": self.confidence,
            "rationale": self.rationale,
            "outcome": self.outcome.value,
            "profit_loss_percent": self.profit_loss_percent,
            "profit_loss_dollar": self.profit_loss_dollar,
            "days_held": self.days_held,
            "patterns": list(self.patterns),
            "regime": self.regime,
        }
