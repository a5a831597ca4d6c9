"""
Single-position state machine.

States: Flat -> Open -> Closed(win | loss | expired) -> Flat. At most one
trade is open at any time; a closed trade is handed back to the caller and
never touched again.
"""

from dataclasses import dataclass

from loguru import logger

from backtester.core.constants import DEFAULT_STOP_PERCENT, DEFAULT_TARGET_PERCENT
from backtester.core.enums import ActionType, TradeOutcome
from backtester.core.exceptions.backtest import (
    NoOpenPositionError,
    PositionAlreadyOpenError,
    ValidationError,
)
from backtester.core.models.backtest import BacktestConfig, generate_id
from backtester.core.models.candle import Candle
from backtester.core.models.recommendation import Recommendation
from backtester.core.models.trade import Trade
from backtester.core.types.financial import ZERO, calculate_shares, round_price


@dataclass(frozen=True)
class ExitSignal:
    """Exit decided by the touch rule for one candle."""

    exit_price: float
    outcome: TradeOutcome


def default_price_target(action: ActionType, price: float) -> float:
    """Take-profit level used when the oracle gives none."""
    if action == ActionType.BUY:
        return round_price(price * (1 + DEFAULT_TARGET_PERCENT))
    return round_price(price * (1 - DEFAULT_TARGET_PERCENT))


def default_stop_loss(action: ActionType, price: float) -> float:
    """Stop-loss level used when the oracle gives none."""
    if action == ActionType.BUY:
        return round_price(price * (1 - DEFAULT_STOP_PERCENT))
    return round_price(price * (1 + DEFAULT_STOP_PERCENT))


def evaluate_touch(trade: Trade, candle: Candle) -> ExitSignal | None:
    """Apply the touch rule to one candle.

    The target is checked before the stop, so a candle touching both
    closes the trade as a win.
    """
    if trade.action.is_long:
        if trade.price_target and candle.high >= trade.price_target:
            return ExitSignal(trade.price_target, TradeOutcome.WIN)
        if trade.stop_loss and candle.low <= trade.stop_loss:
            return ExitSignal(trade.stop_loss, TradeOutcome.LOSS)
    else:
        if trade.price_target and candle.low <= trade.price_target:
            return ExitSignal(trade.price_target, TradeOutcome.WIN)
        if trade.stop_loss and candle.high >= trade.stop_loss:
            return ExitSignal(trade.stop_loss, TradeOutcome.LOSS)
    return None


class PositionManager:
    """Owns the single open position of a run."""

    def __init__(self, config: BacktestConfig):
        self.symbol = config.symbol
        self.position_size = config.position_size
        self._open_trade: Trade | None = None

    @property
    def is_flat(self) -> bool:
        """Check if no position is open."""
        return self._open_trade is None

    @property
    def open_trade(self) -> Trade | None:
        """The pending trade, if any."""
        return self._open_trade

    def open_position(self, candle: Candle, recommendation: Recommendation) -> Trade:
        """Open a position at the candle close.

        Raises:
            PositionAlreadyOpenError: If a position is already open
            ValidationError: If the recommendation does not open a position
        """
        if self._open_trade is not None:
            raise PositionAlreadyOpenError(self._open_trade.id)
        if not recommendation.is_actionable:
            raise ValidationError(f"Cannot open a position from {recommendation.action}")

        action = recommendation.action
        entry_price = candle.close
        trade = Trade(
            id=generate_id(),
            entry_date=candle.time,
            symbol=self.symbol,
            action=action,
            entry_price=entry_price,
            price_target=recommendation.price_target or default_price_target(action, entry_price),
            stop_loss=recommendation.stop_loss or default_stop_loss(action, entry_price),
            confidence=recommendation.confidence,
            rationale=recommendation.rationale,
        )
        self._open_trade = trade

        logger.info(
            f"Opened {action} {self.symbol} @ {entry_price:.2f} "
            f"(target={trade.price_target:.2f}, stop={trade.stop_loss:.2f}, "
            f"conf={recommendation.confidence})"
        )
        return trade

    def check_exit(self, candle: Candle) -> Trade | None:
        """Close the open position if the candle touches its target or stop.

        Returns:
            The closed trade, or None if flat or nothing was touched
        """
        if self._open_trade is None:
            return None

        signal = evaluate_touch(self._open_trade, candle)
        if signal is None:
            return None
        return self._close(candle.time, signal.exit_price, signal.outcome)

    def force_close(self, candle: Candle) -> Trade | None:
        """Expire the open position at the candle close, if any."""
        if self._open_trade is None:
            return None
        return self._close(candle.time, candle.close, TradeOutcome.EXPIRED)

    def mark_to_market(self, price: float) -> float:
        """Current value of the open position, or 0 when flat.

        Sizing is fixed, so the value is the allocated position size plus
        the unrealized P&L at `price`.
        """
        trade = self._open_trade
        if trade is None:
            return ZERO

        shares = calculate_shares(self.position_size, trade.entry_price)
        if trade.action.is_long:
            return self.position_size + (price - trade.entry_price) * shares
        return self.position_size + (trade.entry_price - price) * shares

    def _close(self, exit_date: int, exit_price: float, outcome: TradeOutcome) -> Trade:
        """Finalize the open trade and go flat."""
        trade = self._open_trade
        if trade is None:
            raise NoOpenPositionError("close")

        trade = trade.close(exit_date, exit_price, outcome, self.position_size)
        self._open_trade = None

        logger.info(
            f"Closed {trade.action} {self.symbol}: {outcome}, "
            f"P&L: {trade.profit_loss_percent:.2f}% ({trade.profit_loss_dollar:.2f})"
        )
        return trade
