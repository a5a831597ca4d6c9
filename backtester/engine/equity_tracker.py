"""
Equity and drawdown tracking.
"""

from backtester.core.models.backtest import EquityPoint
from backtester.core.types.financial import HUNDRED, ZERO


class EquityTracker:
    """Tracks cash, the equity curve, running peak and maximum drawdown.

    Cash only moves when a trade closes. Peak and max drawdown are updated
    in O(1) per recorded point.
    """

    def __init__(self, initial_capital: float):
        self.initial_capital = initial_capital
        self.cash = initial_capital
        self.peak_equity = initial_capital
        self.max_drawdown = ZERO
        self._curve: list[EquityPoint] = []

    def realize(self, profit_loss_dollar: float) -> None:
        """Book a closed trade's dollar P&L into cash."""
        self.cash += profit_loss_dollar

    def record(self, date: int, mark_to_market: float) -> EquityPoint:
        """Append one equity point for a simulated step.

        Args:
            date: Candle time in unix seconds
            mark_to_market: Value of the open position (0 when flat)
        """
        equity = self.cash + mark_to_market
        if equity > self.peak_equity:
            self.peak_equity = equity

        drawdown = ZERO
        if self.peak_equity > ZERO and equity < self.peak_equity:
            drawdown = (self.peak_equity - equity) / self.peak_equity * HUNDRED
        if drawdown > self.max_drawdown:
            self.max_drawdown = drawdown

        point = EquityPoint(date=date, equity=equity, drawdown_percent=drawdown)
        self._curve.append(point)
        return point

    @property
    def current_equity(self) -> float:
        """Equity of the last recorded point, or cash before the first step."""
        return self._curve[-1].equity if self._curve else self.cash

    @property
    def equity_curve(self) -> tuple[EquityPoint, ...]:
        """Snapshot of the curve recorded so far."""
        return tuple(self._curve)

    def __len__(self) -> int:
        return len(self._curve)
