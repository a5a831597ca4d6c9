"""
Trade action and outcome enumerations.

This module defines the actions a decision oracle may return and the
lifecycle outcomes of a simulated trade.
"""

from enum import StrEnum


class ActionType(StrEnum):
    """
    Allowed oracle actions.

    BUY opens a long position, SELL opens a short position and HOLD
    leaves the engine flat.
    """

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def is_opening(self) -> bool:
        """Check if action opens a new position."""
        return self in [self.BUY, self.SELL]

    @property
    def is_long(self) -> bool:
        """Check if action opens a long position."""
        return self == self.BUY

    @property
    def is_short(self) -> bool:
        """Check if action opens a short position."""
        return self == self.SELL

    @classmethod
    def from_string(cls, value: str) -> "ActionType":
        """
        Convert string to ActionType enum, with case-insensitive matching.

        Raises:
            ValueError: If action is not supported
        """
        value_upper = value.strip().upper()
        for action in cls:
            if action.value == value_upper:
                return action

        raise ValueError(
            f"Unsupported action: {value}. "
            f"Supported actions: {', '.join([a.value for a in cls])}"
        )


class TradeOutcome(StrEnum):
    """
    Trade lifecycle outcomes.

    A trade is pending while open and ends as win, loss or expired.
    """

    PENDING = "pending"
    WIN = "win"
    LOSS = "loss"
    EXPIRED = "expired"

    @property
    def is_closed(self) -> bool:
        """Check if the trade has been finalized."""
        return self != self.PENDING

    @property
    def is_completed(self) -> bool:
        """Check if the trade hit its target or stop."""
        return self in [self.WIN, self.LOSS]
