"""
Decision oracle request and response models.
"""

from dataclasses import dataclass, field

from backtester.core.enums import ActionType
from backtester.core.exceptions.backtest import ValidationError


@dataclass(frozen=True)
class RecommendationOptions:
    """Options passed to the oracle with every point-in-time request."""

    confidence_threshold: float
    skip_budget_check: bool = True
    news_headlines: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Recommendation:
    """Trading decision returned by the oracle for one simulated step."""

    action: ActionType
    confidence: float
    rationale: str = ""
    price_target: float | None = None
    stop_loss: float | None = None

    def __post_init__(self) -> None:
        """Normalize the action and validate price levels."""
        if not isinstance(self.action, ActionType):
            try:
                object.__setattr__(self, "action", ActionType.from_string(str(self.action)))
            except ValueError as e:
                raise ValidationError(str(e)) from e
        if self.price_target is not None and self.price_target < 0:
            raise ValidationError(f"Price target must be non-negative, got {self.price_target}")
        if self.stop_loss is not None and self.stop_loss < 0:
            raise ValidationError(f"Stop loss must be non-negative, got {self.stop_loss}")

    @property
    def is_actionable(self) -> bool:
        """Check if the recommendation opens a position."""
        return self.action.is_opening
