"""
Post-hoc backtest insight models.
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class GroupStats:
    """Win rate of the trades sharing one label (pattern, weekday, regime)."""

    label: str
    win_rate: float
    count: int
    avg_return: float = 0.0


@dataclass(frozen=True)
class SideStats:
    """Statistics of completed trades for one side (BUY or SELL)."""

    count: int
    win_rate: float
    avg_return: float


@dataclass(frozen=True)
class DetailedStats:
    """Per-side statistics and confidence distribution of completed trades."""

    buy_stats: SideStats
    sell_stats: SideStats
    confidence_distribution: dict[str, int]

    def to_dict(self) -> dict:
        """Convert detailed stats to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class BacktestInsights:
    """Optimization hints derived from a finished backtest."""

    best_patterns: list[GroupStats] = field(default_factory=list)
    worst_patterns: list[GroupStats] = field(default_factory=list)
    best_day_of_week: GroupStats = field(default_factory=lambda: GroupStats("N/A", 0.0, 0))
    performance_by_regime: list[GroupStats] = field(default_factory=list)
    confidence_correlation: float = 0.0
    optimal_confidence_threshold: float = 70.0
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert insights to dictionary."""
        return asdict(self)
