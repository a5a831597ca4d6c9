"""
Core constants and limits.

Defines engine-wide constants and resource limits shared by the
simulation clock, the metrics calculator and the API layer.
"""

# Data Requirements
INDICATOR_LOOKBACK = 200  # Warm-up candles fetched before the start date
MIN_SIMULATION_CANDLES = 10  # Extra candles required beyond the lookback
MAX_REPORTED_VALIDATION_ISSUES = 5  # Validation issues copied into result errors
MAX_CANDLE_GAP_DAYS = 5  # Larger gaps are reported (weekends + holidays allowed)

# Position Defaults
DEFAULT_TARGET_PERCENT = 0.05  # 5% take-profit when the oracle gives no target
DEFAULT_STOP_PERCENT = 0.03  # 3% stop-loss when the oracle gives no stop

# Metrics
PROFIT_FACTOR_SENTINEL = 999.0  # Reported instead of infinity when no losses
TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365

# Progress / Rate Limiting
PROGRESS_STEP_PERCENT = 5  # Simulation progress is reported per 5% bucket
DEFAULT_ORACLE_DELAY_SECONDS = 0.1  # Politeness delay between oracle calls

# AI Call Estimation
TRADING_DAY_RATIO = 0.7  # Share of calendar days that are trading days

# Result Storage
MAX_SAVED_RESULTS = 20
