import os
from typing import NamedTuple


class PeriodConfig(NamedTuple):
    window_days: int
    step_days: int
    label_style: str


PERIOD_CONFIG = {
    "1W":  PeriodConfig(window_days=7,   step_days=1,  label_style="weekday"),
    "1M":  PeriodConfig(window_days=30,  step_days=1,  label_style="day_month"),
    "3M":  PeriodConfig(window_days=90,  step_days=3,  label_style="day_month"),
    "6M":  PeriodConfig(window_days=180, step_days=7,  label_style="day_month"),
    "1Y":  PeriodConfig(window_days=365, step_days=14, label_style="month_year"),
    "ALL": PeriodConfig(window_days=730, step_days=30, label_style="month_year"),
}
PERIODS = list(PERIOD_CONFIG)
DEFAULT_PERIOD = "6M"             # Also used for unrecognized period codes

# Seeded generator (linear congruential)
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

# Synthetic points
BASE_VOLATILITY = 0.02
VOLATILITY_SPREAD = 0.5
NOISE_CENTER = 0.45               # trend factor is rand() - NOISE_CENTER
SYNTHETIC_FLOOR_RATIO = 0.7

DEFAULT_CURRENCY = "EUR"
DIVERSIFICATION_POINTS_PER_LINE = 10
DIVERSIFICATION_MAX = 100

DB_PATH = os.environ.get("PEA_TRACKER_DB", "pea_tracker.db")
SNAPSHOT_INTERVAL_SECONDS = 3600
SEED_SAMPLE_PORTFOLIO = os.environ.get("PEA_TRACKER_SEED_SAMPLE") == "1"
CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]

SAMPLE_PORTFOLIO = [
    {"ticker": "AI.PA",  "name": "Air Liquide", "quantity": 15, "average_cost": 145.50,  "current_price": 172.40},
    {"ticker": "MC.PA",  "name": "LVMH",        "quantity": 2,  "average_cost": 680.00,  "current_price": 795.20},
    {"ticker": "AIR.PA", "name": "Airbus",      "quantity": 10, "average_cost": 125.00,  "current_price": 148.60},
    {"ticker": "RMS.PA", "name": "Hermès",      "quantity": 1,  "average_cost": 1950.00, "current_price": 2240.00},
]
