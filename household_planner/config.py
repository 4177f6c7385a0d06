"""Configuration management for the household goal planner.

This module centralizes all configuration values including paths,
planning assumptions, horizon thresholds and environment variable
overrides.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in household_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("HOUSEHOLD_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))
PLANNING_DIR = DATA_DIR / "planning"

PLANNING_FILE = Path(
    os.getenv("HOUSEHOLD_PLANNER_PLANNING_FILE", PLANNING_DIR / "planning.json")
).resolve()
RATES_FILE = Path(
    os.getenv("HOUSEHOLD_PLANNER_RATES_FILE", PLANNING_DIR / "rates.json")
).resolve()

LOG_LEVEL = os.getenv("HOUSEHOLD_PLANNER_LOG_LEVEL", "WARNING")


@dataclass(frozen=True)
class PlanningAssumptions:
    """Static rate assumptions used by the strategy calculator (annual, decimal)."""

    inflation_rate: float = 0.06
    conservative_return: float = 0.06
    moderate_return: float = 0.10
    aggressive_return: float = 0.15


DEFAULT_ASSUMPTIONS = PlanningAssumptions()

# Used when a household profile carries no risk split
DEFAULT_RISK_ALLOCATION = {"conservative": 100.0, "moderate": 0.0, "aggressive": 0.0}

# Allocation horizons, in months
SHORT_TERM_MONTHS = 24
MEDIUM_TERM_MONTHS = 60
GROWTH_MIN_MONTHS = 12

# Strategy horizons, in years
STRATEGY_SHORT_YEARS = 3
STRATEGY_MEDIUM_YEARS = 7

DAYS_IN_MONTH = 30.44
DAYS_IN_YEAR = 365.25
MIN_MONTHS = 0.1
MIN_YEARS = 0.1

# Amounts at or below this are treated as empty / satisfied
FUNDING_TOLERANCE = 0.01

DEFAULT_CURRENCY = "USD"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, PLANNING_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts and the Streamlit app."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
