"""Savings capacity growth projection."""

from __future__ import annotations

import math


def project_growth_multiplier(
    years: float,
    annual_growth_rate_pct: float,
    annual_bonus: float,
    current_monthly_capacity: float,
) -> float:
    """Ratio of average future monthly capacity to today's monthly capacity.

    Simulates each whole year of the horizon: the year's capacity plus the
    annual bonus is accumulated, then capacity grows by
    ``annual_growth_rate_pct`` percent.  Horizons of a year or less assume
    no growth, and so does a household with no capacity today.
    """
    if years <= 1:
        return 1.0
    if current_monthly_capacity <= 0:
        return 1.0

    whole_years = math.ceil(years)
    total = 0.0
    current_annual = current_monthly_capacity * 12
    for _ in range(whole_years):
        total += current_annual + annual_bonus
        current_annual *= 1 + annual_growth_rate_pct / 100

    average_monthly = total / (whole_years * 12)
    return average_monthly / current_monthly_capacity
