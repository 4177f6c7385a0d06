#!/usr/bin/env python3
"""Lightweight validator for the local planning snapshot and rate table."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from household_planner.config import PLANNING_FILE, RATES_FILE, configure_logging
from household_planner.currency import parse_rate_key
from household_planner.models import FinancialGoal, FinancialProfile
from household_planner.plan_storage import load_planning_data, load_rates
from household_planner.profile import validate_goal, validate_risk_allocation


def validate_planning(path: Path) -> List[str]:
    data = load_planning_data(path)
    issues = []

    profile = FinancialProfile.from_dict(data['profile'])
    issues.extend(f"profile: {w}" for w in validate_risk_allocation(profile.risk_allocation))
    if not profile.savings_capacity:
        issues.append("profile: no savings capacity entries")

    asset_ids = {str(a.get('id')) for a in data['assets']}
    for index, raw in enumerate(data['goals']):
        label = raw.get('name') or f"goal #{index + 1}"
        try:
            goal = FinancialGoal.from_dict(raw)
        except ValueError as exc:
            issues.append(f"{label}: {exc}")
            continue
        issues.extend(f"{label}: {w}" for w in validate_goal(goal))
        for asset_id in goal.funding_source_ids:
            if asset_id not in asset_ids:
                issues.append(f"{label}: linked asset '{asset_id}' not found")
    return issues


def validate_rates(path: Path) -> List[str]:
    issues = []
    for key, rate in load_rates(path).items():
        if parse_rate_key(key) is None:
            issues.append(f"rate '{key}': key must look like FROM-TO")
        if rate <= 0:
            issues.append(f"rate '{key}': must be positive")
    return issues


def main() -> int:
    configure_logging()
    if not PLANNING_FILE.exists():
        print(f"Planning file not found: {PLANNING_FILE}")
        return 1

    issues = validate_planning(PLANNING_FILE) + validate_rates(RATES_FILE)
    if issues:
        print("Planning data validation failed:")
        for message in issues:
            print(f"  - {message}")
        return 1

    print("Planning data validated successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
