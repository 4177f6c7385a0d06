"""Household profile and goal helpers used by the planning forms.

These are advisory: warnings are returned as plain strings for display and
never stop the allocation engine from running.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from .config import MEDIUM_TERM_MONTHS, SHORT_TERM_MONTHS
from .feasibility import months_between, total_capacity
from .models import (
    Bucket,
    FinancialGoal,
    FinancialProfile,
    GoalCategory,
    RiskAllocation,
    SavingsContribution,
)
from .strategy import contribution_split

# Contributor id used when derived capacity cannot be attributed to an earner
DERIVED_CONTRIBUTOR = "household"


def total_savings_capacity(profile: FinancialProfile) -> float:
    return total_capacity(profile)


def derive_savings_capacity(total_income: float, fixed_commitments: float, variable_commitments: float) -> float:
    """Monthly amount left to save after fixed and variable commitments."""
    return max(0.0, total_income - fixed_commitments - variable_commitments)


def household_net_income(profile: FinancialProfile) -> float:
    """Stated monthly household income, falling back to the earners' net pay."""
    if profile.total_monthly_income > 0:
        return profile.total_monthly_income
    return sum(max(source.net_monthly, 0.0) for source in profile.income)


def with_derived_capacity(profile: FinancialProfile) -> FinancialProfile:
    """Fill an empty savings capacity from income less commitments.

    Profiles that already list contributions are returned unchanged.  The
    derived capacity is split across earners by net pay when there are
    any, otherwise it is booked to a single ``household`` contributor.
    """
    if profile.savings_capacity:
        return profile
    capacity = derive_savings_capacity(
        household_net_income(profile),
        profile.monthly_commitments,
        profile.variable_commitments,
    )
    if capacity <= 0:
        return profile

    shares = contribution_split(capacity, profile.income)
    if shares:
        contributions = [SavingsContribution(share.contributor_id, share.amount) for share in shares]
    else:
        contributions = [SavingsContribution(DERIVED_CONTRIBUTOR, capacity)]
    return replace(profile, savings_capacity=contributions)


def validate_risk_allocation(allocation: Optional[RiskAllocation]) -> List[str]:
    """Return warnings for a risk split that is out of range or not 100%."""
    if allocation is None:
        return ["No risk allocation set; all capacity is treated as conservative."]

    warnings_list = []
    for bucket in Bucket:
        value = allocation.percent(bucket)
        if value < 0 or value > 100:
            warnings_list.append(f"{bucket.label} allocation must be between 0% and 100% (got {value:g}%).")

    if abs(allocation.total - 100) > 1e-9:
        warnings_list.append(f"Total allocation must equal 100% (Current: {allocation.total:g}%).")
    return warnings_list


def classify_goal_category(deadline: Optional[datetime], current_date: Optional[datetime] = None) -> GoalCategory:
    """Advisory horizon label; the allocator always recomputes from the deadline."""
    if deadline is None:
        return GoalCategory.MEDIUM_TERM
    months = months_between(deadline, current_date or datetime.now())
    if months < SHORT_TERM_MONTHS:
        return GoalCategory.SHORT_TERM
    if months < MEDIUM_TERM_MONTHS:
        return GoalCategory.MEDIUM_TERM
    return GoalCategory.LONG_TERM


def validate_goal(goal: FinancialGoal) -> List[str]:
    warnings_list = []
    if not goal.name.strip():
        warnings_list.append("Goal name is required.")
    if goal.target_amount <= 0:
        warnings_list.append("Target amount must be greater than zero.")
    if goal.current_amount < 0:
        warnings_list.append("Current amount cannot be negative.")
    if goal.deadline is None:
        warnings_list.append("No deadline set; the goal cannot be planned until it has one.")
    return warnings_list
