"""Per-goal funding strategy: inflation target, contribution and asset mix.

For a goal with a deadline the calculator works out

* the inflation-adjusted nominal target at the deadline,
* a suggested conservative/moderate/aggressive mix for the horizon and
  its blended return,
* the monthly contribution that reaches the target at that return
  (future value of an ordinary annuity, solved for the payment), and
* how that contribution splits across earners in proportion to their
  net income.

Rates are the static assumptions from :mod:`config`; nothing here is
fitted to market data.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .config import (
    DAYS_IN_YEAR,
    DEFAULT_ASSUMPTIONS,
    MIN_YEARS,
    STRATEGY_MEDIUM_YEARS,
    STRATEGY_SHORT_YEARS,
    PlanningAssumptions,
)
from .models import (
    ContributionShare,
    FinancialGoal,
    FinancialProfile,
    IncomeSource,
    RiskAllocation,
    StrategyAssumptions,
    StrategyResult,
    normalize_datetime,
    to_float,
)


def horizon_years(deadline: datetime, current_date: datetime) -> float:
    """Years until ``deadline``, floored at ``MIN_YEARS`` for past-due goals."""
    days = (normalize_datetime(deadline) - normalize_datetime(current_date)).total_seconds() / 86400
    return max(days / DAYS_IN_YEAR, MIN_YEARS)


def suggested_allocation(
    years: float,
    assumptions: PlanningAssumptions = DEFAULT_ASSUMPTIONS,
) -> Tuple[RiskAllocation, float]:
    """Return the horizon-banded asset mix and its blended annual return."""
    if years < STRATEGY_SHORT_YEARS:
        allocation = RiskAllocation(conservative=100, moderate=0, aggressive=0)
    elif years < STRATEGY_MEDIUM_YEARS:
        allocation = RiskAllocation(conservative=20, moderate=80, aggressive=0)
    else:
        allocation = RiskAllocation(conservative=10, moderate=30, aggressive=60)

    blended = (
        allocation.conservative / 100 * assumptions.conservative_return
        + allocation.moderate / 100 * assumptions.moderate_return
        + allocation.aggressive / 100 * assumptions.aggressive_return
    )
    return allocation, blended


def required_monthly_contribution(
    future_value: float,
    current_amount: float,
    annual_return: float,
    years: float,
) -> float:
    """Monthly payment that grows ``current_amount`` into ``future_value``.

    The current amount compounds monthly alongside the contributions, so
    only the part of the target it will not cover needs funding.  Never
    negative.
    """
    monthly_rate = annual_return / 12
    months = years * 12

    if monthly_rate == 0:
        return max((future_value - current_amount) / months, 0.0)

    growth = (1 + monthly_rate) ** months
    remaining = max(0.0, future_value - current_amount * growth)
    if remaining <= 0:
        return 0.0
    return remaining * monthly_rate / (growth - 1)


def contribution_split(amount: float, income: Sequence[IncomeSource]) -> List[ContributionShare]:
    """Split ``amount`` across earners by their share of net household income.

    Earners keep profile order.  An empty list means the contribution stays
    unattributed (nothing to split, or no usable income figures).
    """
    if amount <= 0 or not income:
        return []
    net_values = [max(to_float(source.net_monthly), 0.0) for source in income]
    total_net = sum(net_values)
    if total_net <= 0:
        return []
    return [
        ContributionShare(
            contributor_id=source.contributor_id,
            amount=amount * (net / total_net),
            percentage=net / total_net * 100,
        )
        for source, net in zip(income, net_values)
    ]


def calculate_strategy(
    goal: FinancialGoal,
    profile: FinancialProfile,
    current_date: Optional[datetime] = None,
    assumptions: Optional[PlanningAssumptions] = None,
) -> Optional[StrategyResult]:
    """Recommend how to fund ``goal``; ``None`` when it has no deadline."""
    if goal.deadline is None:
        return None

    assumptions = assumptions or DEFAULT_ASSUMPTIONS
    years = horizon_years(goal.deadline, current_date or datetime.now())

    future_value = goal.target_amount * (1 + assumptions.inflation_rate) ** years
    allocation, blended_return = suggested_allocation(years, assumptions)
    payment = required_monthly_contribution(future_value, goal.current_amount, blended_return, years)

    return StrategyResult(
        future_value=future_value,
        required_monthly_contribution=payment,
        suggested_allocation=allocation,
        assumptions=StrategyAssumptions(
            inflation_rate=assumptions.inflation_rate,
            return_rate=blended_return,
        ),
        contribution_split=tuple(contribution_split(payment, profile.income)),
    )
