"""Goal feasibility check and monthly capacity allocation.

The household's monthly savings capacity is split into three risk buckets
(conservative, moderate, aggressive) by the profile's risk allocation.
Goals are then funded greedily, highest priority and soonest deadline
first, each drawing its required monthly amount from the buckets its
horizon allows:

* under 24 months: conservative only, never borrowing riskier money;
* 24 to 60 months: moderate first, then conservative;
* 60 months or more: the goal's risk override decides the bucket order,
  otherwise aggressive, moderate, conservative.  Long horizons also count
  on capacity growing with income, so each bucket can cover more than its
  balance today while the ledger is only charged in today's money.

Allocation is irrevocable: there is no backtracking across goals.  The
pools are an immutable :class:`~household_planner.models.BucketPools`
value folded through :func:`allocate_goal`, so each step can be checked on
its own and concurrent calls share nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import (
    DAYS_IN_MONTH,
    DEFAULT_RISK_ALLOCATION,
    FUNDING_TOLERANCE,
    GROWTH_MIN_MONTHS,
    MEDIUM_TERM_MONTHS,
    MIN_MONTHS,
    SHORT_TERM_MONTHS,
    PlanningAssumptions,
)
from .growth import project_growth_multiplier
from .models import (
    Asset,
    Bucket,
    BucketBalance,
    BucketPools,
    FeasibilityResult,
    FeasibilityStatus,
    FinancialGoal,
    FinancialProfile,
    GoalPlan,
    GoalPriority,
    PlanResult,
    RiskAllocation,
    normalize_datetime,
)
from .strategy import calculate_strategy

logger = logging.getLogger(__name__)

PRIORITY_SCORES = {
    GoalPriority.HIGH: 3,
    GoalPriority.MEDIUM: 2,
    GoalPriority.LOW: 1,
}
# Goals without a priority rank with low ones
DEFAULT_PRIORITY_SCORE = 1
# Goals without a deadline sort after every dated goal of the same priority
NO_DEADLINE = datetime.max

SHORT_TERM_BUCKETS: Tuple[Bucket, ...] = (Bucket.CONSERVATIVE,)
MEDIUM_TERM_BUCKETS: Tuple[Bucket, ...] = (Bucket.MODERATE, Bucket.CONSERVATIVE)
LONG_TERM_BUCKETS: Tuple[Bucket, ...] = (Bucket.AGGRESSIVE, Bucket.MODERATE, Bucket.CONSERVATIVE)

OVERRIDE_BUCKETS: Dict[Bucket, Tuple[Bucket, ...]] = {
    Bucket.AGGRESSIVE: LONG_TERM_BUCKETS,
    Bucket.MODERATE: MEDIUM_TERM_BUCKETS,
    Bucket.CONSERVATIVE: SHORT_TERM_BUCKETS,
}


@dataclass(frozen=True)
class AllocationContext:
    """Inputs shared by every goal in one allocation run."""

    profile: FinancialProfile
    assets_by_id: Mapping[str, Asset]
    current_date: datetime
    total_capacity: float
    assumptions: Optional[PlanningAssumptions] = None


# ---------------------------------------------------------------------------
# Ordering and measurement
# ---------------------------------------------------------------------------

def priority_score(priority: Optional[GoalPriority]) -> int:
    return PRIORITY_SCORES.get(priority, DEFAULT_PRIORITY_SCORE)


def goal_sort_key(goal: FinancialGoal) -> Tuple[int, datetime]:
    deadline = normalize_datetime(goal.deadline) if goal.deadline else NO_DEADLINE
    return (-priority_score(goal.priority), deadline)


def sort_goals(goals: Iterable[FinancialGoal]) -> List[FinancialGoal]:
    """Higher priority first, then earlier deadline; stable for full ties."""
    return sorted(goals, key=goal_sort_key)


def months_between(deadline: datetime, current_date: datetime) -> float:
    """Average-length months until ``deadline``, floored at ``MIN_MONTHS``."""
    days = (normalize_datetime(deadline) - normalize_datetime(current_date)).total_seconds() / 86400
    return max(days / DAYS_IN_MONTH, MIN_MONTHS)


def index_assets(assets: Iterable[Asset]) -> Dict[str, Asset]:
    indexed: Dict[str, Asset] = {}
    for asset in assets:
        indexed.setdefault(asset.id, asset)
    return indexed


def effective_current_funding(goal: FinancialGoal, assets_by_id: Mapping[str, Asset]) -> float:
    """Cash saved plus the value of linked assets; unknown ids count as zero."""
    linked = sum(
        assets_by_id[asset_id].funding_value
        for asset_id in goal.funding_source_ids
        if asset_id in assets_by_id
    )
    return goal.current_amount + linked


def total_capacity(profile: FinancialProfile) -> float:
    return sum(item.amount for item in profile.savings_capacity)


def initial_pools(profile: FinancialProfile) -> BucketPools:
    allocation = profile.risk_allocation or RiskAllocation(**DEFAULT_RISK_ALLOCATION)
    return BucketPools.from_capacity(total_capacity(profile), allocation)


def bucket_priority(months: float, risk_level: Optional[Bucket]) -> Tuple[Bucket, ...]:
    """Bucket draw order for the long-horizon policy."""
    if risk_level is not None:
        return OVERRIDE_BUCKETS[risk_level]
    if months < SHORT_TERM_MONTHS:
        return SHORT_TERM_BUCKETS
    if months < MEDIUM_TERM_MONTHS:
        return MEDIUM_TERM_BUCKETS
    return LONG_TERM_BUCKETS


def _join_labels(buckets: Sequence[Bucket]) -> Optional[str]:
    return " + ".join(bucket.label for bucket in buckets) or None


# ---------------------------------------------------------------------------
# Horizon policies
#
# Each returns (pools, funded_amount, buckets_touched, fully_funded, reason, issues).
# ---------------------------------------------------------------------------

def _fund_short_term(pools: BucketPools, required: float):
    available = pools.conservative
    if available >= required:
        touched = [Bucket.CONSERVATIVE] if required > 0 else []
        return pools.draw(Bucket.CONSERVATIVE, required), required, touched, True, None, []

    touched = [Bucket.CONSERVATIVE] if available > 0 else []
    issues = ["Goal is short-term (<2y). Needs safe funds, but conservative bucket is empty."]
    return (
        pools.with_balance(Bucket.CONSERVATIVE, 0.0),
        available,
        touched,
        False,
        "Insufficient conservative allocation for short-term goal.",
        issues,
    )


def _fund_medium_term(pools: BucketPools, required: float):
    moderate = pools.moderate
    if moderate >= required:
        touched = [Bucket.MODERATE] if required > 0 else []
        return pools.draw(Bucket.MODERATE, required), required, touched, True, None, []

    touched = [Bucket.MODERATE] if moderate > 0 else []
    funded = moderate
    pools = pools.with_balance(Bucket.MODERATE, 0.0)
    needed = required - funded

    conservative = pools.conservative
    if conservative >= needed:
        touched.append(Bucket.CONSERVATIVE)
        return pools.draw(Bucket.CONSERVATIVE, needed), funded + needed, touched, True, None, []

    if conservative > 0:
        touched.append(Bucket.CONSERVATIVE)
    return (
        pools.with_balance(Bucket.CONSERVATIVE, 0.0),
        funded + conservative,
        touched,
        False,
        "Insufficient Moderate/Conservative funds.",
        [],
    )


def _fund_long_term(
    pools: BucketPools,
    required: float,
    buckets: Sequence[Bucket],
    growth_multiplier: float,
    risk_level: Optional[Bucket],
):
    needed = required
    funded = 0.0
    touched: List[Bucket] = []

    for bucket in buckets:
        if needed <= FUNDING_TOLERANCE:
            break
        balance = pools.get(bucket)
        if balance <= FUNDING_TOLERANCE:
            continue
        # Growth lets a bucket satisfy more per goal; the ledger is charged in today's money
        amount = min(balance * growth_multiplier, needed)
        if amount > 0:
            pools = pools.draw(bucket, amount / growth_multiplier)
            needed -= amount
            funded += amount
            touched.append(bucket)

    if needed > FUNDING_TOLERANCE:
        if risk_level is not None:
            reason = f"Insufficient funds in {risk_level.value} allocation. Shortfall: {needed:.0f}"
        else:
            reason = f"Insufficient total capacity. Shortfall: {needed:.0f}"
        return pools, funded, touched, False, reason, []
    return pools, funded, touched, True, None, []


# ---------------------------------------------------------------------------
# Allocation fold
# ---------------------------------------------------------------------------

def _no_deadline_plan(goal: FinancialGoal) -> GoalPlan:
    return GoalPlan(
        goal=goal,
        feasibility=FeasibilityResult(
            status=FeasibilityStatus.NOT_FEASIBLE,
            reason="No deadline set",
        ),
        strategy=None,
    )


def allocate_goal(
    goal: FinancialGoal,
    pools: BucketPools,
    context: AllocationContext,
) -> Tuple[BucketPools, GoalPlan]:
    """Fund one goal from ``pools`` and return the updated pools with its plan."""
    if goal.deadline is None:
        return pools, _no_deadline_plan(goal)

    months = months_between(goal.deadline, context.current_date)
    current_funding = effective_current_funding(goal, context.assets_by_id)
    required_total = max(goal.target_amount - current_funding, 0.0)
    required_monthly = required_total / months

    if months < SHORT_TERM_MONTHS:
        permitted = SHORT_TERM_BUCKETS
        pools, funded, touched, fully_funded, reason, issues = _fund_short_term(pools, required_monthly)
    elif months < MEDIUM_TERM_MONTHS:
        permitted = MEDIUM_TERM_BUCKETS
        pools, funded, touched, fully_funded, reason, issues = _fund_medium_term(pools, required_monthly)
    else:
        permitted = bucket_priority(months, goal.risk_level)
        growth_multiplier = 1.0
        if months > GROWTH_MIN_MONTHS:
            growth_multiplier = project_growth_multiplier(
                months / 12,
                context.profile.income_growth_rate,
                context.profile.annual_bonus,
                context.total_capacity,
            )
        pools, funded, touched, fully_funded, reason, issues = _fund_long_term(
            pools, required_monthly, permitted, growth_multiplier, goal.risk_level
        )

    funding_gap = 0.0
    if fully_funded:
        status = FeasibilityStatus.FEASIBLE
        reason = "On track"
    else:
        status = FeasibilityStatus.NOT_FEASIBLE
        funding_gap = required_monthly - funded
        if funding_gap > 0:
            locked_out = [bucket for bucket in Bucket if bucket not in permitted]
            if any(pools.get(bucket) > 0 for bucket in locked_out):
                issues.append("Funds available in other buckets, but risk constraints prevent using them.")
                issues.append("Consider adjusting risk allocation.")
            else:
                issues.append("Increase savings or extend deadline.")

    strategy = calculate_strategy(
        replace(goal, current_amount=current_funding),
        context.profile,
        current_date=context.current_date,
        assumptions=context.assumptions,
    )

    logger.debug(
        "Goal %s (%s): %.1f months, required %.2f/month, funded %.2f from %s -> %s",
        goal.id,
        goal.name,
        months,
        required_monthly,
        funded,
        _join_labels(touched) or "no bucket",
        status.value,
    )

    feasibility = FeasibilityResult(
        status=status,
        reason=reason,
        required_monthly=required_monthly,
        funding_gap=funding_gap,
        months_to_deadline=months,
        timeline_issues=tuple(issues),
        bucket_used=_join_labels(touched),
        funded_amount=funded,
    )
    return pools, GoalPlan(goal=goal, feasibility=feasibility, strategy=strategy)


def check_feasibility(
    goals: Iterable[FinancialGoal],
    profile: FinancialProfile,
    assets: Iterable[Asset] = (),
    current_date: Optional[datetime] = None,
    assumptions: Optional[PlanningAssumptions] = None,
) -> PlanResult:
    """Allocate the household's monthly capacity across ``goals``.

    Pure with respect to its arguments: goals and the profile are never
    modified, and the result depends only on the inputs and
    ``current_date`` (defaults to now).
    """
    now = normalize_datetime(current_date or datetime.now())
    capacity = total_capacity(profile)
    starting_pools = initial_pools(profile)
    context = AllocationContext(
        profile=profile,
        assets_by_id=index_assets(assets),
        current_date=now,
        total_capacity=capacity,
        assumptions=assumptions,
    )

    pools = starting_pools
    plans: List[GoalPlan] = []
    for goal in sort_goals(goals):
        pools, plan = allocate_goal(goal, pools, context)
        plans.append(plan)

    logger.info(
        "Allocated %d goals from %.2f/month capacity; %.2f unallocated",
        len(plans),
        capacity,
        pools.total,
    )

    return PlanResult(
        goals=tuple(plans),
        monthly_unallocated=pools.total,
        buckets={
            bucket: BucketBalance(total=starting_pools.get(bucket), remaining=pools.get(bucket))
            for bucket in Bucket
        },
    )
