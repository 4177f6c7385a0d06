from datetime import date, datetime, timedelta

import pytest

from household_planner.feasibility import (
    bucket_priority,
    check_feasibility,
    effective_current_funding,
    index_assets,
    initial_pools,
    months_between,
    priority_score,
    sort_goals,
)
from household_planner.growth import project_growth_multiplier
from household_planner.models import (
    Asset,
    Bucket,
    FeasibilityStatus,
    FinancialGoal,
    FinancialProfile,
    GoalPriority,
    RiskAllocation,
    SavingsContribution,
)

NOW = datetime(2025, 1, 1)


def _deadline(months):
    return NOW + timedelta(days=30.44 * months)


def _goal(goal_id='g1', months=12, monthly=100.0, priority=None, risk_level=None, current=0.0, sources=()):
    return FinancialGoal(
        id=goal_id,
        name=f"Goal {goal_id}",
        target_amount=monthly * months + current if months else monthly,
        current_amount=current,
        deadline=_deadline(months) if months else None,
        priority=priority,
        risk_level=risk_level,
        funding_source_ids=tuple(sources),
    )


def _profile(total=1000.0, allocation=(100, 0, 0), growth=0.0, bonus=0.0):
    conservative, moderate, aggressive = allocation
    return FinancialProfile(
        savings_capacity=[SavingsContribution('a', total / 2), SavingsContribution('b', total / 2)],
        risk_allocation=RiskAllocation(conservative=conservative, moderate=moderate, aggressive=aggressive),
        income_growth_rate=growth,
        annual_bonus=bonus,
    )


def _plan_for(plan, goal_id):
    return next(p for p in plan.goals if p.goal.id == goal_id)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def test_pools_split_capacity_by_risk_allocation():
    pools = initial_pools(_profile(1000, (50, 30, 20)))
    assert pools.get(Bucket.CONSERVATIVE) == pytest.approx(500)
    assert pools.get(Bucket.MODERATE) == pytest.approx(300)
    assert pools.get(Bucket.AGGRESSIVE) == pytest.approx(200)


def test_missing_risk_allocation_defaults_to_conservative():
    profile = FinancialProfile(savings_capacity=[SavingsContribution('a', 800)])
    pools = initial_pools(profile)
    assert pools.conservative == pytest.approx(800)
    assert pools.moderate == 0
    assert pools.aggressive == 0


def test_priority_scores_treat_missing_as_low():
    assert priority_score(GoalPriority.HIGH) == 3
    assert priority_score(GoalPriority.MEDIUM) == 2
    assert priority_score(GoalPriority.LOW) == 1
    assert priority_score(None) == 1


def test_sort_goals_by_priority_then_deadline_with_undated_last():
    goals = [
        _goal('low-soon', months=3, priority=GoalPriority.LOW),
        _goal('high-late', months=48, priority=GoalPriority.HIGH),
        _goal('medium-undated', months=None, priority=GoalPriority.MEDIUM),
        _goal('medium-soon', months=6, priority=GoalPriority.MEDIUM),
        _goal('none-sooner', months=2),
    ]
    ordered = [g.id for g in sort_goals(goals)]
    assert ordered == ['high-late', 'medium-soon', 'medium-undated', 'none-sooner', 'low-soon']


def test_sort_is_stable_for_full_ties():
    goals = [_goal('first', months=12), _goal('second', months=12)]
    assert [g.id for g in sort_goals(goals)] == ['first', 'second']


def test_months_between_uses_average_month_and_floor():
    assert months_between(_deadline(18), NOW) == pytest.approx(18)
    assert months_between(NOW - timedelta(days=90), NOW) == pytest.approx(0.1)


def test_effective_funding_adds_linked_assets_and_ignores_unknown_ids():
    assets = index_assets([
        Asset(id='fd', amount_invested=3000, current_value=4000),
        Asset(id='gold', amount_invested=2000),
        Asset(id='zero', amount_invested=500, current_value=0),
    ])
    goal = _goal(current=1000, sources=('fd', 'gold', 'zero', 'missing'))
    assert effective_current_funding(goal, assets) == pytest.approx(1000 + 4000 + 2000 + 500)


@pytest.mark.parametrize('months,risk_level,expected', [
    (12, None, (Bucket.CONSERVATIVE,)),
    (36, None, (Bucket.MODERATE, Bucket.CONSERVATIVE)),
    (90, None, (Bucket.AGGRESSIVE, Bucket.MODERATE, Bucket.CONSERVATIVE)),
    (90, Bucket.MODERATE, (Bucket.MODERATE, Bucket.CONSERVATIVE)),
    (90, Bucket.CONSERVATIVE, (Bucket.CONSERVATIVE,)),
    (12, Bucket.AGGRESSIVE, (Bucket.AGGRESSIVE, Bucket.MODERATE, Bucket.CONSERVATIVE)),
])
def test_bucket_priority(months, risk_level, expected):
    assert bucket_priority(months, risk_level) == expected


# ---------------------------------------------------------------------------
# Horizon policies
# ---------------------------------------------------------------------------

def test_short_term_goal_funded_from_conservative():
    plan = check_feasibility([_goal(months=12, monthly=100)], _profile(1000, (50, 50, 0)), current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.FEASIBLE
    assert result.reason == 'On track'
    assert result.bucket_used == 'Conservative'
    assert result.required_monthly == pytest.approx(100)
    assert plan.buckets[Bucket.CONSERVATIVE].remaining == pytest.approx(400)
    assert plan.buckets[Bucket.MODERATE].remaining == pytest.approx(500)


def test_short_term_shortfall_never_borrows_riskier_buckets():
    profile = _profile(1000, (5, 50, 45))
    plan = check_feasibility([_goal(months=12, monthly=100)], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.NOT_FEASIBLE
    assert result.funded_amount == pytest.approx(50)
    assert result.funding_gap == pytest.approx(50)
    assert result.bucket_used in (None, 'Conservative')
    assert plan.buckets[Bucket.CONSERVATIVE].remaining == 0
    assert plan.buckets[Bucket.MODERATE].remaining == pytest.approx(500)
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(450)
    assert 'Funds available in other buckets, but risk constraints prevent using them.' in result.timeline_issues
    assert result.timeline_issues[0].startswith('Goal is short-term')


@pytest.mark.parametrize('risk_level', [None, Bucket.AGGRESSIVE, Bucket.MODERATE])
def test_short_term_safety_holds_even_with_risk_override(risk_level):
    profile = _profile(1000, (0, 50, 50))
    goal = _goal(months=6, monthly=100, risk_level=risk_level)
    plan = check_feasibility([goal], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.bucket_used in (None, 'Conservative')
    assert plan.buckets[Bucket.MODERATE].remaining == pytest.approx(500)
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(500)


def test_medium_term_falls_back_from_moderate_to_conservative():
    profile = _profile(1000, (10, 20, 0))
    plan = check_feasibility([_goal(months=36, monthly=250)], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.FEASIBLE
    assert result.bucket_used == 'Moderate + Conservative'
    assert result.funded_amount == pytest.approx(250)
    assert plan.buckets[Bucket.CONSERVATIVE].remaining == pytest.approx(50)
    assert plan.buckets[Bucket.MODERATE].remaining == pytest.approx(0)


def test_medium_term_exhaustion_reports_shortfall():
    profile = _profile(1000, (10, 10, 80))
    plan = check_feasibility([_goal(months=36, monthly=500)], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.NOT_FEASIBLE
    assert result.reason == 'Insufficient Moderate/Conservative funds.'
    assert result.funded_amount == pytest.approx(200)
    assert result.funding_gap == pytest.approx(300)
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(800)
    assert 'Consider adjusting risk allocation.' in result.timeline_issues


def test_long_term_drains_aggressive_first():
    profile = _profile(1000, (20, 30, 50))
    plan = check_feasibility([_goal(months=120, monthly=600)], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.FEASIBLE
    assert result.bucket_used == 'Aggressive + Moderate'
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(0)
    assert plan.buckets[Bucket.MODERATE].remaining == pytest.approx(200)
    assert plan.buckets[Bucket.CONSERVATIVE].remaining == pytest.approx(200)


def test_long_term_growth_scales_draw_but_not_ledger():
    profile = _profile(1000, (0, 0, 100), growth=10.0)
    goal = _goal(months=120, monthly=800)
    plan = check_feasibility([goal], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    multiplier = project_growth_multiplier(result.months_to_deadline / 12, 10.0, 0.0, 1000)
    assert multiplier > 1
    assert result.status == FeasibilityStatus.FEASIBLE
    assert result.bucket_used == 'Aggressive'
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(1000 - result.required_monthly / multiplier)


def test_long_term_growth_lets_pool_cover_more_than_balance():
    profile = _profile(1000, (0, 0, 100), bonus=12_000)
    goal = _goal(months=120, monthly=1500)
    plan = check_feasibility([goal], profile, current_date=NOW)

    # A 12k bonus doubles average capacity, so 1000/month covers 1500/month
    assert plan.goals[0].feasibility.status == FeasibilityStatus.FEASIBLE
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(250)


def test_long_term_override_restricts_buckets():
    profile = _profile(1000, (0, 0, 100))
    goal = _goal(months=90, monthly=100, risk_level=Bucket.MODERATE)
    plan = check_feasibility([goal], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.NOT_FEASIBLE
    assert result.reason.startswith('Insufficient funds in moderate allocation. Shortfall:')
    assert result.bucket_used is None
    assert plan.buckets[Bucket.AGGRESSIVE].remaining == pytest.approx(1000)
    assert 'Funds available in other buckets, but risk constraints prevent using them.' in result.timeline_issues


def test_long_term_exhaustion_suggests_more_savings():
    profile = _profile(100, (0, 0, 100))
    plan = check_feasibility([_goal(months=90, monthly=500)], profile, current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.NOT_FEASIBLE
    assert result.reason.startswith('Insufficient total capacity. Shortfall:')
    assert result.timeline_issues == ('Increase savings or extend deadline.',)
    assert result.funding_gap > 0


# ---------------------------------------------------------------------------
# Whole-plan behaviour
# ---------------------------------------------------------------------------

def test_goal_without_deadline_is_not_feasible_with_zeroed_fields():
    goal = _goal('undated', months=None)
    plan = check_feasibility([goal], _profile(), current_date=NOW)
    goal_plan = plan.goals[0]

    assert goal_plan.goal is goal
    assert goal_plan.feasibility.status == FeasibilityStatus.NOT_FEASIBLE
    assert goal_plan.feasibility.reason == 'No deadline set'
    assert goal_plan.feasibility.required_monthly == 0
    assert goal_plan.feasibility.funding_gap == 0
    assert goal_plan.feasibility.months_to_deadline == 0
    assert goal_plan.feasibility.timeline_issues == ()
    assert goal_plan.strategy is None
    assert plan.monthly_unallocated == pytest.approx(1000)


def test_linked_assets_reduce_required_monthly_and_feed_strategy():
    assets = [Asset(id='fd', amount_invested=600)]
    goal = _goal(months=12, monthly=100, sources=('fd',))
    plan = check_feasibility([goal], _profile(), assets, current_date=NOW)
    goal_plan = plan.goals[0]

    assert goal_plan.feasibility.required_monthly == pytest.approx(50)
    without_assets = check_feasibility([_goal(months=12, monthly=100)], _profile(), current_date=NOW).goals[0]
    assert goal_plan.strategy.required_monthly_contribution < without_assets.strategy.required_monthly_contribution
    assert goal.current_amount == 0


def test_already_funded_goal_requires_nothing():
    goal = FinancialGoal(id='done', name='Done', target_amount=5000, current_amount=6000, deadline=_deadline(36))
    plan = check_feasibility([goal], _profile(1000, (0, 100, 0)), current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.required_monthly == 0
    assert result.status == FeasibilityStatus.FEASIBLE
    assert plan.monthly_unallocated == pytest.approx(1000)
    assert result.bucket_used is None


@pytest.mark.parametrize('months', [6, 36])
def test_goal_needing_nothing_names_no_bucket(months):
    goal = FinancialGoal(id='done', name='Done', target_amount=500, current_amount=500, deadline=_deadline(months))
    plan = check_feasibility([goal], _profile(1000, (50, 50, 0)), current_date=NOW)
    result = plan.goals[0].feasibility

    assert result.status == FeasibilityStatus.FEASIBLE
    assert result.funded_amount == 0
    assert result.bucket_used is None


def test_higher_priority_claims_capacity_first():
    profile = _profile(1000, (15, 0, 85))
    goals = [
        _goal('low', months=12, monthly=100, priority=GoalPriority.LOW),
        _goal('high', months=12, monthly=100, priority=GoalPriority.HIGH),
    ]
    plan = check_feasibility(goals, profile, current_date=NOW)

    assert [p.goal.id for p in plan.goals] == ['high', 'low']
    assert _plan_for(plan, 'high').feasibility.status == FeasibilityStatus.FEASIBLE
    assert _plan_for(plan, 'low').feasibility.funded_amount == pytest.approx(50)


def test_lowering_priority_never_increases_funding():
    profile = _profile(1000, (15, 0, 85))
    other = _goal('other', months=12, monthly=100, priority=GoalPriority.MEDIUM)

    funded = {}
    for priority in (GoalPriority.HIGH, GoalPriority.MEDIUM, GoalPriority.LOW):
        target = _goal('target', months=18, monthly=100, priority=priority)
        plan = check_feasibility([target, other], profile, current_date=NOW)
        funded[priority] = _plan_for(plan, 'target').feasibility.funded_amount

    assert funded[GoalPriority.HIGH] >= funded[GoalPriority.MEDIUM] >= funded[GoalPriority.LOW]
    assert funded[GoalPriority.HIGH] > funded[GoalPriority.LOW]


def test_remainders_are_non_negative_and_sum_to_unallocated():
    profile = _profile(1000, (30, 30, 40), growth=5.0, bonus=2000)
    goals = [
        _goal('a', months=6, monthly=400, priority=GoalPriority.HIGH),
        _goal('b', months=30, monthly=450),
        _goal('c', months=100, monthly=700, risk_level=Bucket.AGGRESSIVE),
        _goal('d', months=200, monthly=300),
        _goal('e', months=None),
    ]
    plan = check_feasibility(goals, profile, current_date=NOW)

    assert all(balance.remaining >= 0 for balance in plan.buckets.values())
    assert plan.monthly_unallocated == pytest.approx(sum(b.remaining for b in plan.buckets.values()))
    assert plan.buckets[Bucket.CONSERVATIVE].total == pytest.approx(300)
    assert len(plan.goals) == len(goals)
    assert all(p.strategy is not None for p in plan.goals if p.goal.deadline)


def test_inputs_are_not_mutated():
    profile = _profile(1000, (30, 30, 40))
    goals = [_goal('a', months=6), _goal('b', months=80, sources=('x',))]
    before_goals = [g.to_dict() for g in goals]
    before_profile = profile.to_dict()

    check_feasibility(goals, profile, [Asset(id='x', amount_invested=100)], current_date=NOW)

    assert [g.to_dict() for g in goals] == before_goals
    assert profile.to_dict() == before_profile


def test_same_inputs_give_same_plan():
    profile = _profile(1000, (30, 30, 40), growth=3.0)
    goals = [_goal('a', months=30, monthly=200), _goal('b', months=90, monthly=900)]
    assert check_feasibility(goals, profile, current_date=NOW) == check_feasibility(goals, profile, current_date=NOW)


def test_empty_goal_list_leaves_capacity_unallocated():
    plan = check_feasibility([], _profile(1000, (50, 25, 25)), current_date=NOW)
    assert plan.goals == ()
    assert plan.monthly_unallocated == pytest.approx(1000)
    assert plan.buckets[Bucket.MODERATE].total == pytest.approx(250)


def test_plain_date_deadlines_are_planned_from_midnight():
    dated = FinancialGoal(id='dated', name='Dated', target_amount=1200, deadline=date(2026, 1, 1))
    timed = FinancialGoal(id='timed', name='Timed', target_amount=1200, deadline=datetime(2025, 6, 1, 12))
    plan = check_feasibility([dated, timed], _profile(1000, (100, 0, 0)), current_date=NOW)

    assert [p.goal.id for p in plan.goals] == ['timed', 'dated']
    result = _plan_for(plan, 'dated').feasibility
    assert result.months_to_deadline == pytest.approx(365 / 30.44)
    assert result.status == FeasibilityStatus.FEASIBLE
    assert _plan_for(plan, 'dated').strategy is not None


def test_plain_date_current_date_is_accepted():
    goal = FinancialGoal(id='g', name='G', target_amount=1200, deadline=datetime(2026, 1, 1))
    plan = check_feasibility([goal], _profile(), current_date=date(2025, 1, 1))
    assert plan.goals[0].feasibility.months_to_deadline == pytest.approx(365 / 30.44)
