"""Streamlit view of the household goal plan.

Loads the local planning snapshot, runs the feasibility allocator and
renders capacity, per-goal feasibility and strategy, and bucket usage.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, List, Optional

import streamlit as st
from streamlit.errors import StreamlitAPIException

from .config import configure_logging, ensure_data_directories
from .feasibility import check_feasibility
from .formatting import escape_dollar_for_markdown, format_currency, format_months
from .models import (
    Asset,
    Bucket,
    FeasibilityStatus,
    FinancialProfile,
    GoalPlan,
    PlanResult,
    RiskAllocation,
    assets_from_dicts,
    goals_from_dicts,
)
from .plan_storage import load_planning_data, save_planning_data
from .profile import (
    classify_goal_category,
    total_savings_capacity,
    validate_goal,
    validate_risk_allocation,
    with_derived_capacity,
)
from .reporting import (
    buckets_to_frame,
    contribution_split_frame,
    feasibility_counts,
    plan_to_frame,
    timeline_issue_list,
)
from .visualization import create_allocation_chart, create_bucket_chart, create_goal_funding_chart

STATUS_ICONS = {
    FeasibilityStatus.FEASIBLE: "✅",
    FeasibilityStatus.CONDITIONALLY_FEASIBLE: "⚠️",
    FeasibilityStatus.NOT_FEASIBLE: "❌",
}


def setup_page_config() -> None:
    try:
        st.set_page_config(page_title="Goal Planner", page_icon="🎯", layout="wide")
    except StreamlitAPIException:
        # Already configured upstream; keep reruns smooth.
        pass


def _slider_value(percent: float) -> float:
    return round(min(max(float(percent), 0.0), 100.0), 1)


def render_profile_controls(profile: FinancialProfile) -> FinancialProfile:
    """Sidebar sliders for trying a different risk split without saving it."""
    st.sidebar.header("Risk allocation")
    current = profile.risk_allocation or RiskAllocation()
    values = {
        bucket: st.sidebar.slider(
            f"{bucket.label} %",
            min_value=0.0,
            max_value=100.0,
            value=_slider_value(current.percent(bucket)),
            step=0.1,
        )
        for bucket in Bucket
    }
    allocation = RiskAllocation(**{bucket.value: value for bucket, value in values.items()})

    for warning in validate_risk_allocation(allocation):
        st.sidebar.warning(warning)

    profile.risk_allocation = allocation
    return profile


def render_capacity_source(profile: FinancialProfile) -> FinancialProfile:
    """Offer income-less-commitments capacity when no contributions are listed."""
    derived = with_derived_capacity(profile)
    if derived is profile:
        return profile
    st.sidebar.header("Savings capacity")
    use_derived = st.sidebar.checkbox("Derive from income and commitments", value=True)
    if not use_derived:
        return profile
    st.sidebar.caption(
        f"Using {format_currency(total_savings_capacity(derived), profile.currency)} per month "
        "left after commitments."
    )
    return derived


def render_summary(plan: PlanResult, profile: FinancialProfile) -> None:
    counts = feasibility_counts(plan)
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Monthly Capacity", format_currency(total_savings_capacity(profile), profile.currency))
    with col2:
        st.metric("Unallocated Surplus", format_currency(plan.monthly_unallocated, profile.currency))
    with col3:
        st.metric("On Track", counts.get(FeasibilityStatus.FEASIBLE.value, 0))
    with col4:
        st.metric("At Risk", counts.get(FeasibilityStatus.NOT_FEASIBLE.value, 0))

    issues = timeline_issue_list(plan)
    if issues:
        with st.expander(f"Timeline issues ({len(issues)})"):
            for issue in issues:
                st.markdown(f"- {issue}")


def _render_linked_assets(goal_plan: GoalPlan, assets_by_id: Dict[str, Asset]) -> None:
    names = [assets_by_id[i].name for i in goal_plan.goal.funding_source_ids if i in assets_by_id]
    if names:
        st.markdown("**Linked assets:** " + ", ".join(names))


def render_goal(
    goal_plan: GoalPlan,
    profile: FinancialProfile,
    assets_by_id: Dict[str, Asset],
    current_date: datetime,
) -> None:
    goal = goal_plan.goal
    feasibility = goal_plan.feasibility
    strategy = goal_plan.strategy
    currency = profile.currency
    deadline = goal.deadline.strftime("%Y-%m-%d") if goal.deadline else "No Date"
    category = classify_goal_category(goal.deadline, current_date).value
    icon = STATUS_ICONS.get(feasibility.status, "")

    title = f"{icon} {goal.name} ({deadline}, {category})"
    with st.expander(title, expanded=feasibility.status != FeasibilityStatus.FEASIBLE):
        st.caption(feasibility.reason)
        for warning in validate_goal(goal):
            st.warning(warning)

        left, right = st.columns(2)
        with left:
            st.markdown("#### Feasibility Check")
            st.metric("Required Monthly (Cash)", format_currency(feasibility.required_monthly, currency))
            _render_linked_assets(goal_plan, assets_by_id)
            st.markdown(f"**Funded By:** {feasibility.bucket_used or 'None'}")
            st.markdown(
                escape_dollar_for_markdown(
                    f"**Funding Gap:** {format_currency(feasibility.funding_gap, currency)}"
                )
            )
            if feasibility.months_to_deadline:
                st.markdown(f"**Time left:** {format_months(feasibility.months_to_deadline)}")
            for issue in feasibility.timeline_issues:
                st.warning(issue)

        with right:
            if strategy is None:
                st.info("Set a deadline to get a funding strategy.")
                return
            st.markdown("#### Smart Strategy")
            st.metric(
                "Inflation Adjusted Target",
                format_currency(strategy.future_value, currency),
                help=f"Assumes {strategy.assumptions.inflation_rate * 100:.0f}% inflation",
            )
            st.metric(
                "Recommended Monthly Investment",
                format_currency(strategy.required_monthly_contribution, currency),
                help=f"Achievable with {strategy.assumptions.return_rate * 100:.1f}% avg return",
            )
            split = contribution_split_frame(strategy)
            if not split.empty:
                st.markdown("**Team Effort (Monthly Split)**")
                st.dataframe(split, use_container_width=True, hide_index=True)
            else:
                st.plotly_chart(create_allocation_chart(strategy), use_container_width=True)


def render_plan(plan: PlanResult, profile: FinancialProfile, assets: List[Asset], current_date: datetime) -> None:
    assets_by_id = {asset.id: asset for asset in assets}
    render_summary(plan, profile)

    st.subheader("Goal Strategy & Feasibility")
    if not plan.goals:
        st.info("No goals yet. Add goals to the planning snapshot to see a plan.")
    for goal_plan in plan.goals:
        render_goal(goal_plan, profile, assets_by_id, current_date)

    frame = plan_to_frame(plan)
    st.plotly_chart(create_goal_funding_chart(frame), use_container_width=True)
    st.plotly_chart(create_bucket_chart(buckets_to_frame(plan)), use_container_width=True)

    if plan.monthly_unallocated > 0:
        st.info(
            escape_dollar_for_markdown(
                f"You have an unallocated surplus of {format_currency(plan.monthly_unallocated, profile.currency)}. "
                "Consider investing it according to your long-term risk profile."
            )
        )


def _as_datetime(value: Optional[date]) -> datetime:
    if value is None:
        return datetime.now()
    return datetime.combine(value, time())


def main() -> None:
    configure_logging()
    ensure_data_directories()
    setup_page_config()
    st.header("🎯 Goal Planner")

    data = load_planning_data()
    profile = FinancialProfile.from_dict(data['profile'])
    goals, goal_errors = goals_from_dicts(data['goals'])
    assets = assets_from_dicts(data['assets'])
    for message in goal_errors:
        st.warning(f"Skipped goal {message}")

    profile = render_profile_controls(profile)
    planning_profile = render_capacity_source(profile)
    as_of = _as_datetime(st.sidebar.date_input("Plan as of", value=date.today()))

    plan = check_feasibility(goals, planning_profile, assets, current_date=as_of)
    render_plan(plan, planning_profile, assets, as_of)

    if st.sidebar.button("Save risk allocation"):
        save_planning_data(profile.to_dict(), data['goals'], data['assets'])
        st.sidebar.success("Risk allocation saved.")
