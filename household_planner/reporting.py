"""Tabular views of plan results for display and export."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from .models import Bucket, PlanResult, StrategyResult

PLAN_COLUMNS = [
    'Goal',
    'Priority',
    'Deadline',
    'Status',
    'Reason',
    'Months Left',
    'Required Monthly',
    'Funded Monthly',
    'Funding Gap',
    'Funded By',
    'Inflation Adjusted Target',
    'Recommended Monthly',
    'Return Assumption',
]


def plan_to_frame(plan: PlanResult) -> pd.DataFrame:
    """One row per goal, in the order the allocator processed them."""
    rows = []
    for goal_plan in plan.goals:
        goal = goal_plan.goal
        feasibility = goal_plan.feasibility
        strategy = goal_plan.strategy
        rows.append({
            'Goal': goal.name,
            'Priority': goal.priority.value if goal.priority else 'low',
            'Deadline': pd.Timestamp(goal.deadline) if goal.deadline else pd.NaT,
            'Status': feasibility.status.value,
            'Reason': feasibility.reason,
            'Months Left': feasibility.months_to_deadline,
            'Required Monthly': feasibility.required_monthly,
            'Funded Monthly': feasibility.funded_amount,
            'Funding Gap': feasibility.funding_gap,
            'Funded By': feasibility.bucket_used or 'None',
            'Inflation Adjusted Target': strategy.future_value if strategy else np.nan,
            'Recommended Monthly': strategy.required_monthly_contribution if strategy else np.nan,
            'Return Assumption': strategy.assumptions.return_rate if strategy else np.nan,
        })
    if not rows:
        return pd.DataFrame(columns=PLAN_COLUMNS)
    return pd.DataFrame(rows, columns=PLAN_COLUMNS)


def buckets_to_frame(plan: PlanResult) -> pd.DataFrame:
    frame = pd.DataFrame(
        [
            {
                'Bucket': bucket.label,
                'Total': plan.buckets[bucket].total,
                'Remaining': plan.buckets[bucket].remaining,
            }
            for bucket in Bucket
        ]
    )
    frame['Allocated'] = frame['Total'] - frame['Remaining']
    frame['Utilization %'] = np.where(
        frame['Total'] > 0,
        frame['Allocated'] / frame['Total'].where(frame['Total'] > 0, 1) * 100,
        0.0,
    )
    return frame


def contribution_split_frame(strategy: StrategyResult | None) -> pd.DataFrame:
    columns = ['Contributor', 'Amount', 'Percentage']
    if strategy is None or not strategy.contribution_split:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {'Contributor': share.contributor_id, 'Amount': share.amount, 'Percentage': share.percentage}
            for share in strategy.contribution_split
        ],
        columns=columns,
    )


def conversions_to_frame(conversions: Sequence[Dict[str, float]]) -> pd.DataFrame:
    columns = ['Currency', 'Rate', 'Value']
    if not conversions:
        return pd.DataFrame(columns=columns)
    frame = pd.DataFrame(list(conversions))
    return frame.rename(columns={'currency': 'Currency', 'rate': 'Rate', 'value': 'Value'})[columns]


def feasibility_counts(plan: PlanResult) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for goal_plan in plan.goals:
        status = goal_plan.feasibility.status.value
        counts[status] = counts.get(status, 0) + 1
    return counts


def timeline_issue_list(plan: PlanResult) -> List[str]:
    return [
        f"{goal_plan.goal.name}: {issue}"
        for goal_plan in plan.goals
        for issue in goal_plan.feasibility.timeline_issues
    ]
