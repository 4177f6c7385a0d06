"""Data model for goals, household profiles and computed plan results.

Input types (``FinancialGoal``, ``FinancialProfile``, ``Asset``) are built
from the documents kept by the surrounding persistence layer through
``from_dict``, which accepts both camelCase and snake_case keys.  Computed
types are frozen dataclasses: they are recomputed on every engine call and
never persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .config import DEFAULT_CURRENCY

logger = logging.getLogger(__name__)


class Bucket(str, Enum):
    """Risk-tolerance capacity pool."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class GoalPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GoalCategory(str, Enum):
    SHORT_TERM = "short-term"
    MEDIUM_TERM = "medium-term"
    LONG_TERM = "long-term"


class FeasibilityStatus(str, Enum):
    FEASIBLE = "feasible"
    CONDITIONALLY_FEASIBLE = "conditionally-feasible"
    NOT_FEASIBLE = "not-feasible"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce document values (numbers, numeric strings, None) to float."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def normalize_datetime(value: date) -> datetime:
    """Return a naive UTC datetime so aware and naive values compare.

    Plain dates count from midnight.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time())
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a deadline from a datetime, date, ISO string or store timestamp."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, Mapping) and "seconds" in value:
        # Document-store timestamps serialize as {"seconds": ..., "nanoseconds": ...}
        seconds = to_float(value.get("seconds")) + to_float(value.get("nanoseconds")) / 1e9
        return normalize_datetime(datetime.fromtimestamp(seconds, tz=timezone.utc))
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return normalize_datetime(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported deadline value: {value!r}")


def _parse_enum(enum_cls, value: Any):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        choices = [member.value for member in enum_cls]
        raise ValueError(f"Unknown {enum_cls.__name__} '{value}'. Choose from: {choices}") from exc


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskAllocation:
    """Percentages of monthly capacity per bucket (conceptually sums to 100)."""

    conservative: float = 100.0
    moderate: float = 0.0
    aggressive: float = 0.0

    def percent(self, bucket: Bucket) -> float:
        return getattr(self, bucket.value)

    @property
    def total(self) -> float:
        return self.conservative + self.moderate + self.aggressive

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["RiskAllocation"]:
        if not data:
            return None
        return cls(
            conservative=to_float(data.get("conservative")),
            moderate=to_float(data.get("moderate")),
            aggressive=to_float(data.get("aggressive")),
        )

    def to_dict(self) -> Dict[str, float]:
        return {bucket.value: self.percent(bucket) for bucket in Bucket}


@dataclass(frozen=True)
class SavingsContribution:
    contributor_id: str
    amount: float


@dataclass(frozen=True)
class IncomeSource:
    contributor_id: str
    net_monthly: float
    gross_monthly: float = 0.0


@dataclass
class FinancialGoal:
    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[date] = None
    priority: Optional[GoalPriority] = None
    category: Optional[GoalCategory] = None
    risk_level: Optional[Bucket] = None
    funding_source_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FinancialGoal":
        sources = _pick(data, "fundingSourceIds", "funding_source_ids", default=[]) or []
        # Ordered set: keep first occurrence of each id
        unique_sources = tuple(dict.fromkeys(str(s) for s in sources))
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="Unnamed Goal")),
            target_amount=to_float(_pick(data, "targetAmount", "target_amount")),
            current_amount=to_float(_pick(data, "currentAmount", "current_amount")),
            deadline=parse_datetime(_pick(data, "deadline", "target_date")),
            priority=_parse_enum(GoalPriority, data.get("priority")),
            category=_parse_enum(GoalCategory, data.get("category")),
            risk_level=_parse_enum(Bucket, _pick(data, "riskLevel", "risk_level")),
            funding_source_ids=unique_sources,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "targetAmount": self.target_amount,
            "currentAmount": self.current_amount,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "priority": self.priority.value if self.priority else None,
            "category": self.category.value if self.category else None,
            "riskLevel": self.risk_level.value if self.risk_level else None,
            "fundingSourceIds": list(self.funding_source_ids),
        }


@dataclass
class FinancialProfile:
    savings_capacity: List[SavingsContribution] = field(default_factory=list)
    risk_allocation: Optional[RiskAllocation] = None
    income_growth_rate: float = 0.0
    annual_bonus: float = 0.0
    income: List[IncomeSource] = field(default_factory=list)
    currency: str = DEFAULT_CURRENCY
    total_monthly_income: float = 0.0
    monthly_commitments: float = 0.0
    variable_commitments: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FinancialProfile":
        data = data or {}
        capacity = [
            SavingsContribution(
                contributor_id=str(_pick(item, "userId", "contributorId", "contributor_id", default="")),
                amount=to_float(item.get("amount")),
            )
            for item in (_pick(data, "savingsCapacity", "savings_capacity", default=[]) or [])
            if isinstance(item, Mapping)
        ]
        income = [
            IncomeSource(
                contributor_id=str(_pick(item, "userId", "contributorId", "contributor_id", default="")),
                net_monthly=to_float(_pick(item, "netMonthly", "net_monthly")),
                gross_monthly=to_float(_pick(item, "grossMonthly", "gross_monthly")),
            )
            for item in (data.get("income") or [])
            if isinstance(item, Mapping)
        ]
        return cls(
            savings_capacity=capacity,
            risk_allocation=RiskAllocation.from_dict(_pick(data, "riskAllocation", "risk_allocation")),
            income_growth_rate=to_float(_pick(data, "incomeGrowthRate", "income_growth_rate")),
            annual_bonus=to_float(_pick(data, "annualBonus", "annual_bonus")),
            income=income,
            currency=str(data.get("currency") or DEFAULT_CURRENCY),
            total_monthly_income=to_float(_pick(data, "totalMonthlyIncome", "total_monthly_income")),
            monthly_commitments=to_float(_pick(data, "monthlyCommitments", "monthly_commitments")),
            variable_commitments=to_float(_pick(data, "variableCommitments", "variable_commitments")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "savingsCapacity": [
                {"userId": s.contributor_id, "amount": s.amount} for s in self.savings_capacity
            ],
            "riskAllocation": self.risk_allocation.to_dict() if self.risk_allocation else None,
            "incomeGrowthRate": self.income_growth_rate,
            "annualBonus": self.annual_bonus,
            "income": [
                {"userId": i.contributor_id, "netMonthly": i.net_monthly, "grossMonthly": i.gross_monthly}
                for i in self.income
            ],
            "currency": self.currency,
            "totalMonthlyIncome": self.total_monthly_income,
            "monthlyCommitments": self.monthly_commitments,
            "variableCommitments": self.variable_commitments,
        }


@dataclass(frozen=True)
class Asset:
    id: str
    name: str = ""
    amount_invested: float = 0.0
    current_value: Optional[float] = None

    @property
    def funding_value(self) -> float:
        """Current value when known and non-zero, otherwise the invested amount."""
        return self.current_value or self.amount_invested or 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Asset":
        current = _pick(data, "currentValue", "current_value")
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(data.get("name") or ""),
            amount_invested=to_float(_pick(data, "amountInvested", "amount_invested")),
            current_value=None if current is None else to_float(current),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amountInvested": self.amount_invested,
            "currentValue": self.current_value,
        }


# ---------------------------------------------------------------------------
# Computed results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BucketPools:
    """Monthly capacity per bucket, threaded through the allocation fold."""

    conservative: float = 0.0
    moderate: float = 0.0
    aggressive: float = 0.0

    def get(self, bucket: Bucket) -> float:
        return getattr(self, bucket.value)

    def with_balance(self, bucket: Bucket, amount: float) -> "BucketPools":
        return replace(self, **{bucket.value: amount})

    def draw(self, bucket: Bucket, amount: float) -> "BucketPools":
        """Return pools with ``amount`` taken from ``bucket``, clamped at zero."""
        return self.with_balance(bucket, max(0.0, self.get(bucket) - amount))

    @property
    def total(self) -> float:
        return self.conservative + self.moderate + self.aggressive

    @classmethod
    def from_capacity(cls, total_capacity: float, allocation: RiskAllocation) -> "BucketPools":
        return cls(**{
            bucket.value: total_capacity * (allocation.percent(bucket) / 100)
            for bucket in Bucket
        })


@dataclass(frozen=True)
class FeasibilityResult:
    status: FeasibilityStatus
    reason: str
    required_monthly: float = 0.0
    funding_gap: float = 0.0
    months_to_deadline: float = 0.0
    timeline_issues: Tuple[str, ...] = ()
    bucket_used: Optional[str] = None
    funded_amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason,
            "requiredMonthly": self.required_monthly,
            "fundingGap": self.funding_gap,
            "monthsToDeadline": self.months_to_deadline,
            "timelineIssues": list(self.timeline_issues),
            "bucketUsed": self.bucket_used,
            "fundedAmount": self.funded_amount,
        }


@dataclass(frozen=True)
class StrategyAssumptions:
    inflation_rate: float
    return_rate: float


@dataclass(frozen=True)
class ContributionShare:
    contributor_id: str
    amount: float
    percentage: float


@dataclass(frozen=True)
class StrategyResult:
    future_value: float
    required_monthly_contribution: float
    suggested_allocation: RiskAllocation
    assumptions: StrategyAssumptions
    contribution_split: Tuple[ContributionShare, ...] = ()

    @property
    def inflation_adjusted_target(self) -> float:
        return self.future_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "futureValue": self.future_value,
            "inflationAdjustedTarget": self.inflation_adjusted_target,
            "requiredMonthlyContribution": self.required_monthly_contribution,
            "suggestedAllocation": self.suggested_allocation.to_dict(),
            "assumptions": {
                "inflationRate": self.assumptions.inflation_rate,
                "returnRate": self.assumptions.return_rate,
            },
            "contributionSplit": [
                {"userId": s.contributor_id, "amount": s.amount, "percentage": s.percentage}
                for s in self.contribution_split
            ],
        }


@dataclass(frozen=True)
class GoalPlan:
    goal: FinancialGoal
    feasibility: FeasibilityResult
    strategy: Optional[StrategyResult] = None

    def to_dict(self) -> Dict[str, Any]:
        merged = self.goal.to_dict()
        merged["feasibility"] = self.feasibility.to_dict()
        merged["strategy"] = self.strategy.to_dict() if self.strategy else None
        return merged


@dataclass(frozen=True)
class BucketBalance:
    total: float
    remaining: float


@dataclass(frozen=True)
class PlanResult:
    goals: Tuple[GoalPlan, ...]
    monthly_unallocated: float
    buckets: Mapping[Bucket, BucketBalance]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goals": [plan.to_dict() for plan in self.goals],
            "monthlyUnallocated": self.monthly_unallocated,
            "buckets": {
                bucket.value: {"total": balance.total, "remaining": balance.remaining}
                for bucket, balance in self.buckets.items()
            },
        }


def goals_from_dicts(items: Iterable[Mapping[str, Any]]) -> Tuple[List[FinancialGoal], List[str]]:
    """Build goals from documents, skipping any that cannot be parsed.

    Returns the parsed goals and one message per skipped document.
    """
    goals: List[FinancialGoal] = []
    errors: List[str] = []
    for index, item in enumerate(items):
        try:
            goals.append(FinancialGoal.from_dict(item))
        except ValueError as exc:
            label = item.get("name") or f"goal #{index + 1}"
            logger.warning("Skipping goal %s: %s", label, exc)
            errors.append(f"{label}: {exc}")
    return goals, errors


def assets_from_dicts(items: Iterable[Mapping[str, Any]]) -> List[Asset]:
    return [Asset.from_dict(item) for item in items]
