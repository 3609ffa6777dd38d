from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k) if isinstance(k, str) else k: _camelize(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


class Insight:
    """Mixin for derived entities serialised with camelCase keys."""

    def to_dict(self) -> Dict[str, Any]:
        return _camelize(asdict(self))


@dataclass
class TimelinePoint(Insight):
    date: str
    amount: float


@dataclass
class AnomalyRecord(Insight):
    date: str
    amount: float
    deviation: float
    type: str  # spike or drop


@dataclass
class SavingsOpportunity(Insight):
    title: str
    description: str
    potential_savings: float
    subscription_ids: List[str]
    type: str  # duplicate, unused, plan
    keep_subscription_id: Optional[str] = None


@dataclass
class BudgetHealth(Insight):
    score: int
    utilization: Optional[float]
    monthly_spend: float
    limit: Optional[float]
    trend: str
    currency: str


@dataclass
class PredictedSpending(Insight):
    predicted_amount: float
    confidence: float
    trend: str
    factors: List[str]
    risk_level: str
    average_monthly: float
    last_month: float


@dataclass
class CategoryBreakdownEntry(Insight):
    category: str
    total: float
    percentage: float


@dataclass
class RenewalMember(Insight):
    id: str
    name: str
    renewal_date: str


@dataclass
class RenewalCluster(Insight):
    window_label: str
    count: int
    subscriptions: List[RenewalMember] = field(default_factory=list)


@dataclass
class PredictiveAlert(Insight):
    type: str
    title: str
    message: str
    priority: str
    subscription_id: str


@dataclass
class CategoryOptimization(Insight):
    category: str
    overspend: float
    recommendation: str
    intensity: float


@dataclass
class PersonaProfile(Insight):
    spending_style: str
    risk_tolerance: str
    financial_goals: List[str]
    preferred_communication: str
    learning_priority: str


@dataclass
class SpendingSummary(Insight):
    monthly_spending: float
    yearly_spending: float
    active_subscriptions: int
    pending_bills: int
    overdue_bills: int
    currency: str


@dataclass
class CategoryOverlap(Insight):
    category: str
    subscription_ids: List[str]
    names: List[str]
    total_spending: float


@dataclass
class CategoryBudget(Insight):
    category: str
    spent: float
    limit: float
    percentage: float
    over_budget: bool


@dataclass
class BudgetSuggestion(Insight):
    type: str  # budget_warning, category_warning, overlap
    message: str
    action: str
    potential_savings: Optional[float] = None


@dataclass
class BudgetAnalysis(Insight):
    monthly_limit: Optional[float]
    current_spending: float
    percentage_used: Optional[float]
    notification_threshold: float
    categories: List[CategoryBudget] = field(default_factory=list)
    suggestions: List[BudgetSuggestion] = field(default_factory=list)


@dataclass
class Recommendation(Insight):
    type: str  # consolidate, review_renewals
    priority: str
    message: str
    potential_savings: Optional[float] = None
    subscriptions: List[RenewalMember] = field(default_factory=list)


@dataclass
class PeriodSpending(Insight):
    label: str
    total: float
    subscriptions: float
    bills: float


@dataclass
class MonthlyComparison(Insight):
    current_month: PeriodSpending
    previous_month: PeriodSpending
    difference: float
    trend: str
    percentage_change: Optional[float]
