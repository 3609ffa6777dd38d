"""
Behavioural persona used to ground the conversational assistant.
"""
from __future__ import annotations

import statistics
from typing import Dict, List, Optional, Sequence

from renewly.models.insights import (
    AnomalyRecord,
    BudgetHealth,
    CategoryBreakdownEntry,
    PersonaProfile,
    PredictiveAlert,
    SavingsOpportunity,
)
from renewly.models.records import SubscriptionRecord

HEAVY_CATEGORY_SHARE = 35.0

TIP_LIBRARY: Dict[str, List[str]] = {
    "conservative_consistent": [
        "Consider exploring budget-friendly alternatives to your regular services.",
        "Your consistent spending pattern makes you a great candidate for annual plans.",
        "Automate savings transfers to make the most of your predictable cash flow.",
    ],
    "exploratory_variable": [
        "Track your variable spending to uncover optimization opportunities.",
        "Categorize subscriptions by necessity versus nice-to-have to prioritize savings.",
        "Look for better-value alternatives whenever you try a new service.",
    ],
    "balanced_adaptive": [
        "Fine-tune your setup with analytics to stay ahead of future changes.",
        "Enable smart alerts so unusual activity is flagged immediately.",
        "Compare similar services periodically to make sure you're getting the best value.",
    ],
}
DEFAULT_TIPS = ["Start by exploring your spending patterns in the analytics dashboard."]


def variability(series: Sequence[float]) -> float:
    if not series:
        return 0.0
    mean = statistics.fmean(series)
    return statistics.pstdev(series) / mean if mean else 0.0


def analyze_spending_style(series: Sequence[float], categories: Sequence[CategoryBreakdownEntry]) -> str:
    coefficient = variability(series)
    if coefficient < 0.1 and len(categories) < 3:
        return "conservative_consistent"
    if coefficient > 0.3 and len(categories) > 5:
        return "exploratory_variable"
    return "balanced_adaptive"


def assess_risk_tolerance(budget_health: Optional[BudgetHealth]) -> str:
    utilization = (budget_health.utilization if budget_health else None) or 0
    if utilization > 95:
        return "high"
    if utilization > 75:
        return "medium"
    return "low"


def extract_financial_goals(
    budget_health: Optional[BudgetHealth],
    categories: Sequence[CategoryBreakdownEntry],
    anomalies: Sequence[AnomalyRecord],
) -> List[str]:
    goals: List[str] = []
    if budget_health is None or not budget_health.limit:
        goals.append("set_budget")
    elif (budget_health.utilization or 0) > 90:
        goals.append("reduce_utilization")

    if any(entry.percentage > HEAVY_CATEGORY_SHARE for entry in categories):
        goals.append("rebalance_categories")
    if anomalies:
        goals.append("investigate_anomalies")

    return goals or ["optimize_value"]


def determine_communication_style(subscriptions: Sequence[SubscriptionRecord]) -> str:
    if len(subscriptions) > 20:
        return "bullet"
    if len(subscriptions) <= 5:
        return "conversational"
    return "concise"


def assess_learning_priority(has_budget: bool, spending_style: str) -> str:
    if not has_budget:
        return "build_budget_basics"
    if spending_style == "exploratory_variable":
        return "control_variability"
    return "optimize_existing"


def classify_persona(
    monthly_spend_series: Sequence[float],
    category_breakdown: Sequence[CategoryBreakdownEntry],
    budget_health: Optional[BudgetHealth],
    subscriptions: Sequence[SubscriptionRecord],
    anomalies: Sequence[AnomalyRecord],
    has_budget: Optional[bool] = None,
) -> PersonaProfile:
    """
    ``has_budget`` tells whether a budget record exists at all; when omitted
    it is inferred from the budget health limit.
    """
    if has_budget is None:
        has_budget = bool(budget_health and budget_health.limit)

    style = analyze_spending_style(monthly_spend_series, category_breakdown)
    return PersonaProfile(
        spending_style=style,
        risk_tolerance=assess_risk_tolerance(budget_health),
        financial_goals=extract_financial_goals(budget_health, category_breakdown, anomalies),
        preferred_communication=determine_communication_style(subscriptions),
        learning_priority=assess_learning_priority(has_budget, style),
    )


def personalized_tips(
    persona: PersonaProfile,
    anomalies: Sequence[AnomalyRecord] = (),
    savings: Sequence[SavingsOpportunity] = (),
    alerts: Sequence[PredictiveAlert] = (),
) -> List[str]:
    primary = TIP_LIBRARY.get(persona.spending_style, DEFAULT_TIPS)

    adaptive: List[str] = []
    if anomalies:
        adaptive.append("Review this month's anomalies so nothing slips by unnoticed.")
    if savings:
        adaptive.append("Act on one savings opportunity this week to reduce monthly costs.")
    if alerts:
        adaptive.append("Prioritize the high-severity alerts to avoid surprise renewals.")

    return [*primary[:2], *adaptive[:2]]
