"""
Spending summary: monthly and yearly totals across subscriptions and unpaid
bills, subscriptions overlapping inside a category, the budget analysis
against the overall and per-category limits, and the resulting
recommendations.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from renewly.models.insights import (
    BudgetAnalysis,
    BudgetSuggestion,
    CategoryBudget,
    CategoryOverlap,
    Recommendation,
    RenewalMember,
    SpendingSummary,
)
from renewly.models.records import BillRecord, BudgetRecord, SubscriptionRecord, utc_now
from renewly.utils.categories import breakdown_from_totals
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import (
    NormalizedBill,
    NormalizedSubscription,
    category_totals,
    group_by,
    normalize_bills,
    normalize_subscriptions,
)

logger = logging.getLogger(__name__)

OVERLAP_SAVINGS_SHARE = 0.5
UPCOMING_RENEWAL_DAYS = 30


def summarize_spending(
    subscriptions: Sequence[NormalizedSubscription],
    bills: Sequence[NormalizedBill],
    base_currency: str,
) -> SpendingSummary:
    """Bills count towards spend only while pending or overdue."""
    monthly_subscriptions = sum(item.monthly_equivalent for item in subscriptions)
    yearly_subscriptions = sum(item.daily_cost * 365 for item in subscriptions)
    monthly_bills = sum(bill.amount for bill in bills if bill.is_tracked)

    return SpendingSummary(
        monthly_spending=round(monthly_subscriptions + monthly_bills, 2),
        yearly_spending=round(yearly_subscriptions + monthly_bills * 12, 2),
        active_subscriptions=sum(1 for item in subscriptions if item.is_active),
        pending_bills=sum(1 for bill in bills if bill.record.status == "pending"),
        overdue_bills=sum(1 for bill in bills if bill.record.status == "overdue"),
        currency=base_currency,
    )


def category_spending(
    subscriptions: Sequence[NormalizedSubscription],
    bills: Iterable[NormalizedBill],
) -> Dict[str, float]:
    totals = category_totals(subscriptions)
    for bill in bills:
        totals[bill.category] = totals.get(bill.category, 0.0) + bill.amount
    return totals


def find_category_overlaps(subscriptions: Sequence[NormalizedSubscription]) -> List[CategoryOverlap]:
    """Categories holding more than one subscription."""
    return [
        CategoryOverlap(
            category=category,
            subscription_ids=[item.record.id for item in members],
            names=[item.record.name for item in members],
            total_spending=round(sum(item.monthly_equivalent for item in members), 2),
        )
        for category, members in group_by(subscriptions, lambda item: item.category).items()
        if len(members) > 1
    ]


def savings_potential(overlaps: Iterable[CategoryOverlap]) -> float:
    return round(sum(overlap.total_spending * OVERLAP_SAVINGS_SHARE for overlap in overlaps), 2)


def find_upcoming_renewals(
    subscriptions: Iterable[SubscriptionRecord],
    now: datetime,
    window_days: int = UPCOMING_RENEWAL_DAYS,
) -> List[SubscriptionRecord]:
    """Renewal dates up to ``window_days`` ahead, missed renewals included."""
    threshold = now + timedelta(days=window_days)
    return [sub for sub in subscriptions if sub.renewal_date is not None and sub.renewal_date <= threshold]


def analyze_budget(
    budget: Optional[BudgetRecord],
    spending: Dict[str, float],
    monthly_spend: float,
    overlaps: Sequence[CategoryOverlap],
    base_currency: str,
    normalizer: CurrencyNormalizer,
) -> Optional[BudgetAnalysis]:
    if budget is None:
        return None

    budget_currency = budget.currency or base_currency
    threshold = budget.notification_threshold

    limit: Optional[float] = None
    percentage_used: Optional[float] = None
    if budget.monthly_limit:
        limit = normalizer.convert(budget.monthly_limit, budget_currency, base_currency)
        percentage_used = monthly_spend / limit * 100

    analysis = BudgetAnalysis(
        monthly_limit=round(limit, 2) if limit is not None else None,
        current_spending=round(monthly_spend, 2),
        percentage_used=round(percentage_used, 1) if percentage_used is not None else None,
        notification_threshold=threshold,
    )

    if percentage_used is not None and percentage_used > threshold:
        analysis.suggestions.append(
            BudgetSuggestion(
                type="budget_warning",
                message=f"Spending is at {percentage_used:.1f}% of your monthly budget",
                action="Review your largest subscriptions before the next renewals",
            )
        )

    for category, raw_limit in budget.category_limits.items():
        category_limit = normalizer.convert(raw_limit, budget_currency, base_currency)
        spent = spending.get(category, 0.0)
        percentage = spent / category_limit * 100 if category_limit > 0 else 0.0
        analysis.categories.append(
            CategoryBudget(
                category=category,
                spent=round(spent, 2),
                limit=round(category_limit, 2),
                percentage=round(percentage, 1),
                over_budget=spent > category_limit,
            )
        )
        if percentage > threshold:
            analysis.suggestions.append(
                BudgetSuggestion(
                    type="category_warning",
                    message=f"{category.title()} spending is at {percentage:.1f}% of budget",
                    action=f"Consider reducing {category} subscriptions",
                )
            )

    for overlap in overlaps:
        analysis.suggestions.append(
            BudgetSuggestion(
                type="overlap",
                message=f"Multiple {overlap.category} subscriptions found",
                action=f"Consider consolidating {', '.join(overlap.names)}",
                potential_savings=round(overlap.total_spending * OVERLAP_SAVINGS_SHARE, 2),
            )
        )

    return analysis


def build_recommendations(
    overlaps: Sequence[CategoryOverlap],
    upcoming_renewals: Sequence[SubscriptionRecord],
    potential: float,
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    if overlaps:
        recommendations.append(
            Recommendation(
                type="consolidate",
                priority="high",
                message="Consider consolidating overlapping subscriptions",
                potential_savings=potential,
            )
        )
    if upcoming_renewals:
        recommendations.append(
            Recommendation(
                type="review_renewals",
                priority="medium",
                message=f"{len(upcoming_renewals)} subscription(s) renewing soon",
                subscriptions=[
                    RenewalMember(id=sub.id, name=sub.name, renewal_date=sub.renewal_date.isoformat())
                    for sub in upcoming_renewals
                ],
            )
        )
    return recommendations


def build_spending_summary(
    subscriptions: Sequence[SubscriptionRecord],
    bills: Sequence[BillRecord],
    budget: Optional[BudgetRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    normalizer = normalizer or CurrencyNormalizer()
    now = now or utc_now()
    normalized = normalize_subscriptions(subscriptions, base_currency, normalizer)
    normalized_bills = normalize_bills(bills, base_currency, normalizer)

    summary = summarize_spending(normalized, normalized_bills, base_currency)
    overlaps = find_category_overlaps(normalized)
    upcoming = find_upcoming_renewals(subscriptions, now)
    potential = savings_potential(overlaps)
    spending = category_spending(normalized, normalized_bills)
    budget_analysis = analyze_budget(
        budget,
        spending,
        summary.monthly_spending,
        overlaps,
        base_currency,
        normalizer,
    )

    logger.debug(
        f"Summary: monthly={summary.monthly_spending} overlaps={len(overlaps)} upcoming={len(upcoming)}"
    )
    return {
        "summary": summary.to_dict(),
        "categoryBreakdown": [entry.to_dict() for entry in breakdown_from_totals(spending)],
        "overlaps": [overlap.to_dict() for overlap in overlaps],
        "upcomingRenewals": [
            RenewalMember(id=sub.id, name=sub.name, renewal_date=sub.renewal_date.isoformat()).to_dict()
            for sub in upcoming
        ],
        "budgetAnalysis": budget_analysis.to_dict() if budget_analysis else None,
        "savingsPotential": potential,
        "recommendations": [item.to_dict() for item in build_recommendations(overlaps, upcoming, potential)],
    }
