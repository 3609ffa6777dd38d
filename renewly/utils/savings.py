"""
Savings opportunities.

Three independent heuristics run over the normalised subscriptions and their
results are merged into a single ranking.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from renewly.models.insights import SavingsOpportunity
from renewly.models.records import SubscriptionRecord, utc_now
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import NormalizedSubscription, group_by, normalize_subscriptions

PLAN_REVIEW_THRESHOLD = 20.0
PLAN_SAVINGS_SHARE = 0.15
MAX_OPPORTUNITIES = 10


def format_currency(amount: float, currency: str) -> str:
    return f"{amount:,.2f} {currency}"


def identify_duplicate_services(
    groups: Dict[str, List[NormalizedSubscription]],
    base_currency: str,
) -> List[SavingsOpportunity]:
    """
    One "duplicate" entry per name group with more than one member. The
    cheapest plan carries no savings and is reported as the plan to keep.
    """
    opportunities: List[SavingsOpportunity] = []
    for name, members in groups.items():
        if len(members) <= 1:
            continue
        ranked = sorted(members, key=lambda item: item.price)
        baseline, extras = ranked[0], ranked[1:]
        opportunities.append(
            SavingsOpportunity(
                title=f"{name} appears {len(members)} times",
                description=(
                    "Consider consolidating duplicate subscriptions. "
                    f"The lowest plan is {format_currency(baseline.price, base_currency)}."
                ),
                potential_savings=round(sum(item.price for item in extras), 2),
                subscription_ids=[item.record.id for item in members],
                type="duplicate",
                keep_subscription_id=baseline.record.id,
            )
        )
    return opportunities


def identify_unused_subscriptions(
    subscriptions: Iterable[NormalizedSubscription],
    now: datetime,
) -> List[SavingsOpportunity]:
    opportunities: List[SavingsOpportunity] = []
    for item in subscriptions:
        renewal = item.record.renewal_date
        overdue = renewal is not None and renewal < now
        if item.is_active and not overdue:
            continue
        opportunities.append(
            SavingsOpportunity(
                title=f"{item.record.name} might be unused",
                description=(
                    f"Status is {item.record.status}. "
                    "You could pause or cancel until you need it again."
                ),
                potential_savings=round(item.price, 2),
                subscription_ids=[item.record.id],
                type="unused",
            )
        )
    return opportunities


def identify_plan_optimizations(subscriptions: Iterable[NormalizedSubscription]) -> List[SavingsOpportunity]:
    opportunities: List[SavingsOpportunity] = []
    for item in subscriptions:
        if not item.is_active or item.monthly_equivalent < PLAN_REVIEW_THRESHOLD:
            continue
        opportunities.append(
            SavingsOpportunity(
                title=f"{item.record.name} might have a cheaper tier",
                description="Check if there is a basic or annual plan that better fits your usage.",
                potential_savings=round(item.monthly_equivalent * PLAN_SAVINGS_SHARE, 2),
                subscription_ids=[item.record.id],
                type="plan",
            )
        )
    return opportunities


def rank_opportunities(
    opportunities: Sequence[SavingsOpportunity],
    limit: int = MAX_OPPORTUNITIES,
) -> List[SavingsOpportunity]:
    ranked = sorted(opportunities, key=lambda item: item.potential_savings, reverse=True)
    return ranked[:limit]


def find_savings_opportunities(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
    now: Optional[datetime] = None,
    limit: int = MAX_OPPORTUNITIES,
) -> List[SavingsOpportunity]:
    normalizer = normalizer or CurrencyNormalizer()
    now = now or utc_now()
    normalized = normalize_subscriptions(subscriptions, base_currency, normalizer)
    by_name = group_by(normalized, lambda item: item.record.name.lower())

    return rank_opportunities(
        [
            *identify_duplicate_services(by_name, base_currency),
            *identify_unused_subscriptions(normalized, now),
            *identify_plan_optimizations(normalized),
        ],
        limit,
    )
