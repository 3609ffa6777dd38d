from __future__ import annotations

import statistics
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from renewly.models.insights import CategoryOptimization
from renewly.models.records import SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import category_totals, clamp, group_by, normalize_subscriptions
from renewly.utils.savings import format_currency

OVERSPEND_FACTOR = 1.3


def analyze_subscription_habits(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> Dict[str, Any]:
    normalizer = normalizer or CurrencyNormalizer()
    normalized = normalize_subscriptions(subscriptions, base_currency, normalizer)

    top_categories = sorted(
        (
            {
                "category": category,
                "total": round(sum(item.price for item in members), 2),
                "count": len(members),
            }
            for category, members in group_by(normalized, lambda item: item.category).items()
        ),
        key=lambda entry: entry["total"],
        reverse=True,
    )[:3]

    return {
        "total": len(normalized),
        "active": sum(1 for item in normalized if item.is_active),
        "byFrequency": dict(Counter(item.record.frequency for item in normalized)),
        "averagePrice": round(statistics.fmean(item.price for item in normalized), 2) if normalized else 0.0,
        "topCategories": top_categories,
    }


def suggest_category_optimization(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> List[CategoryOptimization]:
    """Categories spending over 130% of the average category."""
    normalizer = normalizer or CurrencyNormalizer()
    totals = category_totals(normalize_subscriptions(subscriptions, base_currency, normalizer))
    if not totals:
        return []

    average = statistics.fmean(totals.values())
    suggestions: List[CategoryOptimization] = []
    for category, total in totals.items():
        if total <= average * OVERSPEND_FACTOR:
            continue
        overspend = total - average
        suggestions.append(
            CategoryOptimization(
                category=category,
                overspend=round(overspend, 2),
                recommendation=(
                    f"Reduce spending in {category} by {format_currency(overspend, base_currency)} "
                    "to align with other categories."
                ),
                intensity=round(clamp(total / average * 25, 10, 80), 1),
            )
        )
    return suggestions
