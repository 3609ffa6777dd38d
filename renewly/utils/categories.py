from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional

from renewly.models.insights import CategoryBreakdownEntry
from renewly.models.records import BillRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import category_totals, normalize_bills, normalize_subscriptions


def percentage_shares(amounts: List[float]) -> List[float]:
    """
    Shares of the total in percent with one decimal, largest remainder
    rounding so that a non-zero total always sums to exactly 100.
    """
    overall = sum(amounts) or 1
    tenths = [amount / overall * 1000 for amount in amounts]
    shares = [math.floor(value) for value in tenths]
    missing = round(sum(tenths)) - sum(shares)
    by_remainder = sorted(range(len(tenths)), key=lambda i: tenths[i] - shares[i], reverse=True)
    for i in by_remainder[:missing]:
        shares[i] += 1
    return [share / 10 for share in shares]


def breakdown_from_totals(totals: Dict[str, float]) -> List[CategoryBreakdownEntry]:
    shares = percentage_shares(list(totals.values()))
    return [
        CategoryBreakdownEntry(category=category, total=round(total, 2), percentage=share)
        for (category, total), share in zip(totals.items(), shares)
    ]


def compute_category_breakdown(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> List[CategoryBreakdownEntry]:
    """Share of the 30-day equivalent spend held by each category."""
    normalizer = normalizer or CurrencyNormalizer()
    return breakdown_from_totals(category_totals(normalize_subscriptions(subscriptions, base_currency, normalizer)))


def compute_spending_breakdown(
    subscriptions: Iterable[SubscriptionRecord],
    bills: Iterable[BillRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> List[CategoryBreakdownEntry]:
    """Like the subscription breakdown, with every bill amount added to its category."""
    normalizer = normalizer or CurrencyNormalizer()
    totals = category_totals(normalize_subscriptions(subscriptions, base_currency, normalizer))
    for bill in normalize_bills(bills, base_currency, normalizer):
        totals[bill.category] = totals.get(bill.category, 0.0) + bill.amount
    return breakdown_from_totals(totals)


def top_categories(breakdown: Iterable[CategoryBreakdownEntry], count: int = 3) -> List[CategoryBreakdownEntry]:
    return sorted(breakdown, key=lambda entry: entry.total, reverse=True)[:count]
