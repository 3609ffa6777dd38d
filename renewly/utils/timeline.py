from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from renewly.models.insights import TimelinePoint
from renewly.models.records import BillRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import normalize_subscriptions

PERIOD_DAYS: Dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
DEFAULT_PERIOD_DAYS = 30

# Share of the price charged as a lump on each billing-cycle day, on top of
# the daily accrual.
RENEWAL_LUMP_SHARE = 0.6


def resolve_period(period: Optional[str]) -> int:
    return PERIOD_DAYS.get(period or "", DEFAULT_PERIOD_DAYS)


def build_timeline(
    subscriptions: Iterable[SubscriptionRecord],
    bills: Iterable[BillRecord],
    window_days: int,
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
    today: Optional[date] = None,
) -> List[TimelinePoint]:
    """
    Daily spend for the ``window_days`` calendar days ending today, oldest first.

    Subscriptions accrue their amortised daily cost on every day and add a
    lump of 60% of their price on each cycle day counted from the start date.
    Bills add their full amount on the due date.
    """
    normalizer = normalizer or CurrencyNormalizer()
    today = today or date.today()
    days = [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]
    totals: Dict[date, float] = defaultdict(float)

    for sub in normalize_subscriptions(subscriptions, base_currency, normalizer):
        start = sub.record.start_date.date() if sub.record.start_date else None
        for day in days:
            totals[day] += sub.daily_cost
            if start is None:
                continue
            since_start = (day - start).days
            if since_start >= 0 and since_start % sub.frequency_days == 0:
                totals[day] += sub.price * RENEWAL_LUMP_SHARE

    window = set(days)
    for bill in bills:
        if bill.due_date is None:
            continue
        due = bill.due_date.date()
        if due in window:
            totals[due] += normalizer.convert(bill.amount, bill.currency, base_currency)

    return [TimelinePoint(date=day.isoformat(), amount=round(totals[day], 2)) for day in days]


def bucket_by_month(timeline: Iterable[TimelinePoint]) -> List[Dict[str, float]]:
    """Calendar-month totals of a timeline, oldest month first."""
    buckets: Dict[str, float] = defaultdict(float)
    for point in timeline:
        buckets[point.date[:7]] += point.amount
    return [{"month": month, "amount": amount} for month, amount in sorted(buckets.items())]
