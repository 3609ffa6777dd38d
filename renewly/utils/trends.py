"""
Calendar based spending trends: per-period totals over the last six months,
quarters or years, and the current month against the previous one.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from renewly.models.insights import MonthlyComparison, PeriodSpending
from renewly.models.records import BillRecord, SubscriptionRecord
from renewly.utils.categories import compute_spending_breakdown
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import NormalizedBill, NormalizedSubscription, normalize_bills, normalize_subscriptions

# time range -> (points, months per point)
TIME_RANGES: Dict[str, Tuple[int, int]] = {
    "monthly": (6, 1),
    "quarterly": (6, 3),
    "yearly": (6, 12),
}
DEFAULT_TIME_RANGE = "monthly"


@dataclass(frozen=True)
class TrendPeriod:
    start: date
    end: date
    label: str
    months: int


def shift_month(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + day.month - 1 + months
    return date(index // 12, index % 12 + 1, 1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def period_label(start: date, months: int) -> str:
    if months == 1:
        return start.strftime("%b %Y")
    if months == 3:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return str(start.year)


def trend_periods(time_range: Optional[str], today: date) -> List[TrendPeriod]:
    """Oldest first; the last period ends with the current month."""
    points, months = TIME_RANGES.get(time_range or "", TIME_RANGES[DEFAULT_TIME_RANGE])
    periods: List[TrendPeriod] = []
    for index in range(points - 1, -1, -1):
        end = month_end(shift_month(today, -index * months))
        start = shift_month(end, -(months - 1))
        periods.append(TrendPeriod(start=start, end=end, label=period_label(start, months), months=months))
    return periods


def subscriptions_in_month(subscriptions: Iterable[NormalizedSubscription], month_start: date) -> float:
    """
    Monthly equivalent of every subscription running during the month: not
    started after it ends and not cancelled with a renewal before it starts.
    """
    end = month_end(month_start)
    total = 0.0
    for item in subscriptions:
        record = item.record
        if record.start_date is not None and record.start_date.date() > end:
            continue
        if record.status == "cancelled" and record.renewal_date is not None and record.renewal_date.date() < month_start:
            continue
        total += item.monthly_equivalent
    return total


def bills_between(bills: Iterable[NormalizedBill], start: date, end: date) -> float:
    return sum(
        bill.amount for bill in bills if bill.record.due_date is not None and start <= bill.record.due_date.date() <= end
    )


def month_spending(
    subscriptions: Sequence[NormalizedSubscription],
    bills: Sequence[NormalizedBill],
    month_start: date,
) -> PeriodSpending:
    subscription_total = subscriptions_in_month(subscriptions, month_start)
    bill_total = bills_between(bills, month_start, month_end(month_start))
    return PeriodSpending(
        label=month_start.strftime("%B %Y"),
        total=round(subscription_total + bill_total, 2),
        subscriptions=round(subscription_total, 2),
        bills=round(bill_total, 2),
    )


def spending_trend(
    subscriptions: Sequence[NormalizedSubscription],
    bills: Sequence[NormalizedBill],
    time_range: Optional[str],
    today: date,
) -> List[PeriodSpending]:
    """
    Subscriptions are counted at the rate of the period's first month times
    the number of months in the period; bills by due date inside the period.
    """
    trend: List[PeriodSpending] = []
    for period in trend_periods(time_range, today):
        subscription_total = subscriptions_in_month(subscriptions, period.start) * period.months
        bill_total = bills_between(bills, period.start, period.end)
        trend.append(
            PeriodSpending(
                label=period.label,
                total=round(subscription_total + bill_total, 2),
                subscriptions=round(subscription_total, 2),
                bills=round(bill_total, 2),
            )
        )
    return trend


def compare_months(
    subscriptions: Sequence[NormalizedSubscription],
    bills: Sequence[NormalizedBill],
    today: date,
) -> MonthlyComparison:
    this_month = shift_month(today, 0)
    current = month_spending(subscriptions, bills, this_month)
    previous = month_spending(subscriptions, bills, shift_month(this_month, -1))

    difference = current.total - previous.total
    change = difference / previous.total * 100 if previous.total else None
    return MonthlyComparison(
        current_month=current,
        previous_month=previous,
        difference=round(difference, 2),
        trend="up" if difference >= 0 else "down",
        percentage_change=round(change, 2) if change is not None else None,
    )


def build_spending_trends(
    subscriptions: Sequence[SubscriptionRecord],
    bills: Sequence[BillRecord],
    base_currency: str,
    time_range: Optional[str] = DEFAULT_TIME_RANGE,
    normalizer: Optional[CurrencyNormalizer] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    normalizer = normalizer or CurrencyNormalizer()
    today = today or date.today()
    normalized = normalize_subscriptions(subscriptions, base_currency, normalizer)
    normalized_bills = normalize_bills(bills, base_currency, normalizer)

    return {
        "timeRange": time_range if time_range in TIME_RANGES else DEFAULT_TIME_RANGE,
        "currency": base_currency,
        "spendingTrend": [point.to_dict() for point in spending_trend(normalized, normalized_bills, time_range, today)],
        "categoryBreakdown": [
            entry.to_dict() for entry in compute_spending_breakdown(subscriptions, bills, base_currency, normalizer)
        ],
        "monthlyComparison": compare_months(normalized, normalized_bills, today).to_dict(),
    }
