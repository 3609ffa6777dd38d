"""
Shared stages used by the heuristics: normalise records into the base
currency, group them, aggregate the groups.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, TypeVar

from renewly.models.records import BillRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer

T = TypeVar("T")

TRACKED_BILL_STATUSES = frozenset({"pending", "overdue"})

FREQUENCY_IN_DAYS: Dict[str, int] = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}
DEFAULT_FREQUENCY_DAYS = 30
DEFAULT_CATEGORY = "other"


def frequency_days(frequency: str | None) -> int:
    return FREQUENCY_IN_DAYS.get(frequency or "", DEFAULT_FREQUENCY_DAYS)


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


@dataclass(frozen=True)
class NormalizedSubscription:
    """A subscription with its price expressed in the base currency."""

    record: SubscriptionRecord
    price: float
    frequency_days: int

    @property
    def daily_cost(self) -> float:
        return self.price / self.frequency_days

    @property
    def monthly_equivalent(self) -> float:
        return self.daily_cost * 30

    @property
    def category(self) -> str:
        return self.record.category or DEFAULT_CATEGORY

    @property
    def is_active(self) -> bool:
        return self.record.status == "active"


@dataclass(frozen=True)
class NormalizedBill:
    record: BillRecord
    amount: float

    @property
    def category(self) -> str:
        return self.record.category or DEFAULT_CATEGORY

    @property
    def is_tracked(self) -> bool:
        """Still to be paid."""
        return self.record.status in TRACKED_BILL_STATUSES


def normalize_subscriptions(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: CurrencyNormalizer,
) -> List[NormalizedSubscription]:
    return [
        NormalizedSubscription(
            record=sub,
            price=normalizer.convert(sub.price, sub.currency, base_currency),
            frequency_days=frequency_days(sub.frequency),
        )
        for sub in subscriptions
    ]


def normalize_bills(
    bills: Iterable[BillRecord],
    base_currency: str,
    normalizer: CurrencyNormalizer,
) -> List[NormalizedBill]:
    return [
        NormalizedBill(record=bill, amount=normalizer.convert(bill.amount, bill.currency, base_currency))
        for bill in bills
    ]


def group_by(items: Iterable[T], key: Callable[[T], str]) -> Dict[str, List[T]]:
    """Group preserving first-seen key order."""
    groups: Dict[str, List[T]] = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return dict(groups)


def category_totals(
    items: Sequence[NormalizedSubscription],
    amount: Callable[[NormalizedSubscription], float] = lambda item: item.monthly_equivalent,
) -> Dict[str, float]:
    return {
        category: sum(amount(item) for item in members)
        for category, members in group_by(items, lambda item: item.category).items()
    }
