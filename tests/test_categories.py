import pytest

from renewly.models.records import BillRecord, SubscriptionRecord
from renewly.utils.categories import compute_category_breakdown, compute_spending_breakdown, percentage_shares

subscriptions = [
    SubscriptionRecord(name="News", price=10, category="news"),
    SubscriptionRecord(name="Gym", price=30, category="fitness"),
    SubscriptionRecord(name="Video", price=7, frequency="weekly", category="entertainment"),
    SubscriptionRecord(name="Backup", price=365, frequency="yearly"),
]


def test_breakdown_uses_monthly_equivalents():
    breakdown = {entry.category: entry for entry in compute_category_breakdown(subscriptions, "USD")}
    assert set(breakdown) == {"news", "fitness", "entertainment", "other"}
    assert breakdown["entertainment"].total == 30.0
    assert breakdown["news"].percentage == 10.0
    assert breakdown["other"].total == 30.0


def test_percentages_sum_to_hundred():
    breakdown = compute_category_breakdown(subscriptions, "USD")
    assert sum(entry.percentage for entry in breakdown) == pytest.approx(100, abs=0.1)


def test_single_category_takes_everything():
    breakdown = compute_category_breakdown([SubscriptionRecord(name="A", price=5, category="tools")], "USD")
    assert [(e.category, e.percentage) for e in breakdown] == [("tools", 100.0)]


def test_empty_breakdown():
    assert compute_category_breakdown([], "USD") == []


def test_equal_categories_round_to_hundred():
    subs = [SubscriptionRecord(name=f"Service {i}", price=10, category=f"c{i}") for i in range(6)]
    percentages = [entry.percentage for entry in compute_category_breakdown(subs, "USD")]
    assert sum(percentages) == pytest.approx(100, abs=0.1)
    assert sorted(percentages) == [16.6, 16.6, 16.7, 16.7, 16.7, 16.7]


def test_spend_below_one_still_sums_to_hundred():
    breakdown = compute_category_breakdown([SubscriptionRecord(name="Tiny", price=0.5, category="tools")], "USD")
    assert breakdown[0].percentage == 100.0
    assert breakdown[0].total == 0.5


def test_largest_remainder_goes_first():
    assert percentage_shares([2, 1]) == [66.7, 33.3]
    assert percentage_shares([1, 1, 1]) == [33.4, 33.3, 33.3]
    assert percentage_shares([0, 0]) == [0.0, 0.0]


def test_spending_breakdown_adds_bills():
    bills = [
        BillRecord(name="Rent", amount=60, category="housing", status="paid"),
        BillRecord(name="Misc", amount=10),
    ]
    breakdown = {entry.category: entry for entry in compute_spending_breakdown(subscriptions, bills, "USD")}
    assert breakdown["housing"].total == 60.0
    assert breakdown["other"].total == 40.0
    assert breakdown["housing"].percentage == 35.3
    assert sum(entry.percentage for entry in breakdown.values()) == pytest.approx(100, abs=0.1)
