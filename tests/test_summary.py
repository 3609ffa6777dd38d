from datetime import datetime, timedelta

import pytest

from renewly.models.records import BillRecord, BudgetRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import normalize_bills, normalize_subscriptions
from renewly.utils.summary import analyze_budget, build_spending_summary, find_upcoming_renewals

now = datetime(2026, 10, 19, 12, 0)

subscriptions = [
    SubscriptionRecord(id="s1", name="Netflix", price=15, category="entertainment"),
    SubscriptionRecord(id="s2", name="Disney+", price=9, category="entertainment"),
    SubscriptionRecord(id="s3", name="Adobe", price=50, category="productivity", renewal_date=now + timedelta(days=10)),
    SubscriptionRecord(id="s4", name="Domain", price=73, frequency="yearly", status="cancelled"),
]
bills = [
    BillRecord(id="b1", name="Rent", amount=1000, category="housing", status="pending"),
    BillRecord(id="b2", name="Power", amount=60, category="utilities", status="overdue"),
    BillRecord(id="b3", name="Water", amount=40, category="utilities", status="paid"),
]
budget = BudgetRecord(
    monthly_limit=1500,
    currency="USD",
    category_limits={"entertainment": 25, "utilities": 200},
    notification_threshold=80,
)


def test_summary_counts_unpaid_bills():
    summary = build_spending_summary(subscriptions, bills, budget, "USD", now=now)["summary"]
    assert summary["monthlySpending"] == 1140.0
    assert summary["yearlySpending"] == pytest.approx(13693.33)
    assert summary["activeSubscriptions"] == 3
    assert summary["pendingBills"] == 1
    assert summary["overdueBills"] == 1
    assert summary["currency"] == "USD"


def test_overlaps_and_savings_potential():
    result = build_spending_summary(subscriptions, bills, budget, "USD", now=now)
    assert [(o["category"], o["subscriptionIds"]) for o in result["overlaps"]] == [("entertainment", ["s1", "s2"])]
    assert result["overlaps"][0]["totalSpending"] == 24.0
    assert result["savingsPotential"] == 12.0


def test_budget_analysis_warns_per_category():
    analysis = build_spending_summary(subscriptions, bills, budget, "USD", now=now)["budgetAnalysis"]
    assert analysis["percentageUsed"] == 76.0
    categories = {entry["category"]: entry for entry in analysis["categories"]}
    assert categories["entertainment"]["percentage"] == 96.0
    assert categories["entertainment"]["overBudget"] is False
    assert categories["utilities"]["spent"] == 100.0
    assert [s["type"] for s in analysis["suggestions"]] == ["category_warning", "overlap"]
    assert analysis["suggestions"][1]["potentialSavings"] == 12.0


def test_budget_warning_above_threshold():
    normalizer = CurrencyNormalizer()
    tight = BudgetRecord(monthly_limit=100, notification_threshold=50)
    analysis = analyze_budget(tight, {}, 60.0, [], "USD", normalizer)
    assert analysis.percentage_used == 60.0
    assert [s.type for s in analysis.suggestions] == ["budget_warning"]


def test_category_limits_are_converted():
    normalizer = CurrencyNormalizer()
    euro_budget = BudgetRecord(currency="EUR", category_limits={"music": 10})
    analysis = analyze_budget(euro_budget, {"music": 10.0}, 10.0, [], "USD", normalizer)
    assert analysis.monthly_limit is None
    assert analysis.percentage_used is None
    assert analysis.categories[0].limit == pytest.approx(9.35, abs=0.01)
    assert analysis.categories[0].over_budget is True


def test_no_budget_means_no_analysis():
    assert build_spending_summary(subscriptions, bills, None, "USD", now=now)["budgetAnalysis"] is None


def test_recommendations():
    recommendations = build_spending_summary(subscriptions, bills, budget, "USD", now=now)["recommendations"]
    assert [(r["type"], r["priority"]) for r in recommendations] == [("consolidate", "high"), ("review_renewals", "medium")]
    assert recommendations[1]["subscriptions"][0]["id"] == "s3"


def test_missed_renewals_are_upcoming():
    subs = [
        SubscriptionRecord(id="late", name="Late", price=1, renewal_date=now - timedelta(days=3)),
        SubscriptionRecord(id="far", name="Far", price=1, renewal_date=now + timedelta(days=45)),
        SubscriptionRecord(id="none", name="None", price=1),
    ]
    assert [sub.id for sub in find_upcoming_renewals(subs, now)] == ["late"]


def test_bills_in_other_currencies_are_converted():
    normalized = normalize_bills([BillRecord(name="Rent", amount=107, currency="EUR")], "USD", CurrencyNormalizer())
    assert normalized[0].amount == pytest.approx(100.0)
    assert normalized[0].is_tracked


def test_empty_snapshot_summary():
    result = build_spending_summary([], [], None, "USD", now=now)
    assert result["summary"]["monthlySpending"] == 0
    assert result["overlaps"] == []
    assert result["categoryBreakdown"] == []
    assert result["recommendations"] == []
    assert normalize_subscriptions([], "USD", CurrencyNormalizer()) == []
