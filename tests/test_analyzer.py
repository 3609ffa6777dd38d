from datetime import datetime, timedelta

from renewly.models.records import BillRecord, BudgetRecord, FinancialSnapshot, SubscriptionRecord
from renewly.utils.analyzer import InsightsAnalyzer
from renewly.utils.history import ConversationHistoryStore, ConversationTurn

now = datetime(2026, 10, 19, 12, 0)

sample_subscriptions = [
    SubscriptionRecord(id="s1", name="Netflix", price=15.99, category="entertainment", start_date=datetime(2026, 1, 3)),
    SubscriptionRecord(id="s2", name="Spotify", price=9.99, category="music", renewal_date=now + timedelta(days=5)),
    SubscriptionRecord(id="s3", name="Adobe", price=54.99, category="productivity", renewal_date=now + timedelta(days=25)),
    SubscriptionRecord(id="s4", name="Gym", price=420, frequency="yearly", category="fitness", status="cancelled"),
]
sample_bills = [
    BillRecord(id="b1", name="Electricity", amount=80, category="utilities", due_date=datetime(2026, 10, 12)),
    BillRecord(id="b2", name="Water", amount=30, category="utilities", due_date=datetime(2026, 9, 28)),
]
sample_budget = BudgetRecord(monthly_limit=120, currency="USD")

RESULT_KEYS = {
    "period",
    "currency",
    "spendingTrends",
    "anomalyDetection",
    "savingsOpportunities",
    "budgetHealth",
    "predictiveAlerts",
    "subscriptionHabits",
    "categoryOptimization",
    "renewalClustering",
    "categoryBreakdown",
    "predictedSpending",
}


def test_empty_snapshot():
    analyzer = InsightsAnalyzer()
    result = analyzer.generate([], [], None, period="30d", now=now)
    assert set(result) == RESULT_KEYS
    assert result["currency"] == "USD"
    assert len(result["spendingTrends"]) == 30
    assert all(point["amount"] == 0 for point in result["spendingTrends"])
    assert result["anomalyDetection"] == []
    assert result["savingsOpportunities"] == []
    assert result["categoryBreakdown"] == []
    assert result["budgetHealth"]["score"] == 80
    assert result["budgetHealth"]["utilization"] is None
    assert result["renewalClustering"] == {"upcomingClusters": []}


def test_upcoming_renewal_is_clustered_and_alerted():
    subs = [SubscriptionRecord(id="r1", name="Cloud", price=10, renewal_date=now + timedelta(days=5))]
    result = InsightsAnalyzer().generate(subs, [], None, period="30d", now=now)
    clusters = result["renewalClustering"]["upcomingClusters"]
    assert clusters[0]["windowLabel"] == "Week 1"
    assert clusters[0]["subscriptions"][0]["id"] == "r1"
    assert any(
        alert["type"] == "immediate_renewal" and alert["subscriptionId"] == "r1"
        for alert in result["predictiveAlerts"]
    )


def test_full_snapshot():
    result = InsightsAnalyzer().generate(sample_subscriptions, sample_bills, sample_budget, period="90d", now=now)
    assert result["period"] == "90d"
    assert len(result["spendingTrends"]) == 90
    assert result["spendingTrends"][-1]["date"] == "2026-10-19"

    health = result["budgetHealth"]
    assert health["limit"] == 120.0
    assert health["monthlySpend"] == round(15.99 + 9.99 + 54.99 + 420 / 365 * 30, 2)
    assert 5 <= health["score"] <= 95

    savings = result["savingsOpportunities"]
    assert savings[0]["type"] == "unused" and savings[0]["subscriptionIds"] == ["s4"]
    assert [item["potentialSavings"] for item in savings] == sorted(
        (item["potentialSavings"] for item in savings), reverse=True
    )

    percentages = [entry["percentage"] for entry in result["categoryBreakdown"]]
    assert abs(sum(percentages) - 100) <= 0.1

    predicted = result["predictedSpending"]
    assert set(predicted) == {
        "predictedAmount", "confidence", "trend", "factors", "riskLevel", "averageMonthly", "lastMonth"
    }
    assert 0.25 <= predicted["confidence"] <= 0.95
    assert len(predicted["factors"]) == 3
    assert result["subscriptionHabits"]["total"] == 4


def test_unknown_period_defaults_to_thirty_days():
    result = InsightsAnalyzer().generate(sample_subscriptions, [], None, period="forever", now=now)
    assert result["period"] == "forever"
    assert len(result["spendingTrends"]) == 30


def test_year_period():
    result = InsightsAnalyzer().generate(sample_subscriptions, [], None, period="1y", now=now)
    assert len(result["spendingTrends"]) == 365


def test_budget_currency_drives_output():
    budget = BudgetRecord(monthly_limit=100, currency="EUR")
    result = InsightsAnalyzer().generate(sample_subscriptions, [], budget, now=now)
    assert result["currency"] == "EUR"
    assert result["budgetHealth"]["currency"] == "EUR"


def test_custom_rate_lookup():
    analyzer = InsightsAnalyzer(rate_lookup=lambda code: {"USD": 1.0, "CHF": 0.9}.get(code))
    subs = [SubscriptionRecord(name="Swiss", price=90, currency="CHF")]
    result = analyzer.generate(subs, [], BudgetRecord(monthly_limit=200, currency="USD"), now=now)
    assert result["budgetHealth"]["monthlySpend"] == 100.0


def test_persona_and_tips():
    snapshot = FinancialSnapshot(subscriptions=sample_subscriptions, bills=sample_bills)
    analyzer = InsightsAnalyzer()
    persona = analyzer.persona(snapshot, now=now)
    assert persona.learning_priority == "build_budget_basics"
    assert "set_budget" in persona.financial_goals
    assert persona.preferred_communication == "conversational"

    payload = analyzer.tips(snapshot, now=now)
    assert payload["persona"]["spendingStyle"] == persona.spending_style
    assert 2 <= len(payload["tips"]) <= 4


def test_assistant_context_includes_recent_history():
    store = ConversationHistoryStore()
    store.append("u1", ConversationTurn(role="user", content="How much do I spend?"))
    snapshot = FinancialSnapshot(subscriptions=sample_subscriptions, bills=sample_bills, budget=sample_budget)
    context = InsightsAnalyzer().assistant_context("u1", snapshot, store, now=now)
    assert context["userId"] == "u1"
    assert context["conversationHistory"][0]["content"] == "How much do I spend?"
    assert context["persona"]["learningPriority"] != "build_budget_basics"
    assert context["insights"]["currency"] == "USD"
    assert "tips" in context


def test_summary_and_trends_share_the_base_currency():
    analyzer = InsightsAnalyzer()
    snapshot = FinancialSnapshot(subscriptions=sample_subscriptions, bills=sample_bills, budget=sample_budget)
    summary = analyzer.summary(snapshot, now=now)
    assert summary["summary"]["currency"] == "USD"
    assert summary["summary"]["pendingBills"] == 2
    assert summary["budgetAnalysis"]["monthlyLimit"] == 120.0

    trends = analyzer.trends(snapshot, time_range="quarterly", now=now)
    assert trends["currency"] == "USD"
    assert trends["timeRange"] == "quarterly"
    assert trends["monthlyComparison"]["currentMonth"]["label"] == "October 2026"
