from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from renewly.models.insights import PersonaProfile
from renewly.models.records import BillRecord, BudgetRecord, FinancialSnapshot, SubscriptionRecord, utc_now
from renewly.utils.alerts import ALERT_WINDOW_DAYS, generate_predictive_alerts
from renewly.utils.anomalies import detect_anomalies
from renewly.utils.budget_health import score_budget_health
from renewly.utils.categories import compute_category_breakdown
from renewly.utils.currency import CurrencyNormalizer, RateLookup, StaticRateLookup, select_base_currency
from renewly.utils.forecasting import SpendingPredictor
from renewly.utils.habits import analyze_subscription_habits, suggest_category_optimization
from renewly.utils.history import ConversationHistoryStore
from renewly.utils.persona import classify_persona, personalized_tips
from renewly.utils.renewals import RENEWAL_WINDOW_DAYS, cluster_renewals
from renewly.utils.savings import MAX_OPPORTUNITIES, find_savings_opportunities
from renewly.utils.summary import build_spending_summary
from renewly.utils.timeline import build_timeline, resolve_period
from renewly.utils.trends import DEFAULT_TIME_RANGE, build_spending_trends

logger = logging.getLogger(__name__)

PERSONA_PERIOD = "90d"
CONTEXT_PERIOD = "30d"


class InsightsAnalyzer:
    """
    Analytics pipeline shared by the HTTP routes and the assistant layer.

    Every call works on an already fetched snapshot and performs no I/O.
    """

    def __init__(
        self,
        currency_factors_path: Optional[str | Path] = None,
        rate_lookup: Optional[RateLookup] = None,
        anomaly_sigma: float = 2.0,
        savings_limit: int = MAX_OPPORTUNITIES,
        renewal_window_days: int = RENEWAL_WINDOW_DAYS,
        alert_window_days: int = ALERT_WINDOW_DAYS,
        default_currency: str = "USD",
    ) -> None:
        lookup = rate_lookup or StaticRateLookup.from_json(currency_factors_path)
        self._normalizer = CurrencyNormalizer(lookup)
        self._anomaly_sigma = anomaly_sigma
        self._savings_limit = savings_limit
        self._renewal_window_days = renewal_window_days
        self._alert_window_days = alert_window_days
        self._default_currency = default_currency

    @property
    def normalizer(self) -> CurrencyNormalizer:
        return self._normalizer

    def base_currency(
        self,
        budget: Optional[BudgetRecord],
        subscriptions: Sequence[SubscriptionRecord],
        bills: Sequence[BillRecord],
    ) -> str:
        return select_base_currency(budget, subscriptions, bills, default=self._default_currency)

    def generate(
        self,
        subscriptions: Sequence[SubscriptionRecord],
        bills: Sequence[BillRecord],
        budget: Optional[BudgetRecord] = None,
        period: str = "30d",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or utc_now()
        days = resolve_period(period)
        currency = self.base_currency(budget, subscriptions, bills)
        logger.info(
            f"Generating insights: period={period} ({days}d) currency={currency} "
            f"subscriptions={len(subscriptions)} bills={len(bills)} budget={budget is not None}"
        )

        timeline = build_timeline(subscriptions, bills, days, currency, self._normalizer, today=now.date())
        anomalies = detect_anomalies(timeline, sigma=self._anomaly_sigma)
        savings = find_savings_opportunities(
            subscriptions, currency, self._normalizer, now=now, limit=self._savings_limit
        )
        budget_health = score_budget_health(budget, subscriptions, currency, timeline, self._normalizer)
        alerts = generate_predictive_alerts(
            subscriptions, currency, self._normalizer, now=now, window_days=self._alert_window_days
        )
        breakdown = compute_category_breakdown(subscriptions, currency, self._normalizer)
        predictor = SpendingPredictor(self._normalizer)
        monthly_series = predictor.monthly_series(timeline)
        predicted = predictor.predict_from_series(monthly_series, subscriptions, anomalies, budget_health)

        logger.info(
            f"Insights ready: anomalies={len(anomalies)} savings={len(savings)} "
            f"score={budget_health.score} risk={predicted.risk_level}"
        )
        return {
            "period": period,
            "currency": currency,
            "spendingTrends": [point.to_dict() for point in timeline],
            "anomalyDetection": [anomaly.to_dict() for anomaly in anomalies],
            "savingsOpportunities": [item.to_dict() for item in savings],
            "budgetHealth": budget_health.to_dict(),
            "predictiveAlerts": [alert.to_dict() for alert in alerts],
            "subscriptionHabits": analyze_subscription_habits(subscriptions, currency, self._normalizer),
            "categoryOptimization": [
                item.to_dict() for item in suggest_category_optimization(subscriptions, currency, self._normalizer)
            ],
            "renewalClustering": cluster_renewals(subscriptions, now=now, window_days=self._renewal_window_days),
            "categoryBreakdown": [entry.to_dict() for entry in breakdown],
            "predictedSpending": predicted.to_dict(),
        }

    def generate_for(self, snapshot: FinancialSnapshot, period: str = "30d", now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.generate(snapshot.subscriptions, snapshot.bills, snapshot.budget, period=period, now=now)

    def summary(self, snapshot: FinancialSnapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Totals including unpaid bills, category overlaps and the budget analysis."""
        currency = self.base_currency(snapshot.budget, snapshot.subscriptions, snapshot.bills)
        logger.info(f"Building spending summary: currency={currency} budget={snapshot.budget is not None}")
        return build_spending_summary(
            snapshot.subscriptions, snapshot.bills, snapshot.budget, currency, self._normalizer, now=now or utc_now()
        )

    def trends(
        self, snapshot: FinancialSnapshot, time_range: str = DEFAULT_TIME_RANGE, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        currency = self.base_currency(snapshot.budget, snapshot.subscriptions, snapshot.bills)
        logger.info(f"Building spending trends: range={time_range} currency={currency}")
        return build_spending_trends(
            snapshot.subscriptions,
            snapshot.bills,
            currency,
            time_range,
            self._normalizer,
            today=(now or utc_now()).date(),
        )

    def persona(self, snapshot: FinancialSnapshot, now: Optional[datetime] = None) -> PersonaProfile:
        """Persona derived from the monthly totals of a 90-day window."""
        now = now or utc_now()
        subscriptions, bills, budget = snapshot.subscriptions, snapshot.bills, snapshot.budget
        currency = self.base_currency(budget, subscriptions, bills)

        timeline = build_timeline(
            subscriptions, bills, resolve_period(PERSONA_PERIOD), currency, self._normalizer, today=now.date()
        )
        anomalies = detect_anomalies(timeline, sigma=self._anomaly_sigma)
        budget_health = score_budget_health(budget, subscriptions, currency, timeline, self._normalizer)
        breakdown = compute_category_breakdown(subscriptions, currency, self._normalizer)

        return classify_persona(
            SpendingPredictor.monthly_series(timeline),
            breakdown,
            budget_health,
            subscriptions,
            anomalies,
            has_budget=budget is not None,
        )

    def tips(self, snapshot: FinancialSnapshot, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utc_now()
        persona = self.persona(snapshot, now=now)
        currency = self.base_currency(snapshot.budget, snapshot.subscriptions, snapshot.bills)
        timeline = build_timeline(
            snapshot.subscriptions,
            snapshot.bills,
            resolve_period(CONTEXT_PERIOD),
            currency,
            self._normalizer,
            today=now.date(),
        )
        tips = personalized_tips(
            persona,
            anomalies=detect_anomalies(timeline, sigma=self._anomaly_sigma),
            savings=find_savings_opportunities(
                snapshot.subscriptions, currency, self._normalizer, now=now, limit=self._savings_limit
            ),
            alerts=generate_predictive_alerts(
                snapshot.subscriptions, currency, self._normalizer, now=now, window_days=self._alert_window_days
            ),
        )
        return {"persona": persona.to_dict(), "tips": tips}

    def assistant_context(
        self,
        user_id: str,
        snapshot: FinancialSnapshot,
        history: ConversationHistoryStore,
        now: Optional[datetime] = None,
        history_turns: int = 10,
    ) -> Dict[str, Any]:
        """
        Grounding context handed to the text-generation provider: persona,
        tips, the 30-day insight summary and the latest conversation turns.
        """
        now = now or utc_now()
        insights = self.generate_for(snapshot, period=CONTEXT_PERIOD, now=now)
        persona_and_tips = self.tips(snapshot, now=now)
        turns: List[Dict[str, Any]] = [turn.to_dict() for turn in history.get(user_id)[-history_turns:]]

        return {
            "userId": str(user_id),
            **persona_and_tips,
            "insights": {
                "currency": insights["currency"],
                "budgetHealth": insights["budgetHealth"],
                "predictedSpending": insights["predictedSpending"],
                "anomalies": insights["anomalyDetection"],
                "savingsOpportunities": insights["savingsOpportunities"],
                "alerts": insights["predictiveAlerts"],
                "categoryBreakdown": insights["categoryBreakdown"],
            },
            "conversationHistory": turns,
        }
