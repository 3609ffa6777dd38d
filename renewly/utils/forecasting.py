from __future__ import annotations

import logging
import statistics
from typing import Iterable, List, Optional, Sequence

from renewly.models.insights import AnomalyRecord, BudgetHealth, PredictedSpending, TimelinePoint
from renewly.models.records import SubscriptionRecord
from renewly.utils.categories import compute_category_breakdown, top_categories
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import clamp
from renewly.utils.timeline import bucket_by_month

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 6
MOMENTUM_WEIGHT = 0.6
SEASONAL_SHARE = 0.05
SEASONAL_MIN_MONTHS = 4
TREND_TOLERANCE = 0.03


class SpendingPredictor:
    """
    Momentum model for next month's spend.

    The prediction starts from the average of up to six calendar-month totals
    of the timeline, moves it by 60% of the last month-over-month growth and
    adds a 5% seasonal allowance once four months of history exist.
    """

    def __init__(self, normalizer: Optional[CurrencyNormalizer] = None) -> None:
        self._normalizer = normalizer or CurrencyNormalizer()

    @staticmethod
    def monthly_series(timeline: Iterable[TimelinePoint]) -> List[float]:
        return [bucket["amount"] for bucket in bucket_by_month(timeline)][-HISTORY_MONTHS:]

    @staticmethod
    def momentum(series: Sequence[float]) -> float:
        if len(series) < 2 or series[-2] == 0:
            return 0.0
        return (series[-1] - series[-2]) / series[-2]

    @staticmethod
    def calculate_confidence(series: Sequence[float]) -> float:
        if len(series) <= 1:
            return 0.5
        mean = statistics.fmean(series)
        coefficient = statistics.pstdev(series) / mean if mean else 1.0
        return clamp(1 - coefficient, 0.25, 0.95)

    def identify_key_factors(self, subscriptions: Iterable[SubscriptionRecord], base_currency: str) -> List[str]:
        breakdown = compute_category_breakdown(subscriptions, base_currency, self._normalizer)
        return [f"{entry.category} ({entry.percentage}% of spend)" for entry in top_categories(breakdown)]

    @staticmethod
    def assess_risk_level(anomalies: Sequence[AnomalyRecord], budget_health: BudgetHealth) -> str:
        utilization = budget_health.utilization or 0
        if len(anomalies) > 4 or utilization > 95:
            return "high"
        if anomalies or utilization > 85:
            return "medium"
        return "low"

    def predict(
        self,
        subscriptions: Iterable[SubscriptionRecord],
        timeline: Sequence[TimelinePoint],
        anomalies: Sequence[AnomalyRecord],
        budget_health: BudgetHealth,
    ) -> PredictedSpending:
        series = self.monthly_series(timeline)
        return self.predict_from_series(series, subscriptions, anomalies, budget_health)

    def predict_from_series(
        self,
        series: Sequence[float],
        subscriptions: Iterable[SubscriptionRecord],
        anomalies: Sequence[AnomalyRecord],
        budget_health: BudgetHealth,
    ) -> PredictedSpending:
        base = statistics.fmean(series) if series else 0.0
        last_month = series[-1] if series else base
        momentum = self.momentum(series)
        seasonal = SEASONAL_SHARE * base if len(series) >= SEASONAL_MIN_MONTHS else 0.0
        predicted = base + momentum * base * MOMENTUM_WEIGHT + seasonal

        if momentum > TREND_TOLERANCE:
            trend = "up"
        elif momentum < -TREND_TOLERANCE:
            trend = "down"
        else:
            trend = "stable"

        logger.debug(f"Forecast over {len(series)} months: base={base:.2f} momentum={momentum:.3f}")
        return PredictedSpending(
            predicted_amount=round(predicted, 2),
            confidence=round(self.calculate_confidence(series), 2),
            trend=trend,
            factors=self.identify_key_factors(subscriptions, budget_health.currency),
            risk_level=self.assess_risk_level(anomalies, budget_health),
            average_monthly=round(base, 2),
            last_month=round(last_month, 2),
        )


def predict_spending(
    subscriptions: Iterable[SubscriptionRecord],
    timeline: Sequence[TimelinePoint],
    anomalies: Sequence[AnomalyRecord],
    budget_health: BudgetHealth,
    normalizer: Optional[CurrencyNormalizer] = None,
) -> PredictedSpending:
    return SpendingPredictor(normalizer).predict(subscriptions, timeline, anomalies, budget_health)

