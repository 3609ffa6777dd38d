from __future__ import annotations

import logging
import math
import statistics
from typing import Iterable, Optional, Sequence

from renewly.models.insights import BudgetHealth, TimelinePoint
from renewly.models.records import BudgetRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import clamp, normalize_subscriptions

logger = logging.getLogger(__name__)

TREND_WINDOW_DAYS = 7
TREND_TOLERANCE = 0.05
STRESS_UTILIZATION = 80.0


def spending_trend_ratio(timeline: Sequence[TimelinePoint], window: int = TREND_WINDOW_DAYS) -> float:
    """Relative change of the last ``window`` days against the ``window`` days before."""
    recent = timeline[-window:]
    previous = timeline[max(0, len(timeline) - 2 * window):max(0, len(timeline) - window)]
    avg_recent = statistics.fmean(point.amount for point in recent) if recent else 0.0
    avg_previous = statistics.fmean(point.amount for point in previous) if previous else 0.0
    if avg_previous == 0:
        return 0.0
    return (avg_recent - avg_previous) / avg_previous


def trend_label(ratio: float) -> str:
    # Rising spend means declining health.
    if ratio > TREND_TOLERANCE:
        return "down"
    if ratio < -TREND_TOLERANCE:
        return "up"
    return "stable"


def score_budget_health(
    budget: Optional[BudgetRecord],
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    timeline: Sequence[TimelinePoint],
    normalizer: Optional[CurrencyNormalizer] = None,
) -> BudgetHealth:
    normalizer = normalizer or CurrencyNormalizer()
    monthly_spend = sum(
        item.monthly_equivalent for item in normalize_subscriptions(subscriptions, base_currency, normalizer)
    )

    limit: Optional[float] = None
    utilization: Optional[float] = None
    if budget is not None and budget.monthly_limit:
        limit = normalizer.convert(budget.monthly_limit, budget.currency or base_currency, base_currency)
        utilization = round(monthly_spend / limit * 100, 1)

    ratio = spending_trend_ratio(timeline)
    if limit is None:
        score = clamp(80 - ratio * 50, 10, 95)
    else:
        overage = max(utilization - STRESS_UTILIZATION, 0)
        score = clamp(95 - overage * 1.2 - ratio * 40, 5, 95)

    logger.debug(f"Budget health: spend={monthly_spend:.2f} limit={limit} ratio={ratio:.3f}")
    return BudgetHealth(
        score=math.floor(score + 0.5),
        utilization=utilization,
        monthly_spend=round(monthly_spend, 2),
        limit=round(limit, 2) if limit is not None else None,
        trend=trend_label(ratio),
        currency=base_currency,
    )
