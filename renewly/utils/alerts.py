from __future__ import annotations

import statistics
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from renewly.models.insights import PredictiveAlert
from renewly.models.records import SubscriptionRecord, utc_now
from renewly.utils.currency import CurrencyNormalizer
from renewly.utils.normalize import normalize_subscriptions
from renewly.utils.savings import format_currency

ALERT_WINDOW_DAYS = 7
PRICE_SURGE_SHARE = 0.35


def generate_predictive_alerts(
    subscriptions: Iterable[SubscriptionRecord],
    base_currency: str,
    normalizer: Optional[CurrencyNormalizer] = None,
    now: Optional[datetime] = None,
    window_days: int = ALERT_WINDOW_DAYS,
) -> List[PredictiveAlert]:
    """
    Renewals due within ``window_days`` and subscriptions priced well above
    the average of the others.
    """
    normalizer = normalizer or CurrencyNormalizer()
    now = now or utc_now()
    horizon = now + timedelta(days=window_days)
    normalized = normalize_subscriptions(subscriptions, base_currency, normalizer)
    average_price = statistics.fmean(item.price for item in normalized) if normalized else 0.0

    alerts: List[PredictiveAlert] = []
    for item in normalized:
        renewal = item.record.renewal_date
        if renewal is not None and now <= renewal <= horizon:
            alerts.append(
                PredictiveAlert(
                    type="immediate_renewal",
                    title="Renewal approaching",
                    message=(
                        f"{item.record.name} renews on {renewal.date().isoformat()} "
                        f"for {format_currency(item.price, base_currency)}."
                    ),
                    priority="high",
                    subscription_id=item.record.id,
                )
            )

        if item.price - average_price > average_price * PRICE_SURGE_SHARE:
            alerts.append(
                PredictiveAlert(
                    type="predicted_price_increase",
                    title="Possible price surge",
                    message=(
                        f"{item.record.name} costs considerably more than similar services. "
                        "Expect potential increases soon."
                    ),
                    priority="medium",
                    subscription_id=item.record.id,
                )
            )
    return alerts
