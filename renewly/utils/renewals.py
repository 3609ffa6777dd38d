from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from renewly.models.insights import RenewalCluster, RenewalMember
from renewly.models.records import SubscriptionRecord, utc_now
from renewly.utils.normalize import group_by

RENEWAL_WINDOW_DAYS = 60


def week_label(renewal: datetime, now: datetime) -> str:
    days_until = (renewal - now).total_seconds() / 86400
    return f"Week {math.ceil(days_until / 7)}"


def cluster_renewals(
    subscriptions: Iterable[SubscriptionRecord],
    now: Optional[datetime] = None,
    window_days: int = RENEWAL_WINDOW_DAYS,
) -> Dict[str, List[Dict]]:
    """Group renewals falling within the next ``window_days`` by week."""
    now = now or utc_now()
    horizon = now + timedelta(days=window_days)
    upcoming = [
        sub for sub in subscriptions
        if sub.renewal_date is not None and now <= sub.renewal_date <= horizon
    ]

    clusters = [
        RenewalCluster(
            window_label=label,
            count=len(members),
            subscriptions=[
                RenewalMember(id=sub.id, name=sub.name, renewal_date=sub.renewal_date.isoformat())
                for sub in members
            ],
        )
        for label, members in group_by(upcoming, lambda sub: week_label(sub.renewal_date, now)).items()
    ]
    clusters.sort(key=lambda cluster: cluster.count, reverse=True)
    return {"upcomingClusters": [cluster.to_dict() for cluster in clusters]}
