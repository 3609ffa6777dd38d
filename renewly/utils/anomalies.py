from __future__ import annotations

import statistics
from typing import List, Sequence

from renewly.models.insights import AnomalyRecord, TimelinePoint


def detect_anomalies(timeline: Sequence[TimelinePoint], sigma: float = 2.0) -> List[AnomalyRecord]:
    """
    Flag days deviating more than ``sigma`` population standard deviations
    from the mean of the timeline.
    """
    if not timeline:
        return []

    amounts = [point.amount for point in timeline]
    mean = statistics.fmean(amounts)
    stdev = statistics.pstdev(amounts)
    if stdev == 0:
        return []

    anomalies: List[AnomalyRecord] = []
    for point in timeline:
        if abs(point.amount - mean) <= sigma * stdev:
            continue
        deviation = (point.amount - mean) / mean * 100 if mean else 0.0
        anomalies.append(
            AnomalyRecord(
                date=point.date,
                amount=round(point.amount, 2),
                deviation=round(deviation, 1),
                type="spike" if point.amount > mean else "drop",
            )
        )
    return anomalies
