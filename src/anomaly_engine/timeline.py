"""
Anomaly timeline bucketing and trend statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Literal

from src.anomaly_engine.schemas import AnomalyRecord, ensure_utc

TimelineView = Literal["hourly", "daily", "weekly"]

# view -> (number of periods, period length)
TIMELINE_VIEWS: dict[str, tuple[int, timedelta]] = {
    "hourly": (24, timedelta(hours=1)),
    "daily": (30, timedelta(days=1)),
    "weekly": (12, timedelta(weeks=1)),
}

# Trend percentage beyond which the series counts as rising or falling
TREND_THRESHOLD_PERCENT = 5.0


@dataclass
class TimelinePoint:
    """Anomaly counts for one period centred on ``timestamp``."""

    timestamp: datetime
    count: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    types: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "count": self.count,
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "types": dict(self.types),
        }


def build_timeline(
    anomalies: list[AnomalyRecord],
    now: datetime,
    view: TimelineView = "hourly",
) -> list[TimelinePoint]:
    """Bucket anomalies by detection time, oldest period first.

    Args:
        anomalies: Anomalies to bucket
        now: Centre of the most recent period
        view: hourly (24h), daily (30d) or weekly (12w)

    Returns:
        One TimelinePoint per period
    """
    if view not in TIMELINE_VIEWS:
        raise ValueError(f"Unknown timeline view: {view}")

    periods, interval = TIMELINE_VIEWS[view]
    now = ensure_utc(now)
    half = interval / 2

    points = []
    for i in range(periods - 1, -1, -1):
        centre = now - i * interval
        start, end = centre - half, centre + half
        point = TimelinePoint(timestamp=centre)

        for anomaly in anomalies:
            if not (start <= anomaly.detected_at < end):
                continue
            point.count += 1
            severity = anomaly.severity.value
            setattr(point, severity, getattr(point, severity) + 1)
            type_name = anomaly.anomaly_type.value
            point.types[type_name] = point.types.get(type_name, 0) + 1

        points.append(point)

    return points


def timeline_statistics(points: list[TimelinePoint]) -> dict[str, Any]:
    """Summarize a timeline: totals, trend, peak period and dominant type.

    The trend compares the mean count of the second half of the periods
    against the first half, as a percentage.
    """
    if not points:
        return {
            "total_anomalies": 0,
            "average_per_period": 0.0,
            "trend_percentage": 0.0,
            "is_increasing": False,
            "is_decreasing": False,
            "peak_period": None,
            "most_common_type": None,
        }

    total = sum(p.count for p in points)
    midpoint = len(points) // 2
    first_half = points[:midpoint]
    second_half = points[midpoint:]

    first_avg = sum(p.count for p in first_half) / len(first_half) if first_half else 0.0
    second_avg = sum(p.count for p in second_half) / len(second_half) if second_half else 0.0
    trend = (second_avg - first_avg) / first_avg * 100 if first_avg else 0.0

    peak = points[0]
    for point in points[1:]:
        if point.count > peak.count:
            peak = point

    type_totals: dict[str, int] = {}
    for point in points:
        for type_name, count in point.types.items():
            type_totals[type_name] = type_totals.get(type_name, 0) + count

    most_common = None
    for type_name, count in type_totals.items():
        if most_common is None or count > most_common[1]:
            most_common = (type_name, count)

    return {
        "total_anomalies": total,
        "average_per_period": total / len(points),
        "trend_percentage": trend,
        "is_increasing": trend > TREND_THRESHOLD_PERCENT,
        "is_decreasing": trend < -TREND_THRESHOLD_PERCENT,
        "peak_period": peak,
        "most_common_type": most_common[0] if most_common else None,
    }
