#!/usr/bin/env python
"""
Tests for timeline bucketing and trend statistics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.anomaly_engine.schemas import AnomalyRecord, AnomalyType, Severity
from src.anomaly_engine.timeline import TimelinePoint, build_timeline, timeline_statistics

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_anomaly(detected_at: datetime, **overrides) -> AnomalyRecord:
    fields = {
        "anomaly_id": f"anomaly-{detected_at.isoformat()}",
        "source_ip": "10.0.1.5",
        "destination_ip": "8.8.8.8",
        "anomaly_type": AnomalyType.VOLUME,
        "severity": Severity.MEDIUM,
        "confidence": 0.8,
        "detected_at": detected_at,
    }
    fields.update(overrides)
    return AnomalyRecord(**fields)


@pytest.mark.parametrize("view, periods, step", [
    ("hourly", 24, timedelta(hours=1)),
    ("daily", 30, timedelta(days=1)),
    ("weekly", 12, timedelta(weeks=1)),
])
def test_views_cover_fixed_periods_oldest_first(view, periods, step):
    points = build_timeline([], NOW, view)

    assert len(points) == periods
    assert points[-1].timestamp == NOW
    assert points[0].timestamp == NOW - (periods - 1) * step
    assert all(p.count == 0 for p in points)


def test_unknown_view_is_rejected():
    with pytest.raises(ValueError):
        build_timeline([], NOW, "monthly")


def test_hourly_buckets_are_centred_on_the_hour():
    anomalies = [
        make_anomaly(NOW, severity=Severity.CRITICAL),
        make_anomaly(NOW - timedelta(minutes=10), anomaly_type=AnomalyType.PATTERN),
        make_anomaly(NOW - timedelta(minutes=30)),
        make_anomaly(NOW - timedelta(minutes=31), severity=Severity.LOW),
        make_anomaly(NOW + timedelta(minutes=30)),  # past the newest period
        make_anomaly(NOW - timedelta(hours=23, minutes=30), severity=Severity.HIGH),
        make_anomaly(NOW - timedelta(hours=23, minutes=31)),  # before the oldest period
    ]

    points = build_timeline(anomalies, NOW, "hourly")

    latest = points[-1]
    assert latest.count == 3
    assert (latest.critical, latest.high, latest.medium, latest.low) == (1, 0, 2, 0)
    assert latest.types == {"volume": 2, "pattern": 1}

    assert points[-2].count == 1
    assert points[-2].low == 1
    assert points[0].count == 1
    assert points[0].high == 1
    assert sum(p.count for p in points) == 5


def test_point_serializes():
    point = TimelinePoint(timestamp=NOW, count=2, high=2, types={"volume": 2})
    assert point.to_dict() == {
        "timestamp": "2024-05-01T12:00:00+00:00",
        "count": 2,
        "critical": 0,
        "high": 2,
        "medium": 0,
        "low": 0,
        "types": {"volume": 2},
    }


def _points(counts: list[int]) -> list[TimelinePoint]:
    return [
        TimelinePoint(timestamp=NOW - timedelta(hours=len(counts) - 1 - i), count=c, types={"volume": c} if c else {})
        for i, c in enumerate(counts)
    ]


def test_rising_trend():
    points = _points([1, 1, 3, 3])

    stats = timeline_statistics(points)

    assert stats["total_anomalies"] == 8
    assert stats["average_per_period"] == pytest.approx(2.0)
    assert stats["trend_percentage"] == pytest.approx(200.0)
    assert stats["is_increasing"] is True
    assert stats["is_decreasing"] is False
    assert stats["peak_period"] is points[2]
    assert stats["most_common_type"] == "volume"


def test_falling_and_flat_trends():
    falling = timeline_statistics(_points([4, 4, 2, 2]))
    assert falling["trend_percentage"] == pytest.approx(-50.0)
    assert falling["is_decreasing"] is True

    flat = timeline_statistics(_points([20, 20, 21, 20]))
    assert flat["trend_percentage"] == pytest.approx(2.5)
    assert not flat["is_increasing"]
    assert not flat["is_decreasing"]


def test_trend_is_zero_when_first_half_is_empty():
    stats = timeline_statistics(_points([0, 0, 5, 1]))
    assert stats["trend_percentage"] == 0.0
    assert stats["is_increasing"] is False


def test_most_common_type_across_periods():
    anomalies = [
        make_anomaly(NOW, anomaly_type=AnomalyType.PROTOCOL),
        make_anomaly(NOW - timedelta(hours=1), anomaly_type=AnomalyType.PROTOCOL),
        make_anomaly(NOW - timedelta(hours=2), anomaly_type=AnomalyType.TEMPORAL),
    ]

    stats = timeline_statistics(build_timeline(anomalies, NOW, "hourly"))

    assert stats["most_common_type"] == "protocol"
    assert stats["total_anomalies"] == 3


def test_empty_timeline_statistics():
    stats = timeline_statistics([])
    assert stats["total_anomalies"] == 0
    assert stats["peak_period"] is None
    assert stats["most_common_type"] is None
