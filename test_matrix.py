#!/usr/bin/env python
"""
Tests for the IP-pair correlation matrix.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.anomaly_engine.matrix import build_correlation_matrix
from src.anomaly_engine.schemas import AnomalyRecord, AnomalyType, Severity

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_anomaly(index: int = 0, **overrides) -> AnomalyRecord:
    fields = {
        "anomaly_id": f"anomaly-{index}",
        "source_ip": "203.0.113.5",
        "destination_ip": "10.0.0.8",
        "anomaly_type": AnomalyType.PROTOCOL,
        "severity": Severity.MEDIUM,
        "confidence": 0.9,
        "detected_at": NOW,
    }
    fields.update(overrides)
    return AnomalyRecord(**fields)


def test_pair_needs_two_shared_anomalies():
    assert build_correlation_matrix([make_anomaly(1)]) == []


def test_identical_pair_entry():
    matrix = build_correlation_matrix([make_anomaly(1), make_anomaly(2)])

    assert len(matrix) == 1
    entry = matrix[0]
    assert (entry.source_ip, entry.target_ip) == ("203.0.113.5", "10.0.0.8")
    assert entry.shared_anomalies == 2
    assert entry.time_proximity == pytest.approx(1.0)
    assert entry.pattern_similarity == pytest.approx(1.0)
    assert entry.correlation_strength == pytest.approx(0.68)


def test_time_proximity_decays_over_a_day():
    half_day = build_correlation_matrix([make_anomaly(1), make_anomaly(2, detected_at=NOW + timedelta(hours=12))])
    assert half_day[0].time_proximity == pytest.approx(0.5)

    two_days = build_correlation_matrix([make_anomaly(1), make_anomaly(2, detected_at=NOW + timedelta(days=2))])
    assert two_days[0].time_proximity == 0.0


def test_pattern_similarity_can_go_negative():
    types = list(AnomalyType)
    severities = list(Severity)
    anomalies = [
        make_anomaly(i, anomaly_type=types[i], severity=severities[i % len(severities)])
        for i in range(len(types))
    ]

    entry = build_correlation_matrix(anomalies)[0]

    assert entry.pattern_similarity == pytest.approx(-0.1)
    assert entry.correlation_strength == pytest.approx(0.47)


def test_strength_is_clamped_to_one():
    anomalies = [make_anomaly(i) for i in range(30)]

    entry = build_correlation_matrix(anomalies)[0]

    assert entry.shared_anomalies == 30
    assert entry.correlation_strength == 1.0


def test_reversed_pairs_are_separate_entries():
    forward = [make_anomaly(i) for i in range(2)]
    reverse = [make_anomaly(i, source_ip="10.0.0.8", destination_ip="203.0.113.5") for i in range(2, 5)]

    matrix = build_correlation_matrix(forward + reverse)

    assert [(m.source_ip, m.target_ip, m.shared_anomalies) for m in matrix] == [
        ("10.0.0.8", "203.0.113.5", 3),
        ("203.0.113.5", "10.0.0.8", 2),
    ]


def test_matrix_is_sorted_and_limited():
    anomalies = []
    for pair in range(25):
        count = 2 + pair % 4
        anomalies.extend(
            make_anomaly(pair * 10 + i, destination_ip=f"10.0.{pair}.1") for i in range(count)
        )

    matrix = build_correlation_matrix(anomalies)

    assert len(matrix) == 20
    strengths = [m.correlation_strength for m in matrix]
    assert strengths == sorted(strengths, reverse=True)
    assert len(build_correlation_matrix(anomalies, limit=5)) == 5


def test_equal_strength_keeps_first_seen_order():
    anomalies = [
        make_anomaly(1, destination_ip="10.0.0.2"),
        make_anomaly(2, destination_ip="10.0.0.1"),
        make_anomaly(3, destination_ip="10.0.0.2"),
        make_anomaly(4, destination_ip="10.0.0.1"),
    ]

    matrix = build_correlation_matrix(anomalies)

    assert [m.target_ip for m in matrix] == ["10.0.0.2", "10.0.0.1"]
