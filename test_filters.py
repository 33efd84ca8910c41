#!/usr/bin/env python
"""
Tests for anomaly list filtering and sorting.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.anomaly_engine.filters import AnomalyFilter, filter_and_sort, sort_anomalies
from src.anomaly_engine.schemas import AnomalyRecord, AnomalyStatus, AnomalyType, Severity

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anomalies() -> list[AnomalyRecord]:
    return [
        AnomalyRecord(
            anomaly_id="a",
            source_ip="192.168.1.10",
            destination_ip="8.8.8.8",
            anomaly_type=AnomalyType.VOLUME,
            severity=Severity.HIGH,
            confidence=0.9,
            detected_at=NOW - timedelta(days=3),
            description="Unusual high traffic volume detected",
        ),
        AnomalyRecord(
            anomaly_id="b",
            source_ip="45.33.12.9",
            destination_ip="10.0.1.4",
            anomaly_type=AnomalyType.GEOGRAPHIC,
            severity=Severity.CRITICAL,
            confidence=0.75,
            detected_at=NOW - timedelta(hours=1),
            status=AnomalyStatus.INVESTIGATING,
            description="Unexpected critical geographic traffic source",
        ),
        AnomalyRecord(
            anomaly_id="c",
            source_ip="10.0.2.8",
            destination_ip="1.1.1.1",
            anomaly_type=AnomalyType.PROTOCOL,
            severity=Severity.LOW,
            confidence=0.8,
            detected_at=NOW - timedelta(hours=2),
            status=AnomalyStatus.RESOLVED,
            description="Suspicious low protocol usage observed",
        ),
    ]


def ids(records: list[AnomalyRecord]) -> list[str]:
    return [r.anomaly_id for r in records]


def test_empty_filter_matches_everything(anomalies):
    assert ids(AnomalyFilter().apply(anomalies)) == ["a", "b", "c"]


@pytest.mark.parametrize(
    "search, expected",
    [
        ("192.168", ["a"]),
        ("10.0.1.4", ["b"]),
        ("PROTOCOL", ["c"]),
        ("traffic", ["a", "b"]),
        ("nothing-like-this", []),
    ],
)
def test_search_is_case_insensitive_across_fields(anomalies, search, expected):
    assert ids(AnomalyFilter(search=search).apply(anomalies)) == expected


def test_facets_combine(anomalies):
    by_severity = AnomalyFilter(severities={Severity.HIGH, Severity.CRITICAL})
    assert ids(by_severity.apply(anomalies)) == ["a", "b"]

    by_status = AnomalyFilter(statuses={AnomalyStatus.ACTIVE, AnomalyStatus.INVESTIGATING})
    assert ids(by_status.apply(anomalies)) == ["a", "b"]

    combined = AnomalyFilter(
        search="traffic",
        types={AnomalyType.GEOGRAPHIC},
        severities={Severity.CRITICAL},
    )
    assert ids(combined.apply(anomalies)) == ["b"]


@pytest.mark.parametrize(
    "sort_by, expected",
    [
        ("detected_at", ["b", "c", "a"]),
        ("severity", ["b", "a", "c"]),
        ("confidence", ["a", "c", "b"]),
    ],
)
def test_sort_descending(anomalies, sort_by, expected):
    assert ids(sort_anomalies(anomalies, sort_by=sort_by)) == expected


def test_sort_ascending(anomalies):
    assert ids(sort_anomalies(anomalies, sort_by="severity", descending=False)) == ["c", "a", "b"]


def test_sort_by_risk(anomalies):
    assert ids(sort_anomalies(anomalies, sort_by="risk", now=NOW)) == ["b", "a", "c"]


def test_sort_by_risk_needs_reference_time(anomalies):
    with pytest.raises(ValueError):
        sort_anomalies(anomalies, sort_by="risk")


def test_unknown_sort_key(anomalies):
    with pytest.raises(ValueError, match="Unknown sort key"):
        sort_anomalies(anomalies, sort_by="source_ip")


def test_sorting_returns_a_new_list(anomalies):
    original = list(anomalies)
    sort_anomalies(anomalies, sort_by="confidence")
    assert anomalies == original


def test_filter_and_sort(anomalies):
    result = filter_and_sort(
        anomalies,
        AnomalyFilter(statuses={AnomalyStatus.ACTIVE, AnomalyStatus.RESOLVED}),
        sort_by="detected_at",
        descending=False,
    )
    assert ids(result) == ["a", "c"]
