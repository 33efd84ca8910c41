#!/usr/bin/env python
"""
Tests for loading anomaly records from JSON exports.
"""

import json
from datetime import datetime, timezone

import pytest

from src.anomaly_engine.feed import load_records, parse_records
from src.anomaly_engine.schemas import (
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    RecordParseError,
    Severity,
    parse_instant,
)

CAMEL_RECORD = {
    "id": "anomaly-12",
    "flowId": "flow-12",
    "sourceIp": "192.168.1.44",
    "destinationIp": "8.8.8.8",
    "type": "volume",
    "severity": "critical",
    "confidence": 0.91,
    "detectedAt": "2024-05-01T11:55:00.000Z",
    "status": "investigating",
    "description": "Unusual critical traffic volume detected",
    "metrics": {"actual_value": 5400000, "threshold": 5000},
}


def test_camel_case_record():
    record = AnomalyRecord.from_dict(CAMEL_RECORD)

    assert record.anomaly_id == "anomaly-12"
    assert record.flow_id == "flow-12"
    assert record.source_ip == "192.168.1.44"
    assert record.anomaly_type == AnomalyType.VOLUME
    assert record.severity == Severity.CRITICAL
    assert record.status == AnomalyStatus.INVESTIGATING
    assert record.detected_at == datetime(2024, 5, 1, 11, 55, tzinfo=timezone.utc)
    assert record.timestamp == record.detected_at
    assert record.metrics["threshold"] == 5000


def test_snake_case_record_with_epoch_millis():
    record = AnomalyRecord.from_dict({
        "anomaly_id": "x",
        "source_ip": "10.0.0.1",
        "destination_ip": "10.0.0.2",
        "anomaly_type": "pattern",
        "severity": "low",
        "confidence": "0.5",
        "detected_at": 1714564800000,
        "timestamp": "2024-05-01T11:50:00+00:00",
    })

    assert record.detected_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert record.timestamp == datetime(2024, 5, 1, 11, 50, tzinfo=timezone.utc)
    assert record.confidence == 0.5
    assert record.status == AnomalyStatus.ACTIVE


def test_missing_fields_are_listed():
    with pytest.raises(RecordParseError, match="source_ip, severity"):
        AnomalyRecord.from_dict({
            "id": "x",
            "destinationIp": "10.0.0.2",
            "type": "volume",
            "confidence": 0.5,
            "detectedAt": "2024-05-01T12:00:00Z",
        })


@pytest.mark.parametrize("field, value", [
    ("type", "ddos"),
    ("severity", "urgent"),
    ("status", "closed"),
    ("confidence", "very"),
    ("detectedAt", "yesterday"),
])
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(RecordParseError):
        AnomalyRecord.from_dict({**CAMEL_RECORD, field: value})


@pytest.mark.parametrize("value", [10**20, -(10**20), float("nan")])
def test_out_of_range_epoch_millis_are_rejected(value):
    with pytest.raises(RecordParseError, match="Record #0: Timestamp out of range"):
        parse_records([{**CAMEL_RECORD, "detectedAt": value}])


@pytest.mark.parametrize("metrics", [[1, 2], "high", 42])
def test_non_object_metrics_are_rejected(metrics):
    with pytest.raises(RecordParseError, match="Record #0: Invalid metrics"):
        parse_records([{**CAMEL_RECORD, "metrics": metrics}])


def test_record_parse_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_instant(["not", "a", "time"])


def test_parse_records_accepts_wrapped_list():
    records = parse_records({"anomalies": [CAMEL_RECORD]})
    assert [r.anomaly_id for r in records] == ["anomaly-12"]


def test_parse_records_reports_record_index():
    with pytest.raises(RecordParseError, match=r"Record #1: .*severity"):
        parse_records([CAMEL_RECORD, {**CAMEL_RECORD, "severity": "urgent"}])

    with pytest.raises(RecordParseError, match="Record #0 is not an object"):
        parse_records(["anomaly-1"])

    with pytest.raises(RecordParseError):
        parse_records({"items": []})


def test_load_records_from_file(tmp_path):
    path = tmp_path / "anomalies.json"
    path.write_text(json.dumps([CAMEL_RECORD, {**CAMEL_RECORD, "id": "anomaly-13"}]), encoding="utf-8")

    records = load_records(path)

    assert [r.anomaly_id for r in records] == ["anomaly-12", "anomaly-13"]


def test_load_records_wraps_io_and_json_errors(tmp_path):
    with pytest.raises(RecordParseError, match="Cannot read"):
        load_records(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    with pytest.raises(RecordParseError, match="Invalid JSON"):
        load_records(broken)


def test_record_round_trips_through_dict():
    record = AnomalyRecord.from_dict(CAMEL_RECORD)
    assert AnomalyRecord.from_dict(record.to_dict()) == record
