"""
Anomaly list filtering and sorting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from src.anomaly_engine.schemas import AnomalyRecord, AnomalyStatus, AnomalyType, Severity
from src.anomaly_engine.scoring import score_anomaly

SortKey = Literal["detected_at", "severity", "confidence", "risk"]


@dataclass
class AnomalyFilter:
    """Search and facet filters for an anomaly list.

    Empty facet sets match everything.
    """

    search: str = ""
    severities: set[Severity] = field(default_factory=set)
    types: set[AnomalyType] = field(default_factory=set)
    statuses: set[AnomalyStatus] = field(default_factory=set)

    def matches(self, anomaly: AnomalyRecord) -> bool:
        """Check if an anomaly passes every filter."""
        if self.search:
            needle = self.search.lower()
            haystack = (
                anomaly.source_ip,
                anomaly.destination_ip,
                anomaly.anomaly_type.value,
                anomaly.description,
            )
            if not any(needle in text.lower() for text in haystack):
                return False

        if self.severities and anomaly.severity not in self.severities:
            return False
        if self.types and anomaly.anomaly_type not in self.types:
            return False
        if self.statuses and anomaly.status not in self.statuses:
            return False

        return True

    def apply(self, anomalies: list[AnomalyRecord]) -> list[AnomalyRecord]:
        """Return the matching anomalies in their original order."""
        return [a for a in anomalies if self.matches(a)]


def sort_anomalies(
    anomalies: list[AnomalyRecord],
    sort_by: SortKey = "detected_at",
    descending: bool = True,
    now: datetime | None = None,
) -> list[AnomalyRecord]:
    """Sort anomalies into a new list.

    Args:
        anomalies: Anomalies to sort
        sort_by: detected_at, severity, confidence or risk
        descending: Highest/newest first when True
        now: Reference instant, required when sorting by risk

    Returns:
        Sorted copy of the input
    """
    if sort_by == "detected_at":
        key = lambda a: a.detected_at
    elif sort_by == "severity":
        key = lambda a: a.severity.rank
    elif sort_by == "confidence":
        key = lambda a: a.confidence
    elif sort_by == "risk":
        if now is None:
            raise ValueError("Sorting by risk requires a reference time")
        scores = {id(a): score_anomaly(a, now).final_score for a in anomalies}
        key = lambda a: scores[id(a)]
    else:
        raise ValueError(f"Unknown sort key: {sort_by}")

    return sorted(anomalies, key=key, reverse=descending)


def filter_and_sort(
    anomalies: list[AnomalyRecord],
    anomaly_filter: AnomalyFilter | None = None,
    sort_by: SortKey = "detected_at",
    descending: bool = True,
    now: datetime | None = None,
) -> list[AnomalyRecord]:
    """Filter then sort an anomaly list."""
    filtered = anomaly_filter.apply(anomalies) if anomaly_filter else list(anomalies)
    return sort_anomalies(filtered, sort_by=sort_by, descending=descending, now=now)
