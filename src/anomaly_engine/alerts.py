"""
Alarm Generator - raises alarms for anomalies whose risk warrants attention.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.anomaly_engine.schemas import (
    AnomalyRecord,
    AnomalyStatus,
    RiskLevel,
    Severity,
    ensure_utc,
)
from src.anomaly_engine.scoring import score_anomaly
from src.shared.config import settings
from src.shared.logger import get_logger

logger = get_logger()

# Anomalies in these states never raise alarms
CLOSED_STATUSES = {AnomalyStatus.RESOLVED, AnomalyStatus.FALSE_POSITIVE}


@dataclass
class Alarm:
    """Operator-facing alarm raised from an anomaly."""

    alarm_id: str
    anomaly_id: str
    title: str
    description: str
    severity: Severity
    created_at: datetime
    updated_at: datetime
    status: str = "open"  # open, acknowledged, investigating, resolved
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "alarm_id": self.alarm_id,
            "anomaly_id": self.anomaly_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "tags": self.tags,
        }


class AlarmGenerator:
    """Generates alarms from anomalies."""

    def __init__(self, min_risk_level: RiskLevel | str | None = None, start_index: int = 0):
        """Initialize alarm generator.

        Args:
            min_risk_level: Lowest risk level that raises an alarm (defaults to settings)
            start_index: Last alarm id already issued
        """
        self.min_risk_level = RiskLevel(min_risk_level or settings.alarm_min_risk_level)
        self._index = start_index

    def from_anomaly(self, anomaly: AnomalyRecord) -> Alarm:
        """Build an alarm describing an anomaly."""
        self._index += 1
        return Alarm(
            alarm_id=f"alarm-{self._index}",
            anomaly_id=anomaly.anomaly_id,
            title=f"{anomaly.anomaly_type.value.upper()} Anomaly Detected",
            description=f"{anomaly.description} (Confidence: {anomaly.confidence * 100:.1f}%)",
            severity=anomaly.severity,
            created_at=anomaly.detected_at,
            updated_at=anomaly.detected_at,
            tags=[anomaly.anomaly_type.value, anomaly.severity.value, "auto-detected"],
        )

    def should_alarm(self, anomaly: AnomalyRecord, now: datetime) -> bool:
        """Determine if an anomaly warrants an alarm.

        Args:
            anomaly: Anomaly to evaluate
            now: Reference instant for risk scoring

        Returns:
            True if the anomaly is open and its risk level reaches the minimum
        """
        if anomaly.status in CLOSED_STATUSES:
            return False

        risk = score_anomaly(anomaly, ensure_utc(now))
        return risk.risk_level.rank >= self.min_risk_level.rank

    def process(self, anomalies: list[AnomalyRecord], now: datetime) -> list[Alarm]:
        """Raise alarms for every qualifying anomaly, in input order."""
        alarms = [self.from_anomaly(a) for a in anomalies if self.should_alarm(a, now)]
        logger.info(
            f"Raised {len(alarms)} alarms from {len(anomalies)} anomalies "
            f"(min risk: {self.min_risk_level.value})"
        )
        return alarms
