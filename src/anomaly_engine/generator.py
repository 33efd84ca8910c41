"""
Synthetic Anomaly Feed - seeded generator of realistic flow anomalies.

Stands in for an upstream detection pipeline in demos and tests. All state
(random source and id sequence) lives on the generator instance.
"""

import random
from datetime import datetime, timedelta

from src.anomaly_engine.schemas import (
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    Severity,
    ensure_utc,
)

# Predefined IP ranges for realistic network simulation
INTERNAL_SUBNETS = [
    "192.168.1.",
    "192.168.2.",
    "10.0.1.",
    "10.0.2.",
    "172.16.1.",
]

EXTERNAL_IPS = [
    "8.8.8.8",
    "1.1.1.1",
    "208.67.222.222",
    "185.228.168.9",
    "76.76.19.19",
]

DESCRIPTION_TEMPLATES = {
    AnomalyType.VOLUME: "Unusual {severity} traffic volume detected",
    AnomalyType.PATTERN: "Abnormal {severity} communication pattern identified",
    AnomalyType.PROTOCOL: "Suspicious {severity} protocol usage observed",
    AnomalyType.GEOGRAPHIC: "Unexpected {severity} geographic traffic source",
    AnomalyType.TEMPORAL: "Anomalous {severity} timing pattern detected",
}


def describe(anomaly_type: AnomalyType, severity: Severity) -> str:
    """Standard description text for an anomaly type and severity."""
    template = DESCRIPTION_TEMPLATES.get(anomaly_type)
    if template is None:
        return "Unknown anomaly type"
    return template.format(severity=severity.value)


class AnomalyGenerator:
    """Generates synthetic anomalies from an explicit seed and id sequence."""

    def __init__(self, seed: int | None = None, start_index: int = 0):
        """Initialize the generator.

        Args:
            seed: Seed for the private random source (None = nondeterministic)
            start_index: Last id already issued; the next anomaly gets start_index + 1
        """
        self._random = random.Random(seed)
        self._index = start_index

    def _next_id(self) -> str:
        self._index += 1
        return f"anomaly-{self._index}"

    def internal_ip(self) -> str:
        return f"{self._random.choice(INTERNAL_SUBNETS)}{self._random.randint(1, 254)}"

    def external_ip(self) -> str:
        if self._random.random() > 0.5:
            return self._random.choice(EXTERNAL_IPS)
        return ".".join(str(self._random.randint(0, 255)) for _ in range(4))

    def generate(
        self,
        detected_at: datetime,
        anomaly_type: AnomalyType | None = None,
        severity: Severity | None = None,
        source_ip: str | None = None,
        destination_ip: str | None = None,
    ) -> AnomalyRecord:
        """Generate one anomaly; unspecified attributes are drawn at random."""
        anomaly_type = anomaly_type or self._random.choice(list(AnomalyType))
        severity = severity or self._random.choice(list(Severity))
        anomaly_id = self._next_id()

        is_volume = anomaly_type == AnomalyType.VOLUME
        actual = self._random.randint(1_000_000, 10_999_999) if is_volume else self._random.random() * 100

        return AnomalyRecord(
            anomaly_id=anomaly_id,
            flow_id=f"flow-{self._index}",
            source_ip=source_ip or self.internal_ip(),
            destination_ip=destination_ip or self.external_ip(),
            anomaly_type=anomaly_type,
            severity=severity,
            confidence=0.7 + self._random.random() * 0.3,
            detected_at=detected_at,
            status=AnomalyStatus.ACTIVE,
            description=describe(anomaly_type, severity),
            metrics={
                "expected_value": 1000 if is_volume else None,
                "actual_value": actual,
                "threshold": 5000 if is_volume else 0.8,
                "deviation": self._random.random() * 10,
            },
        )

    def generate_batch(
        self,
        count: int,
        now: datetime,
        spread: timedelta = timedelta(hours=24),
    ) -> list[AnomalyRecord]:
        """Generate anomalies detected at random instants within ``spread`` before ``now``."""
        now = ensure_utc(now)
        spread_seconds = spread.total_seconds()
        return [
            self.generate(now - timedelta(seconds=self._random.random() * spread_seconds))
            for _ in range(count)
        ]

    def coordinated_attack(
        self,
        source_ip: str,
        target_count: int,
        now: datetime,
        per_target: int = 1,
    ) -> list[AnomalyRecord]:
        """One external source probing ``target_count`` internal hosts over the last hour."""
        now = ensure_utc(now)
        anomalies = []
        for _ in range(target_count):
            target = self.internal_ip()
            for _ in range(per_target):
                offset = timedelta(seconds=self._random.random() * 3600)
                anomalies.append(self.generate(
                    now - offset,
                    anomaly_type=AnomalyType.PATTERN,
                    source_ip=source_ip,
                    destination_ip=target,
                ))
        return anomalies

    def volumetric_surge(self, count: int, now: datetime) -> list[AnomalyRecord]:
        """Volume anomalies detected within the last 20 minutes."""
        now = ensure_utc(now)
        return [
            self.generate(
                now - timedelta(seconds=self._random.random() * 1200),
                anomaly_type=AnomalyType.VOLUME,
            )
            for _ in range(count)
        ]

    def temporal_burst(self, count: int, start: datetime) -> list[AnomalyRecord]:
        """Anomalies packed into the minute after ``start``."""
        start = ensure_utc(start)
        return [
            self.generate(start + timedelta(seconds=self._random.random() * 60))
            for _ in range(count)
        ]
