"""
Anomaly, risk score and correlation schemas for the Anomaly Correlation Engine.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


class RecordParseError(ValueError):
    """Raised when an anomaly record cannot be built from external data."""


class AnomalyType(str, Enum):
    """Kinds of flow anomaly reported by the detection feed."""

    VOLUME = "volume"
    PATTERN = "pattern"
    PROTOCOL = "protocol"
    GEOGRAPHIC = "geographic"
    TEMPORAL = "temporal"


class Severity(str, Enum):
    """Anomaly severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal rank, critical highest."""
        return _SEVERITY_RANK[self.value]


_SEVERITY_RANK = {"low": 1, "medium": 2, "high": 3, "critical": 4}


class AnomalyStatus(str, Enum):
    """Triage status of an anomaly."""

    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class PatternType(str, Enum):
    """Types of correlation patterns."""

    TEMPORAL = "temporal"
    SPATIAL = "spatial"
    BEHAVIORAL = "behavioral"
    VOLUMETRIC = "volumetric"


class RiskLevel(str, Enum):
    """Qualitative risk level derived from a final risk score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal rank, critical highest."""
        return _SEVERITY_RANK[self.value]


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware datetimes are returned as-is."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Milliseconds since the Unix epoch (naive datetimes read as UTC)."""
    return (ensure_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def parse_instant(value: Any) -> datetime:
    """Parse an ISO-8601 string, epoch milliseconds or datetime into an aware datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise RecordParseError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, str):
        try:
            # Python < 3.11 rejects the trailing "Z" that JS toISOString() emits
            return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError as e:
            raise RecordParseError(f"Invalid timestamp: {value!r}") from e
    raise RecordParseError(f"Unsupported timestamp value: {value!r}")


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as e:
        raise RecordParseError(f"Invalid {field_name}: {value!r}") from e


@dataclass(frozen=True)
class AnomalyRecord:
    """One detected deviation from expected network behavior.

    Records are immutable; the engine only ever reads them. ``timestamp`` is
    the instant used for grouping and falls back to ``detected_at``.
    """

    anomaly_id: str
    source_ip: str
    destination_ip: str
    anomaly_type: AnomalyType
    severity: Severity
    confidence: float  # nominally 0-1, not enforced
    detected_at: datetime
    status: AnomalyStatus = AnomalyStatus.ACTIVE
    description: str = ""
    timestamp: datetime | None = None
    flow_id: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "detected_at", ensure_utc(self.detected_at))
        if self.timestamp is None:
            object.__setattr__(self, "timestamp", self.detected_at)
        else:
            object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnomalyRecord":
        """Build a record from snake_case or camelCase dictionary data."""
        anomaly_id = _pick(data, "anomaly_id", "id")
        source_ip = _pick(data, "source_ip", "sourceIp")
        destination_ip = _pick(data, "destination_ip", "destinationIp")
        anomaly_type = _pick(data, "anomaly_type", "type")
        severity = _pick(data, "severity")
        confidence = _pick(data, "confidence")
        detected_at = _pick(data, "detected_at", "detectedAt", "timestamp")

        required = {
            "id": anomaly_id,
            "source_ip": source_ip,
            "destination_ip": destination_ip,
            "type": anomaly_type,
            "severity": severity,
            "confidence": confidence,
            "detected_at": detected_at,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise RecordParseError(f"Anomaly record missing fields: {', '.join(missing)}")

        try:
            confidence = float(confidence)
        except (TypeError, ValueError) as e:
            raise RecordParseError(f"Invalid confidence: {confidence!r}") from e

        timestamp = _pick(data, "timestamp")

        metrics = _pick(data, "metrics", default={})
        if not isinstance(metrics, dict):
            raise RecordParseError(f"Invalid metrics: expected an object, got {type(metrics).__name__}")

        return cls(
            anomaly_id=str(anomaly_id),
            source_ip=str(source_ip),
            destination_ip=str(destination_ip),
            anomaly_type=_enum(AnomalyType, anomaly_type, "type"),
            severity=_enum(Severity, severity, "severity"),
            confidence=confidence,
            detected_at=parse_instant(detected_at),
            status=_enum(AnomalyStatus, _pick(data, "status", default="active"), "status"),
            description=str(_pick(data, "description", default="")),
            timestamp=parse_instant(timestamp) if timestamp is not None else None,
            flow_id=_pick(data, "flow_id", "flowId"),
            metrics=dict(metrics),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "anomaly_id": self.anomaly_id,
            "flow_id": self.flow_id,
            "source_ip": self.source_ip,
            "destination_ip": self.destination_ip,
            "anomaly_type": self.anomaly_type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "detected_at": self.detected_at.isoformat(),
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "description": self.description,
            "metrics": self.metrics,
        }


@dataclass
class ContextualFactors:
    """Multipliers applied on top of the severity base score."""

    volume_impact: float
    temporal_urgency: float
    geographic_risk: float
    behavioral_deviation: float

    @property
    def combined(self) -> float:
        """Product of all four factors."""
        return (
            self.volume_impact
            * self.temporal_urgency
            * self.geographic_risk
            * self.behavioral_deviation
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "volume_impact": self.volume_impact,
            "temporal_urgency": self.temporal_urgency,
            "geographic_risk": self.geographic_risk,
            "behavioral_deviation": self.behavioral_deviation,
        }


@dataclass
class RiskScore:
    """Risk assessment of a single anomaly."""

    anomaly_id: str
    base_score: int
    confidence_multiplier: float
    contextual_factors: ContextualFactors
    final_score: float  # 0-100
    risk_level: RiskLevel
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "anomaly_id": self.anomaly_id,
            "base_score": self.base_score,
            "confidence_multiplier": self.confidence_multiplier,
            "contextual_factors": self.contextual_factors.to_dict(),
            "final_score": self.final_score,
            "risk_level": self.risk_level.value,
            "explanation": self.explanation,
        }


@dataclass
class CorrelationPattern:
    """Group of anomalies sharing a temporal, spatial, behavioral or volumetric trait.

    Exactly one of ``time_window_minutes`` (temporal, volumetric) and
    ``time_span_ms`` (behavioral, spatial) is set.
    """

    pattern_id: str
    name: str
    description: str
    pattern_type: PatternType
    anomalies: list[AnomalyRecord]
    confidence: float  # mean member confidence
    severity: Severity
    correlation_score: float
    time_window_minutes: int | None = None
    time_span_ms: int | None = None

    @property
    def anomaly_ids(self) -> list[str]:
        return [a.anomaly_id for a in self.anomalies]

    def affected_ips(self) -> set[str]:
        """Unique source and destination addresses across members."""
        ips: set[str] = set()
        for anomaly in self.anomalies:
            ips.add(anomaly.source_ip)
            ips.add(anomaly.destination_ip)
        return ips

    def anomaly_types(self) -> set[AnomalyType]:
        """Unique anomaly types across members."""
        return {a.anomaly_type for a in self.anomalies}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "pattern_id": self.pattern_id,
            "name": self.name,
            "description": self.description,
            "pattern_type": self.pattern_type.value,
            "anomaly_ids": self.anomaly_ids,
            "confidence": self.confidence,
            "severity": self.severity.value,
            "correlation_score": self.correlation_score,
            "time_window_minutes": self.time_window_minutes,
            "time_span_ms": self.time_span_ms,
        }


@dataclass
class CorrelationMatrixEntry:
    """Relationship between an ordered (source, target) IP pair."""

    source_ip: str
    target_ip: str
    shared_anomalies: int
    time_proximity: float  # 0-1
    pattern_similarity: float  # <= 1, may be negative
    correlation_strength: float  # 0-1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "source_ip": self.source_ip,
            "target_ip": self.target_ip,
            "shared_anomalies": self.shared_anomalies,
            "time_proximity": self.time_proximity,
            "pattern_similarity": self.pattern_similarity,
            "correlation_strength": self.correlation_strength,
        }


@dataclass
class CorrelationResult:
    """Patterns and matrix computed from one set of anomalies."""

    patterns: list[CorrelationPattern]
    matrix: list[CorrelationMatrixEntry]
    generated_at: datetime

    def summary(self) -> dict[str, Any]:
        """Headline numbers for the correlation overview."""
        pattern_count = len(self.patterns)
        average = (
            sum(p.correlation_score for p in self.patterns) / pattern_count * 100
            if pattern_count
            else 0.0
        )
        correlated = {a.anomaly_id for p in self.patterns for a in p.anomalies}
        return {
            "pattern_count": pattern_count,
            "matrix_count": len(self.matrix),
            "critical_patterns": sum(1 for p in self.patterns if p.severity == Severity.CRITICAL),
            "average_correlation": average,
            "correlated_anomalies": len(correlated),
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "summary": self.summary(),
            "patterns": [p.to_dict() for p in self.patterns],
            "matrix": [m.to_dict() for m in self.matrix],
        }
