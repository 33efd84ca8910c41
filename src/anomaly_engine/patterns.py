"""
Pattern Detection - groups anomalies into temporal, behavioral, volumetric and spatial patterns.
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from src.anomaly_engine.config import (
    COORDINATED_MIN_ANOMALIES,
    COORDINATED_MIN_TARGETS,
    GEOGRAPHIC_MIN_ANOMALIES,
    MS_PER_MINUTE,
    TEMPORAL_MIN_ANOMALIES,
    TEMPORAL_WINDOW_MINUTES,
    VOLUMETRIC_MIN_RECENT,
    VOLUMETRIC_MIN_TOTAL,
    VOLUMETRIC_RECENT_MINUTES,
)
from src.anomaly_engine.schemas import (
    AnomalyRecord,
    AnomalyType,
    CorrelationPattern,
    PatternType,
    Severity,
    ensure_utc,
    to_epoch_ms,
)
from src.shared.logger import get_logger

logger = get_logger()

RegionKey = Callable[[AnomalyRecord], str]


def subnet_key(anomaly: AnomalyRecord) -> str:
    """Group key from the first two octets of the source address.

    Stand-in for real geolocation. Addresses with fewer than two
    dot-separated segments are used whole.
    """
    parts = anomaly.source_ip.split(".")
    if len(parts) < 2:
        return anomaly.source_ip
    return ".".join(parts[:2])


def _mean_confidence(anomalies: list[AnomalyRecord]) -> float:
    return sum(a.confidence for a in anomalies) / len(anomalies)


def _span_ms(anomalies: list[AnomalyRecord]) -> int:
    stamps = [to_epoch_ms(a.timestamp) for a in anomalies]
    return max(stamps) - min(stamps)


def _group_by(anomalies: list[AnomalyRecord], key: Callable[[AnomalyRecord], str]) -> dict[str, list[AnomalyRecord]]:
    groups: dict[str, list[AnomalyRecord]] = {}
    for anomaly in anomalies:
        groups.setdefault(key(anomaly), []).append(anomaly)
    return groups


class PatternDetector:
    """Detects correlation patterns across a set of anomalies.

    Each detector only reads its input, so they can run in any order.
    """

    def __init__(self, region_key: RegionKey | None = None):
        """Initialize pattern detector.

        Args:
            region_key: Maps an anomaly to a geographic group key
                (defaults to the /16 subnet of the source address)
        """
        self.region_key = region_key or subnet_key

    def detect(self, anomalies: list[AnomalyRecord], now: datetime) -> list[CorrelationPattern]:
        """Run all detectors and rank the patterns.

        Args:
            anomalies: Anomalies to correlate (not modified)
            now: Reference instant for the volumetric recency window

        Returns:
            Patterns sorted by correlation score, highest first
        """
        patterns: list[CorrelationPattern] = []
        patterns.extend(self.detect_temporal_clusters(anomalies))
        patterns.extend(self.detect_coordinated_attacks(anomalies))
        patterns.extend(self.detect_volumetric_surge(anomalies, now))
        patterns.extend(self.detect_geographic_clusters(anomalies))

        patterns.sort(key=lambda p: p.correlation_score, reverse=True)
        logger.debug(f"Detected {len(patterns)} patterns from {len(anomalies)} anomalies")
        return patterns

    def detect_temporal_clusters(self, anomalies: list[AnomalyRecord]) -> list[CorrelationPattern]:
        """Find bursts of anomalies inside fixed 10-minute windows."""
        window_ms = TEMPORAL_WINDOW_MINUTES * MS_PER_MINUTE
        buckets = _group_by(anomalies, lambda a: str(to_epoch_ms(a.timestamp) // window_ms))

        patterns = []
        for bucket_id, members in buckets.items():
            if len(members) < TEMPORAL_MIN_ANOMALIES:
                continue

            if any(a.severity == Severity.CRITICAL for a in members):
                severity = Severity.CRITICAL
            elif len(members) > 5:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM

            patterns.append(CorrelationPattern(
                pattern_id=f"temporal-{bucket_id}",
                name="Temporal Clustering",
                description=f"{len(members)} anomalies detected within a {TEMPORAL_WINDOW_MINUTES}-minute window",
                pattern_type=PatternType.TEMPORAL,
                anomalies=members,
                confidence=_mean_confidence(members),
                severity=severity,
                correlation_score=min(0.95, 0.6 + len(members) * 0.05),
                time_window_minutes=TEMPORAL_WINDOW_MINUTES,
            ))

        return patterns

    def detect_coordinated_attacks(self, anomalies: list[AnomalyRecord]) -> list[CorrelationPattern]:
        """Find single sources hitting many distinct targets."""
        patterns = []
        for source_ip, members in _group_by(anomalies, lambda a: a.source_ip).items():
            if len(members) < COORDINATED_MIN_ANOMALIES:
                continue

            unique_targets = len({a.destination_ip for a in members})
            if unique_targets < COORDINATED_MIN_TARGETS:
                continue

            patterns.append(CorrelationPattern(
                pattern_id=f"coordinated-{source_ip}",
                name="Coordinated Attack",
                description=f"{source_ip} targeting {unique_targets} different hosts",
                pattern_type=PatternType.BEHAVIORAL,
                anomalies=members,
                confidence=_mean_confidence(members),
                severity=Severity.CRITICAL if unique_targets > 5 else Severity.HIGH,
                correlation_score=min(0.9, 0.5 + unique_targets * 0.05),
                time_span_ms=_span_ms(members),
            ))

        return patterns

    def detect_volumetric_surge(self, anomalies: list[AnomalyRecord], now: datetime) -> list[CorrelationPattern]:
        """Find a surge of volume anomalies in the last 30 minutes."""
        volumetric = [a for a in anomalies if a.anomaly_type == AnomalyType.VOLUME]
        if len(volumetric) < VOLUMETRIC_MIN_TOTAL:
            return []

        window = timedelta(minutes=VOLUMETRIC_RECENT_MINUTES)
        now = ensure_utc(now)
        recent = [a for a in volumetric if now - a.detected_at < window]
        if len(recent) < VOLUMETRIC_MIN_RECENT:
            return []

        return [CorrelationPattern(
            pattern_id="volumetric-surge",
            name="Volumetric Attack Pattern",
            description=f"{len(recent)} volume anomalies detected in the last {VOLUMETRIC_RECENT_MINUTES} minutes",
            pattern_type=PatternType.VOLUMETRIC,
            anomalies=recent,
            confidence=_mean_confidence(recent),
            severity=Severity.CRITICAL if len(recent) > 8 else Severity.HIGH,
            correlation_score=min(0.85, 0.4 + len(recent) * 0.04),
            time_window_minutes=VOLUMETRIC_RECENT_MINUTES,
        )]

    def detect_geographic_clusters(self, anomalies: list[AnomalyRecord]) -> list[CorrelationPattern]:
        """Find many anomalies originating from the same region."""
        patterns = []
        for region, members in _group_by(anomalies, self.region_key).items():
            if len(members) < GEOGRAPHIC_MIN_ANOMALIES:
                continue

            origin = f"{region}.x.x subnet" if self.region_key is subnet_key else region
            patterns.append(CorrelationPattern(
                pattern_id=f"geographic-{region}",
                name="Geographic Clustering",
                description=f"{len(members)} anomalies from {origin}",
                pattern_type=PatternType.SPATIAL,
                anomalies=members,
                confidence=_mean_confidence(members),
                severity=Severity.HIGH if len(members) > 10 else Severity.MEDIUM,
                correlation_score=min(0.8, 0.3 + len(members) * 0.03),
                time_span_ms=_span_ms(members),
            ))

        return patterns
