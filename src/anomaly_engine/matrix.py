"""
Correlation Matrix - ranks source/target IP pairs by how strongly their anomalies relate.
"""

from src.anomaly_engine.config import MATRIX_LIMIT, MATRIX_MIN_SHARED, MS_PER_DAY
from src.anomaly_engine.schemas import AnomalyRecord, CorrelationMatrixEntry, to_epoch_ms


def _matrix_entry(source_ip: str, target_ip: str, members: list[AnomalyRecord]) -> CorrelationMatrixEntry:
    stamps = [to_epoch_ms(a.timestamp) for a in members]
    spread_ms = max(stamps) - min(stamps)
    # 1 when simultaneous, 0 at a 24h spread or wider
    time_proximity = max(0.0, 1 - spread_ms / MS_PER_DAY)

    distinct_types = len({a.anomaly_type for a in members})
    distinct_severities = len({a.severity for a in members})
    # Not clamped: many mixed types and severities push this below zero
    pattern_similarity = 1 - ((distinct_types - 1) * 0.2 + (distinct_severities - 1) * 0.1)

    strength = (
        (len(members) / 10) * 0.4
        + time_proximity * 0.3
        + pattern_similarity * 0.3
    )

    return CorrelationMatrixEntry(
        source_ip=source_ip,
        target_ip=target_ip,
        shared_anomalies=len(members),
        time_proximity=time_proximity,
        pattern_similarity=pattern_similarity,
        correlation_strength=max(0.0, min(1.0, strength)),
    )


def build_correlation_matrix(
    anomalies: list[AnomalyRecord],
    limit: int = MATRIX_LIMIT,
) -> list[CorrelationMatrixEntry]:
    """Build the ranked IP-pair correlation matrix.

    Args:
        anomalies: Anomalies to group by exact (source, destination) pair
        limit: Maximum number of entries returned

    Returns:
        Entries for pairs with at least two anomalies, strongest first
    """
    pairs: dict[tuple[str, str], list[AnomalyRecord]] = {}
    for anomaly in anomalies:
        pairs.setdefault((anomaly.source_ip, anomaly.destination_ip), []).append(anomaly)

    matrix = [
        _matrix_entry(source_ip, target_ip, members)
        for (source_ip, target_ip), members in pairs.items()
        if len(members) >= MATRIX_MIN_SHARED
    ]

    matrix.sort(key=lambda m: m.correlation_strength, reverse=True)
    return matrix[:limit]
