"""
Anomaly Correlation Engine - main entry point for pattern and matrix correlation.
"""

from collections.abc import Iterable
from datetime import datetime

from src.anomaly_engine.config import MATRIX_LIMIT
from src.anomaly_engine.matrix import build_correlation_matrix
from src.anomaly_engine.patterns import PatternDetector, RegionKey
from src.anomaly_engine.schemas import AnomalyRecord, CorrelationResult, ensure_utc
from src.shared.logger import get_logger

logger = get_logger()


class AnomalyCorrelationEngine:
    """Correlates anomalies into ranked patterns and an IP-pair matrix."""

    def __init__(
        self,
        region_key: RegionKey | None = None,
        matrix_limit: int = MATRIX_LIMIT,
    ):
        """Initialize the correlation engine.

        Args:
            region_key: Geographic grouping function (defaults to /16 subnet)
            matrix_limit: Maximum number of matrix entries to return
        """
        self.pattern_detector = PatternDetector(region_key=region_key)
        self.matrix_limit = matrix_limit

    def correlate(self, anomalies: Iterable[AnomalyRecord], now: datetime) -> CorrelationResult:
        """Correlate a set of anomalies.

        The input is copied, never mutated; every call recomputes from scratch.

        Args:
            anomalies: Anomalies to correlate
            now: Reference instant for recency-based detectors

        Returns:
            CorrelationResult with ranked patterns and matrix entries
        """
        records = list(anomalies)
        now = ensure_utc(now)

        if not records:
            logger.debug("No anomalies to correlate")
            return CorrelationResult(patterns=[], matrix=[], generated_at=now)

        patterns = self.pattern_detector.detect(records, now)
        matrix = build_correlation_matrix(records, limit=self.matrix_limit)

        logger.info(
            f"Correlated {len(records)} anomalies: "
            f"{len(patterns)} patterns, {len(matrix)} IP correlations"
        )
        return CorrelationResult(patterns=patterns, matrix=matrix, generated_at=now)


def correlate(anomalies: Iterable[AnomalyRecord], now: datetime) -> CorrelationResult:
    """Correlate anomalies with the default engine configuration."""
    return AnomalyCorrelationEngine().correlate(anomalies, now)
