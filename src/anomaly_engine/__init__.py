"""
Anomaly Correlation Engine for FlowWatch.

This module implements per-anomaly risk scoring, correlation pattern
detection and IP-pair correlation matrices over network flow anomalies.
"""

from src.anomaly_engine.engine import AnomalyCorrelationEngine, correlate
from src.anomaly_engine.scoring import score_anomaly

__version__ = "0.1.0"

__all__ = [
    "AnomalyCorrelationEngine",
    "correlate",
    "score_anomaly",
]
