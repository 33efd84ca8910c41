"""
FlowWatch - Anomaly Correlation and Risk Scoring for network flow anomalies.

This package contains:
- anomaly_engine: risk scoring, pattern detection and IP correlation matrix
- shared: Shared utilities and configuration
"""

__version__ = "0.1.0"
