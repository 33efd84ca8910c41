"""
Configuration for the Anomaly Correlation Engine.
"""

from src.shared.config import settings


MS_PER_MINUTE = 60 * 1000
MS_PER_DAY = 24 * 60 * 60 * 1000

# Base risk score per severity
BASE_SEVERITY_SCORES = {
    "critical": 90,
    "high": 70,
    "medium": 50,
    "low": 30,
}

# Risk level thresholds on the final score (checked in order)
RISK_LEVEL_THRESHOLDS = [
    ("critical", 85),
    ("high", 65),
    ("medium", 40),
]

# Source prefixes treated as internal for the geographic risk factor
INTERNAL_IP_PREFIXES = ("192.168.", "10.")

# Contextual factors above this value are named in the explanation
EXPLANATION_FACTOR_THRESHOLD = 1.1
EXPLANATION_HIGH_CONFIDENCE = 0.8

# Temporal clustering
TEMPORAL_WINDOW_MINUTES = 10
TEMPORAL_MIN_ANOMALIES = 3

# Coordinated attack (same source, many targets)
COORDINATED_MIN_ANOMALIES = 4
COORDINATED_MIN_TARGETS = 3

# Volumetric surge
VOLUMETRIC_MIN_TOTAL = 5
VOLUMETRIC_RECENT_MINUTES = 30
VOLUMETRIC_MIN_RECENT = 3

# Geographic clustering
GEOGRAPHIC_MIN_ANOMALIES = 6

# Correlation matrix
MATRIX_MIN_SHARED = 2
MATRIX_LIMIT = settings.matrix_limit
