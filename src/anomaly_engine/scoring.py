"""
Risk Scoring - severity-weighted, confidence-weighted, context-adjusted risk scores.
"""

from datetime import datetime

from src.anomaly_engine.config import (
    BASE_SEVERITY_SCORES,
    EXPLANATION_FACTOR_THRESHOLD,
    EXPLANATION_HIGH_CONFIDENCE,
    INTERNAL_IP_PREFIXES,
    MS_PER_DAY,
    RISK_LEVEL_THRESHOLDS,
)
from src.anomaly_engine.schemas import (
    AnomalyRecord,
    AnomalyType,
    ContextualFactors,
    RiskLevel,
    RiskScore,
    ensure_utc,
)


def risk_level_for(final_score: float) -> RiskLevel:
    """Map a final score onto its qualitative risk level."""
    for level, threshold in RISK_LEVEL_THRESHOLDS:
        if final_score >= threshold:
            return RiskLevel(level)
    return RiskLevel.LOW


def contextual_factors(anomaly: AnomalyRecord, now: datetime) -> ContextualFactors:
    """Compute the four contextual multipliers for an anomaly.

    Args:
        anomaly: Anomaly to assess
        now: Reference instant for recency weighting

    Returns:
        ContextualFactors, each at least 0.8
    """
    if anomaly.anomaly_type == AnomalyType.VOLUME:
        volume_impact = 1.3
    elif anomaly.anomaly_type == AnomalyType.PATTERN:
        volume_impact = 1.1
    else:
        volume_impact = 1.0

    # Saturates at 0.8 after ~9.6 hours; not capped for future-dated records
    age_ms = (ensure_utc(now) - anomaly.detected_at).total_seconds() * 1000
    temporal_urgency = max(0.8, 1.2 - age_ms / MS_PER_DAY)

    # Binary internal/external heuristic, no geolocation lookup
    geographic_risk = 0.9 if anomaly.source_ip.startswith(INTERNAL_IP_PREFIXES) else 1.2

    if anomaly.anomaly_type == AnomalyType.PATTERN:
        behavioral_deviation = 1.2
    elif anomaly.anomaly_type == AnomalyType.GEOGRAPHIC:
        behavioral_deviation = 1.1
    else:
        behavioral_deviation = 1.0

    return ContextualFactors(
        volume_impact=volume_impact,
        temporal_urgency=temporal_urgency,
        geographic_risk=geographic_risk,
        behavioral_deviation=behavioral_deviation,
    )


def _explain(anomaly: AnomalyRecord, factors: ContextualFactors) -> str:
    reasons = []
    if factors.volume_impact > EXPLANATION_FACTOR_THRESHOLD:
        reasons.append("high volume impact")
    if factors.temporal_urgency > EXPLANATION_FACTOR_THRESHOLD:
        reasons.append("recent occurrence")
    if factors.geographic_risk > EXPLANATION_FACTOR_THRESHOLD:
        reasons.append("external source")
    if factors.behavioral_deviation > EXPLANATION_FACTOR_THRESHOLD:
        reasons.append("behavioral anomaly")
    if anomaly.confidence > EXPLANATION_HIGH_CONFIDENCE:
        reasons.append("high confidence")

    if reasons:
        return f"Elevated due to: {', '.join(reasons)}"
    return "Standard risk assessment"


def score_anomaly(anomaly: AnomalyRecord, now: datetime) -> RiskScore:
    """Score a single anomaly.

    Pure function: the same anomaly and ``now`` always yield the same score.
    Out-of-range confidence values are used as-is.

    Args:
        anomaly: Anomaly to score
        now: Reference instant (never read from the system clock here)

    Returns:
        RiskScore with a final score capped at 100
    """
    base_score = BASE_SEVERITY_SCORES.get(anomaly.severity.value, 30)
    confidence_multiplier = 0.8 + anomaly.confidence * 0.4
    factors = contextual_factors(anomaly, now)

    final_score = min(100.0, base_score * confidence_multiplier * factors.combined)

    return RiskScore(
        anomaly_id=anomaly.anomaly_id,
        base_score=base_score,
        confidence_multiplier=confidence_multiplier,
        contextual_factors=factors,
        final_score=final_score,
        risk_level=risk_level_for(final_score),
        explanation=_explain(anomaly, factors),
    )


def score_anomalies(anomalies: list[AnomalyRecord], now: datetime) -> list[RiskScore]:
    """Score every anomaly against the same reference instant."""
    return [score_anomaly(a, now) for a in anomalies]
