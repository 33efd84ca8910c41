"""
Output Writer Module for FlowWatch.

Handles writing correlation outputs:
- Correlation result and risk scores as JSON
- Human-readable summary report as Markdown (.md)
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from src.anomaly_engine.schemas import CorrelationResult, RiskScore
from src.shared.config import settings
from src.shared.logger import get_logger

logger = get_logger()


class OutputWriter:
    """Handles writing correlation outputs to files."""

    def __init__(self, output_dir: str | Path | None = None, session_id: str | None = None):
        """
        Initialize the output writer.

        Args:
            output_dir: Directory for output files (default from settings)
            session_id: Unique session identifier (timestamp if not provided)
        """
        self.output_dir = Path(output_dir or settings.output_dir)
        self.session_id = session_id or datetime.now().strftime("%Y%m%d_%H%M%S")

        # Create session directory
        self.session_dir = self.output_dir / self.session_id
        self.session_dir.mkdir(parents=True, exist_ok=True)

        # File paths
        self.correlation_path = self.session_dir / "correlation.json"
        self.scores_path = self.session_dir / "risk_scores.json"
        self.report_path = self.session_dir / "report.md"

    def _write_json(self, path: Path, payload: Any) -> str:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        return str(path)

    def write_correlation(self, result: CorrelationResult) -> str:
        """Write the correlation result to JSON and return the file path."""
        return self._write_json(self.correlation_path, result.to_dict())

    def write_scores(self, scores: list[RiskScore]) -> str:
        """Write risk scores to JSON and return the file path."""
        return self._write_json(self.scores_path, [s.to_dict() for s in scores])

    def build_report(self, result: CorrelationResult, scores: list[RiskScore], top_n: int = 10) -> str:
        """
        Render a Markdown summary of a correlation run.

        Args:
            result: Correlation result
            scores: Risk scores for the same anomalies
            top_n: Number of highest-risk anomalies to list

        Returns:
            Markdown report content
        """
        summary = result.summary()
        lines = [
            "# Anomaly Correlation Report",
            "",
            f"**Generated:** {result.generated_at.isoformat()}",
            "",
            "## Overview",
            "",
            f"- Detected patterns: {summary['pattern_count']}",
            f"- IP correlations: {summary['matrix_count']}",
            f"- Critical patterns: {summary['critical_patterns']}",
            f"- Average correlation: {summary['average_correlation']:.1f}%",
            f"- Correlated anomalies: {summary['correlated_anomalies']}",
            "",
            "## Patterns",
            "",
        ]

        if result.patterns:
            lines.append("| Pattern | Type | Severity | Anomalies | Score | Description |")
            lines.append("|---|---|---|---|---|---|")
            for p in result.patterns:
                lines.append(
                    f"| {p.name} | {p.pattern_type.value} | {p.severity.value} | "
                    f"{len(p.anomalies)} | {p.correlation_score:.2f} | {p.description} |"
                )
        else:
            lines.append("*No correlation patterns detected.*")

        lines.extend(["", "## IP Correlation Matrix", ""])
        if result.matrix:
            lines.append("| Source | Target | Shared | Time Proximity | Similarity | Strength |")
            lines.append("|---|---|---|---|---|---|")
            for m in result.matrix:
                lines.append(
                    f"| {m.source_ip} | {m.target_ip} | {m.shared_anomalies} | "
                    f"{m.time_proximity:.2f} | {m.pattern_similarity:.2f} | {m.correlation_strength:.2f} |"
                )
        else:
            lines.append("*No IP pairs with repeated anomalies.*")

        lines.extend(["", "## Highest Risk Anomalies", ""])
        ranked = sorted(scores, key=lambda s: s.final_score, reverse=True)[:top_n]
        if ranked:
            lines.append("| Anomaly | Score | Level | Explanation |")
            lines.append("|---|---|---|---|")
            for s in ranked:
                lines.append(
                    f"| {s.anomaly_id} | {s.final_score:.1f} | {s.risk_level.value} | {s.explanation} |"
                )
        else:
            lines.append("*No anomalies scored.*")

        lines.append("")
        return "\n".join(lines)

    def finalize(self, result: CorrelationResult, scores: list[RiskScore]) -> dict[str, str]:
        """
        Write all outputs for the session.

        Returns:
            Dict of output name -> file path
        """
        correlation_path = self.write_correlation(result)
        scores_path = self.write_scores(scores)

        with open(self.report_path, "w", encoding="utf-8") as f:
            f.write(self.build_report(result, scores))

        logger.info(f"Outputs written to {self.session_dir}")
        return {
            "correlation": correlation_path,
            "risk_scores": scores_path,
            "report": str(self.report_path),
            "session_dir": str(self.session_dir),
        }
