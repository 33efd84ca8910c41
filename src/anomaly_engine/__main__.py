"""
FlowWatch - Anomaly Correlation CLI.

Usage:
    python -m src.anomaly_engine --input anomalies.json
    python -m src.anomaly_engine --generate 200 --seed 7 --now 2024-05-01T12:00:00Z
    python -m src.anomaly_engine --generate 100 --json
"""

import argparse
import json
import sys
from datetime import datetime, timezone

from rich.console import Console

from src.anomaly_engine.alerts import Alarm, AlarmGenerator
from src.anomaly_engine.engine import AnomalyCorrelationEngine
from src.anomaly_engine.feed import load_records
from src.anomaly_engine.generator import AnomalyGenerator
from src.anomaly_engine.schemas import (
    AnomalyRecord,
    CorrelationResult,
    RecordParseError,
    RiskScore,
    parse_instant,
)
from src.anomaly_engine.scoring import score_anomalies
from src.shared.config import settings
from src.shared.logger import get_logger, log_config_status, log_result_table, log_startup_banner
from src.shared.output_writer import OutputWriter

logger = get_logger()
console = Console()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="FlowWatch - Anomaly Correlation & Risk Scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Correlate anomalies exported by a detection pipeline
  python -m src.anomaly_engine --input anomalies.json

  # Deterministic synthetic run
  python -m src.anomaly_engine --generate 200 --seed 7 --now 2024-05-01T12:00:00Z

  # Output as JSON
  python -m src.anomaly_engine --generate 100 --json
        """,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input",
        default=None,
        help="JSON file with a list of anomaly records",
    )
    source.add_argument(
        "--generate",
        type=int,
        default=None,
        metavar="N",
        help=f"Generate N synthetic anomalies (default: {settings.generator_batch_size})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=settings.generator_seed,
        help="Seed for synthetic anomalies",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Reference time (ISO-8601); defaults to the current UTC time",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of highest-risk anomalies to show (default: 10)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        default=settings.save_report,
        help=f"Write JSON and Markdown outputs under {settings.output_dir}/",
    )
    return parser.parse_args(argv)


def load_anomalies(args: argparse.Namespace, now: datetime) -> list[AnomalyRecord]:
    """Load anomalies from file or generate a synthetic batch."""
    if args.input:
        return load_records(args.input)

    count = args.generate if args.generate is not None else settings.generator_batch_size
    generator = AnomalyGenerator(seed=args.seed)
    anomalies = generator.generate_batch(count, now)
    logger.info(f"Generated {len(anomalies)} synthetic anomalies (seed: {args.seed})")
    return anomalies


def display_results(
    result: CorrelationResult,
    scores: list[RiskScore],
    alarms: list[Alarm],
    top: int,
) -> None:
    """Render patterns, matrix and top risks as rich tables."""
    summary = result.summary()
    logger.panel(
        "\n".join([
            f"[highlight]Patterns:[/highlight] {summary['pattern_count']} "
            f"([error]{summary['critical_patterns']} critical[/error])",
            f"[highlight]IP correlations:[/highlight] {summary['matrix_count']}",
            f"[highlight]Average correlation:[/highlight] {summary['average_correlation']:.1f}%",
            f"[highlight]Correlated anomalies:[/highlight] {summary['correlated_anomalies']}",
            f"[highlight]Alarms raised:[/highlight] {len(alarms)}",
        ]),
        title="🔗 Correlation Overview",
        subtitle=result.generated_at.isoformat(),
    )

    log_result_table(
        "Correlation Patterns",
        ["Pattern", "Type", "Severity", "Anomalies", "Score", "Description"],
        [
            [p.name, p.pattern_type.value, p.severity.value, len(p.anomalies),
             f"{p.correlation_score:.2f}", p.description]
            for p in result.patterns
        ],
    )

    log_result_table(
        "IP Correlation Matrix",
        ["Source", "Target", "Shared", "Time", "Similarity", "Strength"],
        [
            [m.source_ip, m.target_ip, m.shared_anomalies, f"{m.time_proximity:.2f}",
             f"{m.pattern_similarity:.2f}", f"{m.correlation_strength:.2f}"]
            for m in result.matrix
        ],
    )

    ranked = sorted(scores, key=lambda s: s.final_score, reverse=True)[:top]
    log_result_table(
        f"Top {len(ranked)} Risk Scores",
        ["Anomaly", "Score", "Level", "Explanation"],
        [[s.anomaly_id, f"{s.final_score:.1f}", s.risk_level.value, s.explanation] for s in ranked],
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        now = parse_instant(args.now) if args.now else datetime.now(timezone.utc)
        anomalies = load_anomalies(args, now)
    except RecordParseError as e:
        logger.error(str(e))
        return 1

    if not anomalies:
        logger.warning("No anomalies to correlate")

    engine = AnomalyCorrelationEngine()
    result = engine.correlate(anomalies, now)
    scores = score_anomalies(anomalies, now)
    alarms = AlarmGenerator().process(anomalies, now)

    if args.json:
        payload = result.to_dict()
        payload["risk_scores"] = [s.to_dict() for s in scores]
        payload["alarms"] = [a.to_dict() for a in alarms]
        console.print_json(json.dumps(payload, default=str))
    else:
        log_startup_banner()
        log_config_status({
            "MATRIX_LIMIT": (settings.matrix_limit, "Maximum IP correlation entries"),
            "ALARM_MIN_RISK_LEVEL": (settings.alarm_min_risk_level, "Lowest risk level that raises an alarm"),
            "GENERATOR_SEED": (args.seed, "Seed for synthetic anomalies"),
            "OUTPUT_DIR": (settings.output_dir, "Report output directory"),
        })
        display_results(result, scores, alarms, args.top)

    if args.save:
        outputs = OutputWriter().finalize(result, scores)
        logger.success(f"Report saved to {outputs['report']}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
