"""
Anomaly Feed - loads anomaly records exported by an upstream detection pipeline.
"""

import json
from pathlib import Path
from typing import Any

from src.anomaly_engine.schemas import AnomalyRecord, RecordParseError
from src.shared.logger import get_logger

logger = get_logger()


def parse_records(data: Any) -> list[AnomalyRecord]:
    """Build records from decoded JSON.

    Accepts either a list of record objects or an object with an
    ``anomalies`` list.
    """
    if isinstance(data, dict):
        data = data.get("anomalies")
    if not isinstance(data, list):
        raise RecordParseError("Expected a list of anomaly records")

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise RecordParseError(f"Record #{index} is not an object")
        try:
            records.append(AnomalyRecord.from_dict(item))
        except RecordParseError as e:
            raise RecordParseError(f"Record #{index}: {e}") from e
    return records


def load_records(path: str | Path) -> list[AnomalyRecord]:
    """Load anomaly records from a JSON file.

    Raises:
        RecordParseError: if the file is unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise RecordParseError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RecordParseError(f"Invalid JSON in {path}: {e}") from e

    records = parse_records(data)
    logger.info(f"Loaded {len(records)} anomalies from {path}")
    return records
