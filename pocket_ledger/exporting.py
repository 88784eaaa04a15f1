"""Write report bundles to disk as JSON or CSV."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .config import REPORTS_DIR
from .exceptions import InvalidArgumentError
from .models import Report

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, pd.Timestamp)):
        return value.isoformat()
    if isinstance(value, pd.Period):
        return str(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, pd.DataFrame):
        return value.to_dict("records")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def report_filename(report: Report, fmt: str) -> str:
    stamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
    return f"{report.type}_report_{stamp}.{fmt}"


def report_to_frame(report: Report) -> pd.DataFrame:
    """Flatten a report into one table with a ``section`` column.

    Summary values become ``key``/``value`` rows; every list in the
    report data becomes a block of rows with its own columns.
    """
    frames: List[pd.DataFrame] = []
    summary = pd.json_normalize(report.summary, sep=".") if report.summary else pd.DataFrame()
    if not summary.empty:
        flat = summary.iloc[0].to_dict()
        frames.append(pd.DataFrame({"section": "summary", "key": list(flat), "value": list(flat.values())}))

    def collect(prefix: str, value: Any) -> None:
        if isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
            block = pd.json_normalize(value, sep=".")
            block.insert(0, "section", prefix)
            frames.append(block)
        elif isinstance(value, dict):
            for key, inner in value.items():
                collect(f"{prefix}.{key}" if prefix else key, inner)

    collect("", report.data)
    if not frames:
        return pd.DataFrame(columns=["section"])
    return pd.concat(frames, ignore_index=True, sort=False)


def export_report(report: Report, fmt: str = "json", directory: Optional[Path] = None) -> Path:
    """Write ``report`` under ``directory`` (default: the reports dir) and return the path."""
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise InvalidArgumentError(f"Unsupported export format: {fmt}")
    target_dir = Path(directory) if directory else REPORTS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / report_filename(report, fmt)

    if fmt == "json":
        with target.open("w", encoding="utf-8") as handle:
            json.dump(report.to_dict(), handle, indent=2, default=_json_default, ensure_ascii=False)
    else:
        report_to_frame(report).to_csv(target, index=False)
    logger.info("Exported %s report to %s", report.type, target)
    return target


def load_report(path: Path) -> Dict[str, Any]:
    """Read back an exported JSON report; an unreadable file yields ``{}``."""
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not read report %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}
