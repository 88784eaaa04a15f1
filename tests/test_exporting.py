import json
from datetime import date, datetime

import numpy as np
import pytest

from pocket_ledger.exceptions import InvalidArgumentError
from pocket_ledger.exporting import export_report, load_report, report_filename, report_to_frame
from pocket_ledger.models import Report

GENERATED = datetime(2024, 3, 15, 12, 0, 5)


def sample_report():
    return Report(
        type="evolution",
        period={"start": date(2024, 1, 1), "end": date(2024, 3, 15), "months_back": 3},
        data={
            "monthly_data": [
                {"month": "2024-01", "income": 3000.0, "expense": 1200.0},
                {"month": "2024-02", "income": 3000.0, "expense": 1500.0},
            ],
            "trend": {
                "type": "stable",
                "accumulated_data": [{"month": "2024-01", "accumulated": 1800.0}],
            },
        },
        summary={"months_with_data": np.int64(2), "best_month": {"month": "2024-01", "balance": 1800.0}},
        user_id="u1",
        generated_at=GENERATED,
    )


def test_report_filename():
    assert report_filename(sample_report(), "csv") == "evolution_report_20240315_120005.csv"


def test_report_to_frame_sections():
    frame = report_to_frame(sample_report())
    assert list(frame["section"].unique()) == ["summary", "monthly_data", "trend.accumulated_data"]
    summary = frame[frame["section"] == "summary"].set_index("key")["value"]
    assert summary["best_month.month"] == "2024-01"
    assert len(frame[frame["section"] == "monthly_data"]) == 2


def test_export_json_round_trip(tmp_path):
    path = export_report(sample_report(), "json", tmp_path)
    assert path.name == "evolution_report_20240315_120005.json"
    data = load_report(path)
    assert data["title"] == "Evolution report"
    assert data["userId"] == "u1"
    assert data["period"]["start"] == "2024-01-01"
    assert data["summary"]["months_with_data"] == 2
    assert data["generatedAt"].startswith("2024-03-15T12:00:05")


def test_export_csv(tmp_path):
    path = export_report(sample_report(), "CSV", tmp_path / "nested")
    assert path.exists()
    header = path.read_text(encoding="utf-8").splitlines()[0]
    assert header.startswith("section,")


def test_unsupported_format(tmp_path):
    with pytest.raises(InvalidArgumentError, match="xlsx"):
        export_report(sample_report(), "xlsx", tmp_path)


def test_load_report_tolerates_bad_files(tmp_path):
    assert load_report(tmp_path / "missing.json") == {}
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert load_report(broken) == {}
    listing = tmp_path / "list.json"
    listing.write_text(json.dumps([1, 2]), encoding="utf-8")
    assert load_report(listing) == {}
