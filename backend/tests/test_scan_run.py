from __future__ import annotations

import json
from pathlib import Path

import pytest

from pipelines import scan_run


SAMPLE_PATH = Path(__file__).parent / "data" / "sample_events.json"
NOW = "2025-03-01T12:00:00Z"


def test_scan_run_writes_payload_from_saved_events(tmp_path):
    output = tmp_path / "out" / "flipped.json"

    exit_code = scan_run.main(
        ["--variant", "flipped", "--input", str(SAMPLE_PATH), "--now", NOW, "--output", str(output)]
    )

    assert exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert list(payload) == ["twentyToFifty", "aboveFifty"]
    (market,) = payload["aboveFifty"]
    assert market["question"] == "Will the incumbent win the runoff?"
    assert market["score"] == 95
    assert market["endDate"] == "2025-03-03T12:00:00.000Z"
    assert market["oneDayPriceChange"] == -0.55


def test_scan_run_prints_to_stdout(capsys):
    exit_code = scan_run.main(["--input", str(SAMPLE_PATH), "--now", NOW, "--capacity", "1"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert [market["score"] for market in payload["oneToFive"]] == [94]


def test_scan_run_window_override(tmp_path):
    output = tmp_path / "wide.json"

    scan_run.main(
        [
            "--input",
            str(SAMPLE_PATH),
            "--now",
            NOW,
            "--window-hours",
            "72",
            "--output",
            str(output),
        ]
    )

    payload = json.loads(output.read_text(encoding="utf-8"))
    assert len(payload["oneToFive"]) == 2
    assert len(payload["fifteenToTwenty"]) == 1


@pytest.mark.parametrize(
    "extra_args",
    [
        ["--now", "yesterday"],
        ["--window-hours", "0"],
        ["--capacity", "0"],
    ],
)
def test_scan_run_rejects_invalid_arguments(extra_args):
    assert scan_run.main(["--input", str(SAMPLE_PATH), *extra_args]) == 2


def test_scan_run_reports_unreadable_input(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("not json", encoding="utf-8")

    assert scan_run.main(["--input", str(broken), "--now", NOW]) == 1


def test_parse_args_defaults():
    args = scan_run.parse_args([])

    assert args.variant == "opportunities"
    assert args.window_hours is None
    assert args.capacity is None
    assert args.input is None


def test_scan_run_reports_missing_input(tmp_path):
    assert scan_run.main(["--input", str(tmp_path / "absent.json"), "--now", NOW]) == 1


def test_scan_run_reports_non_utf8_input(tmp_path):
    encoded = tmp_path / "latin1.json"
    encoded.write_bytes(b'[{"title": "caf\xe9"}]')

    assert scan_run.main(["--input", str(encoded), "--now", NOW]) == 1
