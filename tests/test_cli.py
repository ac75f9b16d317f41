from __future__ import annotations

import json
from pathlib import Path

import pytest

from dayguide import cli, telemetry
from dayguide.contracts import PlanOutput


VECTORS_DIR = Path(__file__).parent / "fixtures" / "vectors"


@pytest.fixture(autouse=True)
def _tracing_off(monkeypatch, tmp_path):  # type: ignore[no-untyped-def]
    monkeypatch.setattr(telemetry, "_INITIALIZED", True)
    monkeypatch.setattr(telemetry, "_ENABLED", False)
    monkeypatch.setenv("DAYGUIDE_NOW_TS", "2026-01-07T09:00:00Z")
    monkeypatch.chdir(tmp_path)


def _plan_input_file(tmp_path: Path) -> Path:
    vectors = json.loads((VECTORS_DIR / "plan_engine_vectors.json").read_text(encoding="utf-8"))["vectors"]
    payload = next(vector["input"] for vector in vectors if vector["name"] == "Recently visited places are skipped")
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_cli_hours_command_prints_status(capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(
        [
            "hours",
            "--weekly",
            "Mon-Fri 09:00-18:00",
            "--weekly",
            "Sat-Sun closed",
            "--at",
            "2026-01-10T09:00:00Z",
        ]
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["status"]["state"] == "closed"
    assert payload["next_change"]["type"] == "opens"
    assert payload["display"] == "Closed · Opens Mon 09:00"
    assert payload["at_local"].startswith("2026-01-10T10:00:00")


def test_cli_hours_defaults_to_reference_now(capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(["hours", "--hours-text", "Daily 08:00-20:00"])
    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["display"] == "Open now · Closes 20:00"


def test_cli_hours_reads_exceptions_file(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    exceptions = tmp_path / "exceptions.json"
    exceptions.write_text(json.dumps([{"date": "2026-01-07", "closed": True}]), encoding="utf-8")

    exit_code = cli.main(["hours", "--weekly", "Daily 09:00-18:00", "--exceptions", str(exceptions)])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["display"] == "Closed · Opens tomorrow 09:00"


def test_cli_hours_rejects_unparseable_time(capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(["hours", "--weekly", "Daily 09:00-18:00", "--at", "   "])
    assert exit_code == 2
    assert "error:" in capsys.readouterr().err


def test_cli_plan_command_prints_camel_case_json(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(["plan", str(_plan_input_file(tmp_path))])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert [stop["placeId"] for stop in payload["stops"]] == ["dar-si-said"]
    assert payload["totalMinutes"] == 60
    assert payload["estimatedCostRange"]["currency"] == "MAD"


def test_cli_plan_command_supports_text_format(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(["plan", str(_plan_input_file(tmp_path)), "--format", "text"])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert output.startswith("1. 10:00-11:00 dar-si-said")
    assert "Total: 60 min | Cost: 70-120 MAD" in output
    assert "{" not in output


def test_cli_plan_missing_file_exits_with_error(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    exit_code = cli.main(["plan", str(tmp_path / "missing.json")])
    assert exit_code == 2
    assert "Cannot read JSON file" in capsys.readouterr().err


def test_cli_plan_invalid_input_exits_with_error(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "plan.json"
    path.write_text(json.dumps({"availableMinutes": 60}), encoding="utf-8")
    assert cli.main(["plan", str(path)]) == 2
    assert "error:" in capsys.readouterr().err


def test_cli_plan_rejects_non_finite_coordinates(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    path = _plan_input_file(tmp_path)
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload["places"][0]["lat"] = float("inf")
    path.write_text(json.dumps(payload), encoding="utf-8")

    assert cli.main(["plan", str(path)]) == 2
    assert "error:" in capsys.readouterr().err


def test_cli_check_vectors_passes_for_shared_files(capsys) -> None:  # type: ignore[no-untyped-def]
    for kind, name in (("hours", "hours_engine_vectors.json"), ("plan", "plan_engine_vectors.json")):
        exit_code = cli.main(["check-vectors", kind, str(VECTORS_DIR / name)])
        assert exit_code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["kind"] == kind
        assert summary["total"] == summary["passed"] > 0
        assert summary["failures"] == {}


def test_cli_check_vectors_reports_failures(tmp_path, capsys) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "hours.json"
    path.write_text(
        json.dumps(
            {
                "cases": [
                    {
                        "name": "broken",
                        "at": "2026-01-07T09:00:00Z",
                        "expected": {"state": "open", "display": "Open now"},
                    }
                ]
            }
        ),
        encoding="utf-8",
    )
    exit_code = cli.main(["check-vectors", "hours", str(path)])
    assert exit_code == 1
    summary = json.loads(capsys.readouterr().out)
    assert summary["passed"] == 0
    assert "broken" in summary["failures"]


def test_cli_without_command_prints_help(capsys) -> None:  # type: ignore[no-untyped-def]
    assert cli.main([]) == 0
    assert "check-vectors" in capsys.readouterr().out


def test_render_plan_text_without_stops() -> None:
    text = cli.render_plan_text(PlanOutput(warnings=["Available time is too short to generate a plan."]))
    assert text.splitlines() == [
        "No stops planned.",
        "Total: 0 min | Cost: 0-0 MAD",
        "! Available time is too short to generate a plan.",
    ]
