"""Telemetry baseline tests."""

from __future__ import annotations

import json
import os
import subprocess
import sys


def _run_hours_with_env(extra_env: dict[str, str]) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env.update({"DAYGUIDE_NOW_TS": "2026-01-07T09:00:00Z"})
    env.update(extra_env)
    return subprocess.run(
        [sys.executable, "-m", "dayguide", "hours", "--weekly", "Daily 09:00-18:00"],
        capture_output=True,
        text=True,
        check=False,
        env=env,
    )


def test_hours_runs_with_tracing_disabled() -> None:
    completed = _run_hours_with_env({"DAYGUIDE_TRACING_ENABLED": "0"})
    assert completed.returncode == 0
    payload = json.loads(completed.stdout)
    assert payload["status"]["state"] == "open"
    assert "[trace]" not in completed.stderr


def test_hours_runs_with_tracing_enabled() -> None:
    completed = _run_hours_with_env(
        {
            "DAYGUIDE_TRACING_ENABLED": "1",
            "DAYGUIDE_TRACING_EXPORTER": "console",
            "DAYGUIDE_TRACING_CONSOLE_MODE": "compact",
        }
    )
    assert completed.returncode == 0
    payload = json.loads(completed.stdout)
    assert payload["status"]["state"] == "open"
    assert "[trace] cli.hours" in completed.stderr
    assert "hours.state=open" in completed.stderr
