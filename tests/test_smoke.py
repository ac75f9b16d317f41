"""Smoke tests for the dayguide command line entrypoint."""

from __future__ import annotations

import json
import os
import subprocess
import sys


def test_module_help_works() -> None:
    completed = subprocess.run(
        [sys.executable, "-m", "dayguide", "--help"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert completed.returncode == 0
    assert "check-vectors" in completed.stdout


def test_hours_command_uses_fixed_reference_time() -> None:
    env = {
        **os.environ,
        "DAYGUIDE_TRACING_ENABLED": "0",
        "DAYGUIDE_NOW_TS": "2026-01-10T09:00:00Z",
    }
    completed = subprocess.run(
        [sys.executable, "-m", "dayguide", "hours", "--weekly", "Mon-Fri 09:00-18:00", "--weekly", "Sat-Sun closed"],
        capture_output=True,
        text=True,
        check=False,
        env=env,
    )
    assert completed.returncode == 0
    payload = json.loads(completed.stdout)
    assert payload["status"]["state"] == "closed"
    assert payload["display"] == "Closed · Opens Mon 09:00"
