"""Environment-driven configuration for the command line surface."""

from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path

from dayguide.instants import parse_instant


def load_env_file(path: str = ".env") -> None:
    """Best-effort .env loader; variables already set in the environment win."""
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"'")
        if key and key not in os.environ:
            os.environ[key] = value


def reference_now() -> datetime:
    """Reference instant for relative expressions: ``DAYGUIDE_NOW_TS`` or the clock."""
    raw = os.getenv("DAYGUIDE_NOW_TS")
    if raw:
        return parse_instant(raw)
    return datetime.now(timezone.utc)
