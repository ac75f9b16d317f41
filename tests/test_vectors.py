"""Shared cross-platform vectors must pass against both engines."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from dayguide.vectors import (
    HoursCase,
    VectorFileError,
    check_hours_case,
    check_plan_case,
    load_hours_vectors,
    load_plan_vectors,
)


VECTORS_DIR = Path(__file__).parent / "fixtures" / "vectors"
HOURS_CASES = load_hours_vectors(VECTORS_DIR / "hours_engine_vectors.json")
PLAN_CASES = load_plan_vectors(VECTORS_DIR / "plan_engine_vectors.json")


@pytest.mark.parametrize("case", HOURS_CASES, ids=[case.name for case in HOURS_CASES])
def test_hours_vector(case) -> None:  # type: ignore[no-untyped-def]
    assert check_hours_case(case) == []


@pytest.mark.parametrize("case", PLAN_CASES, ids=[case.name for case in PLAN_CASES])
def test_plan_vector(case) -> None:  # type: ignore[no-untyped-def]
    assert check_plan_case(case) == []


def test_hours_mismatch_is_reported() -> None:
    case = HoursCase.model_validate(
        {
            "name": "wrong expectation",
            "at": "2026-01-07T09:00:00Z",
            "weekly": ["Mon-Fri 09:00-18:00"],
            "expected": {"state": "closed", "next_change_local": "2026-01-07T18:00", "display": "nope"},
        }
    )
    issues = check_hours_case(case)
    assert len(issues) == 2
    assert "state 'open' != 'closed'" in issues[0]
    assert "display" in issues[1]


def test_plan_mismatch_is_reported() -> None:
    case = PLAN_CASES[0].model_copy(deep=True)
    case.expected.required_place_ids = ["long-tour"]
    issues = check_plan_case(case)
    assert issues == [f"{case.name}: missing required stop long-tour"]


def test_missing_vector_file_raises(tmp_path) -> None:  # type: ignore[no-untyped-def]
    with pytest.raises(VectorFileError, match="Cannot read"):
        load_hours_vectors(tmp_path / "missing.json")


def test_wrong_vector_shape_raises(tmp_path) -> None:  # type: ignore[no-untyped-def]
    path = tmp_path / "vectors.json"
    path.write_text(json.dumps({"vectors": []}), encoding="utf-8")
    with pytest.raises(VectorFileError, match="'cases'"):
        load_hours_vectors(path)

    path.write_text(json.dumps({"vectors": [{"name": "broken"}]}), encoding="utf-8")
    with pytest.raises(VectorFileError, match="Invalid plan vector"):
        load_plan_vectors(path)
