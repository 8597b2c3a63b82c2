from __future__ import annotations

import pytest

from core.measurements import MeasurementColumn, find_measurement, resolve_measurement


@pytest.mark.parametrize(
    ("name", "column"),
    [
        ("weight", MeasurementColumn.weight),
        ("Body Weight", MeasurementColumn.weight),
        ("shoulder", MeasurementColumn.shoulder_width),
        ("shoulder_width", MeasurementColumn.shoulder_width),
        ("left bicep", MeasurementColumn.left_bicep),
        ("left_bicep", MeasurementColumn.left_bicep),
        ("leftbicep", MeasurementColumn.left_bicep),
        ("my chest measurement", MeasurementColumn.chest),
        ("bench press", MeasurementColumn.bench_max),
        ("OHP", MeasurementColumn.overhead_press_max),
        ("belly", MeasurementColumn.stomach),
    ],
)
def test_resolve_measurement_synonyms(name: str, column: MeasurementColumn) -> None:
    assert resolve_measurement(name) is column


@pytest.mark.parametrize("name", ["bicepts", "bicep", "", "   ", None, 42])
def test_resolve_measurement_rejects_unknown(name) -> None:  # type: ignore[no-untyped-def]
    assert resolve_measurement(name) is None


def test_find_measurement_prefers_longest_name() -> None:
    assert find_measurement("set my left bicep to 14") == ("left bicep", MeasurementColumn.left_bicep)
    assert find_measurement("new bench press max 80") == ("bench press", MeasurementColumn.bench_max)


def test_find_measurement_needs_word_boundaries() -> None:
    assert find_measurement("rowing machine for an hour") is None
    assert find_measurement("nothing here") is None
