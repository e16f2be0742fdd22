from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from dateutil import tz

from loop_timeline.entries import (
    build_entry,
    last_glucose_change,
    missing_looper_entry,
    placeholder_entry,
    sort_samples,
)
from loop_timeline.model import (
    MG_DL_PER_MMOL_L,
    DisplayUnits,
    GlucoseSample,
    GlucoseTrend,
    Looper,
)

NOW = datetime(2026, 1, 31, 12, 0, tzinfo=tz.UTC)


def _sample(minutes: int, mg_dl: float) -> GlucoseSample:
    return GlucoseSample(date=NOW + timedelta(minutes=minutes), mg_dl=mg_dl)


def test_sort_samples_ascending() -> None:
    samples = [_sample(-5, 110), _sample(-15, 100), _sample(-10, 105)]
    out = sort_samples(samples)
    assert [s.mg_dl for s in out] == [100, 105, 110]


@pytest.mark.parametrize("count", [0, 1])
def test_last_glucose_change_undefined_below_two_samples(count: int) -> None:
    samples = [_sample(-5 * i, 100) for i in range(count)]
    assert last_glucose_change(samples, DisplayUnits.MG_DL) is None


def test_last_glucose_change_is_zero_for_flat_readings() -> None:
    samples = [_sample(-5, 100), _sample(0, 100)]
    assert last_glucose_change(samples, DisplayUnits.MG_DL) == 0.0


def test_last_glucose_change_uses_two_newest_samples() -> None:
    samples = [_sample(-10, 200), _sample(-5, 100), _sample(0, 90)]
    assert last_glucose_change(samples, DisplayUnits.MG_DL) == -10.0


def test_last_glucose_change_converts_before_subtracting() -> None:
    samples = [_sample(-5, 180), _sample(0, 90)]
    change = last_glucose_change(samples, DisplayUnits.MMOL_L)
    expected = 90 / MG_DL_PER_MMOL_L - 180 / MG_DL_PER_MMOL_L
    assert change == pytest.approx(expected)


def test_build_entry_with_samples() -> None:
    looper = Looper(id="x", name="Ana")
    samples = [_sample(-5, 100), _sample(0, 90)]
    entry = build_entry(looper, samples, DisplayUnits.MG_DL, NOW)
    assert entry.looper == looper
    assert entry.current_glucose_sample == samples[-1]
    assert entry.last_glucose_change == -10.0
    assert entry.date == NOW
    assert entry.entry_index == 0
    assert entry.is_last_entry


def test_build_entry_without_samples_keeps_looper() -> None:
    looper = Looper(id="x", name="Ana")
    entry = build_entry(looper, [], DisplayUnits.MG_DL, NOW)
    assert entry.looper == looper
    assert entry.current_glucose_sample is None
    assert entry.last_glucose_change is None
    assert entry.presentable_value() is None


def test_missing_looper_entry() -> None:
    entry = missing_looper_entry(DisplayUnits.MMOL_L, NOW)
    assert entry.looper is None
    assert entry.current_glucose_sample is None
    assert entry.last_glucose_change is None
    assert entry.is_last_entry
    assert entry.glucose_display_units is DisplayUnits.MMOL_L


def test_placeholder_entry_is_synthetic() -> None:
    entry = placeholder_entry(DisplayUnits.MG_DL, NOW)
    assert entry.looper is None
    assert entry.current_glucose_sample is not None
    assert entry.current_glucose_sample.mg_dl == 100.0
    assert entry.current_glucose_sample.trend is GlucoseTrend.SINGLE_UP
    assert entry.last_glucose_change is None
    assert entry.is_last_entry
