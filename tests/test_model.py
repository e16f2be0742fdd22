from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta

import pytest
from dateutil import tz

from loop_timeline.exceptions import ConfigurationError
from loop_timeline.model import (
    DisplayEntry,
    DisplayUnits,
    GlucoseSample,
    GlucoseTrend,
)

NOW = datetime(2026, 1, 31, 12, 0, tzinfo=tz.UTC)


def _entry(sample: GlucoseSample | None, date: datetime = NOW) -> DisplayEntry:
    return DisplayEntry(
        looper=None,
        current_glucose_sample=sample,
        last_glucose_change=None,
        date=date,
        entry_index=0,
        is_last_entry=True,
        glucose_display_units=DisplayUnits.MG_DL,
    )


def test_display_units_convert() -> None:
    assert DisplayUnits.MG_DL.convert(180.0) == 180.0
    assert DisplayUnits.MMOL_L.convert(180.0) == pytest.approx(9.99, abs=0.01)


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("mg/dL", DisplayUnits.MG_DL),
        ("MMOL/L", DisplayUnits.MMOL_L),
        ("mmol_l", DisplayUnits.MMOL_L),
        (" mg_dl ", DisplayUnits.MG_DL),
    ],
)
def test_display_units_from_label(label: str, expected: DisplayUnits) -> None:
    assert DisplayUnits.from_label(label) is expected


def test_display_units_from_label_unknown() -> None:
    with pytest.raises(ConfigurationError, match="Unknown glucose display units"):
        DisplayUnits.from_label("stones")


def test_glucose_trend_parse() -> None:
    assert GlucoseTrend.parse("FortyFiveUp") is GlucoseTrend.FORTY_FIVE_UP
    assert GlucoseTrend.parse("flat") is GlucoseTrend.FLAT
    assert GlucoseTrend.parse("") is None
    assert GlucoseTrend.parse(None) is None
    assert GlucoseTrend.parse("sideways") is None


def test_glucose_trend_arrow() -> None:
    assert GlucoseTrend.DOUBLE_DOWN.arrow == "↓↓"
    assert GlucoseTrend.NOT_COMPUTABLE.arrow == ""


def test_next_expected_glucose_date() -> None:
    sample = GlucoseSample(date=NOW, mg_dl=100.0)
    assert _entry(sample).next_expected_glucose_date() == NOW + timedelta(minutes=5)
    assert _entry(None).next_expected_glucose_date() is None


def test_minutes_since_sample() -> None:
    sample = GlucoseSample(date=NOW, mg_dl=100.0)
    entry = _entry(sample, NOW + timedelta(minutes=7, seconds=30))
    assert entry.minutes_since_sample() == 7
    assert _entry(None).minutes_since_sample() is None


def test_entries_are_immutable() -> None:
    entry = _entry(None)
    with pytest.raises(dataclasses.FrozenInstanceError):
        entry.entry_index = 3  # type: ignore[misc]
