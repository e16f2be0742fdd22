"""Construccion de entradas individuales del widget."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from loop_timeline.model import (
    DisplayEntry,
    DisplayUnits,
    GlucoseSample,
    GlucoseTrend,
    Looper,
)


def sort_samples(samples: Iterable[GlucoseSample]) -> list[GlucoseSample]:
    """Return samples ascending by date."""
    return sorted(samples, key=lambda s: s.date)


def last_glucose_change(
    samples: Sequence[GlucoseSample], units: DisplayUnits
) -> float | None:
    """Difference between the two newest samples, in display units.

    Args:
        samples: Samples sorted ascending by date.
        units: Units both values are converted to before subtracting.

    Returns:
        ``latest - previous``, or None with fewer than two samples.
    """
    if len(samples) < 2:
        return None
    latest = samples[-1].presentable_value(units)
    prior = samples[-2].presentable_value(units)
    return latest - prior


def build_entry(
    looper: Looper | None,
    samples: Sequence[GlucoseSample],
    units: DisplayUnits,
    now: datetime,
) -> DisplayEntry:
    """Build the current (single, final) entry from sorted samples."""
    return DisplayEntry(
        looper=looper,
        current_glucose_sample=samples[-1] if samples else None,
        last_glucose_change=last_glucose_change(samples, units),
        date=now,
        entry_index=0,
        is_last_entry=True,
        glucose_display_units=units,
    )


def missing_looper_entry(units: DisplayUnits, now: datetime) -> DisplayEntry:
    """Entry shown when the configured looper no longer exists."""
    return DisplayEntry(
        looper=None,
        current_glucose_sample=None,
        last_glucose_change=None,
        date=now,
        entry_index=0,
        is_last_entry=True,
        glucose_display_units=units,
    )


def placeholder_entry(units: DisplayUnits, now: datetime) -> DisplayEntry:
    """Synthetic entry for layout previews; never shown with real data."""
    sample = GlucoseSample(
        date=now,
        mg_dl=100.0,
        trend=GlucoseTrend.SINGLE_UP,
        is_display_only=False,
        was_user_entered=False,
        sync_identifier="1345",
    )
    return DisplayEntry(
        looper=None,
        current_glucose_sample=sample,
        last_glucose_change=None,
        date=now,
        entry_index=0,
        is_last_entry=True,
        glucose_display_units=units,
    )
