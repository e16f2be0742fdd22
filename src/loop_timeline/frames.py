"""Conversion de timelines y muestras a DataFrames para mostrar."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from loop_timeline.model import DisplayEntry, GlucoseSample, Timeline

TIMELINE_COLUMNS = [
    "entry_index",
    "date",
    "looper",
    "glucose",
    "units",
    "change",
    "trend",
    "minutes_ago",
    "is_last_entry",
]


def samples_to_frame(samples: Sequence[GlucoseSample]) -> pd.DataFrame:
    """Convert samples to a DataFrame sorted by date."""
    rows = [
        {
            "date": s.date,
            "glucose_mg_dl": s.mg_dl,
            "trend": s.trend.value if s.trend else None,
            "user_entered": s.was_user_entered,
            "sync_identifier": s.sync_identifier,
        }
        for s in samples
    ]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values("date").reset_index(drop=True)


def entries_to_frame(entries: Sequence[DisplayEntry]) -> pd.DataFrame:
    """One row per entry with values already in display units."""
    rows = [_entry_row(e) for e in entries]
    if not rows:
        return pd.DataFrame(columns=TIMELINE_COLUMNS)
    return pd.DataFrame(rows, columns=TIMELINE_COLUMNS)


def timeline_to_frame(timeline: Timeline) -> pd.DataFrame:
    return entries_to_frame(timeline.entries)


def _entry_row(entry: DisplayEntry) -> dict[str, object]:
    sample = entry.current_glucose_sample
    value = entry.presentable_value()
    change = entry.last_glucose_change
    return {
        "entry_index": entry.entry_index,
        "date": entry.date,
        "looper": entry.looper.name if entry.looper else None,
        "glucose": round(value, 1) if value is not None else None,
        "units": entry.glucose_display_units.value,
        "change": round(change, 1) if change is not None else None,
        "trend": sample.trend.arrow if sample and sample.trend else "",
        "minutes_ago": entry.minutes_since_sample(),
        "is_last_entry": entry.is_last_entry,
    }
