"""Modelos tipados para loopers, muestras de glucosa y entradas del timeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from loop_timeline.exceptions import ConfigurationError

MG_DL_PER_MMOL_L = 18.01559

# Typical CGM cadence (Dexcom/Libre uploads via Nightscout).
EXPECTED_SAMPLE_INTERVAL = timedelta(minutes=5)


class DisplayUnits(Enum):
    """Unit system used for every presented glucose value."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"

    def convert(self, mg_dl: float) -> float:
        """Convert a mg/dL value into this unit system."""
        if self is DisplayUnits.MMOL_L:
            return mg_dl / MG_DL_PER_MMOL_L
        return mg_dl

    @classmethod
    def from_label(cls, label: str) -> DisplayUnits:
        """Parse "mg/dL", "mmol/L" or an enum name (case-insensitive).

        Raises:
            ConfigurationError: If the label is not a known unit.
        """
        wanted = label.strip().lower()
        for units in cls:
            if wanted in (units.value.lower(), units.name.lower()):
                return units
        raise ConfigurationError(f"Unknown glucose display units: {label!r}")


class GlucoseTrend(Enum):
    """Nightscout direction strings."""

    DOUBLE_UP = "DoubleUp"
    SINGLE_UP = "SingleUp"
    FORTY_FIVE_UP = "FortyFiveUp"
    FLAT = "Flat"
    FORTY_FIVE_DOWN = "FortyFiveDown"
    SINGLE_DOWN = "SingleDown"
    DOUBLE_DOWN = "DoubleDown"
    NOT_COMPUTABLE = "NOT COMPUTABLE"
    RATE_OUT_OF_RANGE = "RATE OUT OF RANGE"
    NONE = "NONE"

    @property
    def arrow(self) -> str:
        return _ARROWS.get(self, "")

    @classmethod
    def parse(cls, raw: object) -> GlucoseTrend | None:
        """Map a raw direction to a trend; unknown/empty -> None."""
        if not isinstance(raw, str) or not raw.strip():
            return None
        wanted = raw.strip().lower()
        for trend in cls:
            if trend.value.lower() == wanted:
                return trend
        return None


_ARROWS = {
    GlucoseTrend.DOUBLE_UP: "↑↑",
    GlucoseTrend.SINGLE_UP: "↑",
    GlucoseTrend.FORTY_FIVE_UP: "↗",
    GlucoseTrend.FLAT: "→",
    GlucoseTrend.FORTY_FIVE_DOWN: "↘",
    GlucoseTrend.SINGLE_DOWN: "↓",
    GlucoseTrend.DOUBLE_DOWN: "↓↓",
}


@dataclass(frozen=True)
class Looper:
    """A monitored person and the settings needed to reach their data."""

    id: str
    name: str
    nightscout_url: str = ""
    export_path: str = ""


@dataclass(frozen=True)
class GlucoseSample:
    """One sensor glucose reading (value stored in mg/dL)."""

    date: datetime
    mg_dl: float
    trend: GlucoseTrend | None = None
    is_display_only: bool = False
    was_user_entered: bool = False
    sync_identifier: str = ""

    def presentable_value(self, units: DisplayUnits) -> float:
        return units.convert(self.mg_dl)


@dataclass(frozen=True)
class DisplayEntry:
    """One immutable, timestamped snapshot of the widget."""

    looper: Looper | None
    current_glucose_sample: GlucoseSample | None
    last_glucose_change: float | None
    date: datetime
    entry_index: int
    is_last_entry: bool
    glucose_display_units: DisplayUnits

    def next_expected_glucose_date(self) -> datetime | None:
        """Return when the sensor should deliver its next sample."""
        if self.current_glucose_sample is None:
            return None
        return self.current_glucose_sample.date + EXPECTED_SAMPLE_INTERVAL

    def presentable_value(self) -> float | None:
        if self.current_glucose_sample is None:
            return None
        return self.current_glucose_sample.presentable_value(
            self.glucose_display_units
        )

    def minutes_since_sample(self) -> int | None:
        """Whole minutes between the sample and this entry's date."""
        if self.current_glucose_sample is None:
            return None
        elapsed = self.date - self.current_glucose_sample.date
        return int(elapsed.total_seconds() // 60)


@dataclass(frozen=True)
class RefreshPolicy:
    """Ask the host to run a new cycle at or after ``after``."""

    after: datetime


@dataclass(frozen=True)
class Timeline:
    """Entries of one scheduling cycle plus its refresh policy."""

    entries: tuple[DisplayEntry, ...]
    policy: RefreshPolicy
