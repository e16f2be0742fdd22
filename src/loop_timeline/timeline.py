"""Planificacion del timeline del widget y politica de refresco."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol

from dateutil import tz

from loop_timeline.entries import (
    build_entry,
    missing_looper_entry,
    placeholder_entry,
    sort_samples,
)
from loop_timeline.model import (
    DisplayEntry,
    DisplayUnits,
    Looper,
    RefreshPolicy,
    Timeline,
)
from loop_timeline.sources.base import DataSourceFactory
from loop_timeline.storage import Settings, WidgetConfiguration

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(minutes=5)
UPLOAD_GRACE = timedelta(minutes=1)
ENTRY_SPACING = timedelta(minutes=1)
ENTRY_COUNT = 60


class LooperStore(Protocol):
    """Read access to the known loopers."""

    def get_looper(self, looper_id: str) -> Looper | None: ...

    def get_loopers(self) -> list[Looper]: ...


@dataclass(frozen=True)
class Recommendation:
    """A ready-made widget configuration offered to the user."""

    configuration: WidgetConfiguration
    description: str


def _local_now() -> datetime:
    return datetime.now(tz=tz.tzlocal())


def next_request_date(entry: DisplayEntry, now: datetime) -> datetime:
    """When the host should run the next cycle.

    Defaults to ``now + 5 min``. When the next sensor sample is expected in
    the future, waits for it plus one minute of upload latency instead.
    """
    expected = entry.next_expected_glucose_date()
    if expected is not None and expected > now:
        return expected + UPLOAD_GRACE
    return now + DEFAULT_REFRESH_INTERVAL


def build_timeline_entries(
    entry: DisplayEntry,
    looper: Looper | None,
    now: datetime,
    count: int = ENTRY_COUNT,
) -> tuple[DisplayEntry, ...]:
    """Repeat ``entry`` once per minute from ``now``; only the last is final."""
    return tuple(
        replace(
            entry,
            looper=looper,
            date=now + ENTRY_SPACING * index,
            entry_index=index,
            is_last_entry=index == count - 1,
        )
        for index in range(count)
    )


class TimelineProvider:
    """Builds widget timelines for a configured looper.

    Each call is an independent cycle: the store and settings are only read,
    and the single await point is the data source fetch.
    """

    def __init__(
        self,
        store: LooperStore,
        source_factory: DataSourceFactory,
        settings: Settings,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._store = store
        self._source_factory = source_factory
        self._settings = settings
        self._clock = clock

    @property
    def units(self) -> DisplayUnits:
        return self._settings.glucose_display_units

    def resolve_looper(self, configuration: WidgetConfiguration) -> Looper | None:
        """Strict lookup of the configured looper; no fallback."""
        if not configuration.looper_id:
            return None
        return self._store.get_looper(configuration.looper_id)

    async def get_entry(
        self,
        configuration: WidgetConfiguration,
        now: datetime | None = None,
    ) -> tuple[Looper | None, DisplayEntry]:
        """Resolve, fetch and build the current entry.

        Raises:
            DataSourceError: If the data source fails; nothing is produced.
        """
        now = now or self._clock()
        looper = self.resolve_looper(configuration)
        if looper is None:
            logger.info(
                "Looper %r not found; widget needs reconfiguration",
                configuration.looper_id,
            )
            return None, missing_looper_entry(self.units, now)

        source = self._source_factory(looper, self._settings)
        samples = sort_samples(await source.fetch_glucose_samples())
        logger.debug("Fetched %d samples for looper %s", len(samples), looper.id)
        return looper, build_entry(looper, samples, self.units, now)

    async def snapshot(self, configuration: WidgetConfiguration) -> DisplayEntry:
        _, entry = await self.get_entry(configuration)
        return entry

    async def timeline(self, configuration: WidgetConfiguration) -> Timeline:
        """Run one cycle: 60 minute-spaced entries plus a refresh policy.

        An unknown looper yields the single missing-looper entry.

        Raises:
            DataSourceError: If the data source fails; nothing is produced.
        """
        now = self._clock()
        looper, entry = await self.get_entry(configuration, now)
        policy = RefreshPolicy(after=next_request_date(entry, now))
        if looper is None:
            return Timeline(entries=(entry,), policy=policy)

        entries = build_timeline_entries(entry, looper, now)
        logger.info(
            "Timeline for %s: %d entries, refresh after %s",
            looper.id,
            len(entries),
            policy.after.isoformat(),
        )
        return Timeline(entries=entries, policy=policy)

    def placeholder(self) -> DisplayEntry:
        """Preview entry; performs no I/O."""
        return placeholder_entry(self.units, self._clock())

    def recommendations(self) -> list[Recommendation]:
        """One recommendation per known looper; [] if the store fails."""
        try:
            loopers = self._store.get_loopers()
        except Exception:
            logger.exception("Could not list loopers for recommendations")
            return []
        return [
            Recommendation(
                configuration=WidgetConfiguration(looper_id=lp.id, name=lp.name),
                description=lp.name,
            )
            for lp in loopers
            if lp.name
        ]
