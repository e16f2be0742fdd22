"""Lectura de exportaciones JSON de entradas de Nightscout."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz

from loop_timeline.exceptions import DataSourceError
from loop_timeline.model import GlucoseSample, GlucoseTrend
from loop_timeline.sources.base import GlucoseDataSource

logger = logging.getLogger(__name__)

_VALUE_KEYS = ("sgv", "mbg", "glucose")


class NightscoutExportSource(GlucoseDataSource):
    """Reads ``entries*.json`` exports (``/api/v1/entries.json`` payloads)."""

    @property
    def root(self) -> Path:
        return Path(self._looper.export_path).expanduser()

    def validate(self) -> None:
        """Validate that the looper's export path exists.

        Raises:
            DataSourceError: If no export path is set or it is missing.
        """
        if not self._looper.export_path:
            raise DataSourceError(f"Looper {self._looper.id} has no export path")
        if not self.root.exists():
            raise DataSourceError(f"Export path not found: {self.root}")

    def newest_json(self) -> Path:
        """Return the export file; newest entries*.json by mtime for folders."""
        if self.root.is_file():
            return self.root
        files = sorted(
            self.root.glob("entries*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise DataSourceError(f"No entries*.json in {self.root}")
        return files[0]

    async def fetch_glucose_samples(self) -> list[GlucoseSample]:
        return await asyncio.to_thread(self.load_samples)

    def load_samples(self) -> list[GlucoseSample]:
        """Parse the export into typed samples.

        Returns:
            Samples in file order.

        Raises:
            DataSourceError: If the file is missing or its JSON shape is invalid.
        """
        self.validate()
        path = self.newest_json()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DataSourceError(f"Cannot read {path}: {exc}") from exc
        if not isinstance(raw, list):
            raise DataSourceError("Nightscout entries JSON must be a list")

        out: list[GlucoseSample] = []
        for item in raw:
            sample = _item_to_sample(item)
            if sample is not None:
                out.append(sample)
        logger.debug("Loaded %d samples from %s", len(out), path)
        return out


def _item_to_sample(item: Any) -> GlucoseSample | None:
    """Convierte un ítem dict en GlucoseSample; None si no tiene valor o fecha."""
    if not isinstance(item, dict):
        return None
    value = next((item[k] for k in _VALUE_KEYS if item.get(k) is not None), None)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    ts = _parse_timestamp(item.get("date"), item.get("dateString"))
    if ts is None:
        return None
    return GlucoseSample(
        date=ts,
        mg_dl=float(value),
        trend=GlucoseTrend.parse(item.get("direction")),
        is_display_only=False,
        was_user_entered=item.get("type") == "mbg",
        sync_identifier=str(item.get("_id") or item.get("identifier") or ""),
    )


def _parse_timestamp(epoch_ms: Any, date_string: Any) -> datetime | None:
    """Epoch in milliseconds wins; falls back to the ISO dateString."""
    if isinstance(epoch_ms, (int, float)) and not isinstance(epoch_ms, bool):
        try:
            return datetime.fromtimestamp(epoch_ms / 1000, tz=tz.UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(date_string, str) and date_string.strip():
        try:
            dt = date_parser.isoparse(date_string)
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=tz.UTC)
        return dt

    return None
