"""Persistencia SQLite para configuracion y loopers."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from loop_timeline.exceptions import ConfigurationError
from loop_timeline.model import DisplayUnits, Looper

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS loopers (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    nightscout_url TEXT NOT NULL DEFAULT '',
    export_path TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_loopers_name
ON loopers(name);
"""


@dataclass(frozen=True)
class Settings:
    """Configuracion persistida de la app."""

    glucose_display_units: DisplayUnits = DisplayUnits.MG_DL
    selected_looper_id: str | None = None


@dataclass(frozen=True)
class WidgetConfiguration:
    """Per-widget configuration chosen by the user."""

    looper_id: str | None = None
    name: str | None = None


class SQLiteStore:
    """Repositorio SQLite de loopers y configuracion."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_settings(self) -> Settings:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        units_label = values.get("glucose_display_units")
        try:
            units = (
                DisplayUnits.from_label(units_label)
                if units_label
                else DisplayUnits.MG_DL
            )
        except ConfigurationError:
            logger.warning(
                "Invalid stored glucose_display_units %r; using mg/dL", units_label
            )
            units = DisplayUnits.MG_DL
        return Settings(
            glucose_display_units=units,
            selected_looper_id=values.get("selected_looper_id") or None,
        )

    def save_settings(self, settings: Settings) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "glucose_display_units": settings.glucose_display_units.value,
            "selected_looper_id": settings.selected_looper_id or "",
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def save_looper(self, looper: Looper) -> None:
        """Insert or update a looper by id."""
        created_at = datetime.now().isoformat(timespec="seconds")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO loopers(id, name, nightscout_url, export_path, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    nightscout_url=excluded.nightscout_url,
                    export_path=excluded.export_path
                """,
                (
                    looper.id,
                    looper.name,
                    looper.nightscout_url,
                    looper.export_path,
                    created_at,
                ),
            )
            conn.commit()

    def delete_looper(self, looper_id: str) -> bool:
        """Borra un looper. Devuelve False si no existia."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM loopers WHERE id = ?", (looper_id,))
            conn.commit()
        return cur.rowcount > 0

    def get_loopers(self) -> list[Looper]:
        """Loopers ordered by creation."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, nightscout_url, export_path
                FROM loopers
                ORDER BY created_at, name
                """
            ).fetchall()
        return [_row_to_looper(row) for row in rows]

    def get_looper(self, looper_id: str) -> Looper | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, name, nightscout_url, export_path
                FROM loopers
                WHERE id = ?
                """,
                (looper_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_looper(row)


def _row_to_looper(row: sqlite3.Row) -> Looper:
    return Looper(
        id=str(row["id"]),
        name=str(row["name"]),
        nightscout_url=str(row["nightscout_url"] or ""),
        export_path=str(row["export_path"] or ""),
    )
