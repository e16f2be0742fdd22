from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from loop_timeline.model import DisplayUnits, Looper
from loop_timeline.storage import Settings, SQLiteStore


def test_store_settings_roundtrip(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_settings() == Settings()

    store.save_settings(
        Settings(glucose_display_units=DisplayUnits.MMOL_L, selected_looper_id="x")
    )
    loaded = store.load_settings()
    assert loaded.glucose_display_units is DisplayUnits.MMOL_L
    assert loaded.selected_looper_id == "x"


def test_store_invalid_units_fall_back_to_default(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    db = tmp_path / "app.sqlite3"
    store = SQLiteStore(db)
    with sqlite3.connect(db) as conn:
        conn.execute(
            "INSERT INTO app_config(key, value) VALUES('glucose_display_units', 'x')"
        )
    assert store.load_settings().glucose_display_units is DisplayUnits.MG_DL
    assert "Invalid stored glucose_display_units" in caplog.text


def test_store_loopers(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    ana = Looper(id="x", name="Ana", export_path="/data/ana")
    store.save_looper(ana)
    store.save_looper(Looper(id="y", name="Beto"))

    assert store.get_looper("x") == ana
    assert store.get_looper("missing") is None
    assert {lp.id for lp in store.get_loopers()} == {"x", "y"}

    store.save_looper(Looper(id="x", name="Ana Maria", export_path="/data/ana"))
    renamed = store.get_looper("x")
    assert renamed is not None
    assert renamed.name == "Ana Maria"

    assert store.delete_looper("y")
    assert not store.delete_looper("y")
    assert [lp.id for lp in store.get_loopers()] == ["x"]

