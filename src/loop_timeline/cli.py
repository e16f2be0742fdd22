"""CLI para calcular el timeline del widget de glucosa de un looper."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

from loop_timeline.entries import sort_samples
from loop_timeline.exceptions import LoopTimelineError
from loop_timeline.frames import entries_to_frame, samples_to_frame
from loop_timeline.model import DisplayUnits, Looper
from loop_timeline.sources.nightscout import NightscoutExportSource
from loop_timeline.storage import Settings, SQLiteStore, WidgetConfiguration
from loop_timeline.timeline import TimelineProvider

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Timeline de glucosa para widgets de Loop caregivers."
    )
    parser.add_argument(
        "--db",
        default=str(Path.home() / ".loop_timeline" / "loop_timeline.sqlite3"),
        help="Base SQLite (default: ~/.loop_timeline/loop_timeline.sqlite3).",
    )
    parser.add_argument(
        "--units",
        default=None,
        help="mg/dL o mmol/L (default: valor guardado).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="-v INFO, -vv DEBUG.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    timeline = sub.add_parser("timeline", help="Calcula el timeline de un looper.")
    timeline.add_argument("--looper", default=None, help="Id del looper.")
    timeline.add_argument(
        "--limit", type=int, default=10, help="Filas a mostrar (0 = todas)."
    )

    samples = sub.add_parser("samples", help="Muestra las muestras de un looper.")
    samples.add_argument("--looper", default=None, help="Id del looper.")

    sub.add_parser("loopers", help="Lista loopers seleccionables.")
    sub.add_parser("placeholder", help="Muestra la entrada de vista previa.")

    add = sub.add_parser("add-looper", help="Agrega o actualiza un looper.")
    add.add_argument("name")
    add.add_argument("export_path", help="Archivo o carpeta con entries*.json.")
    add.add_argument("--id", default=None)
    add.add_argument("--nightscout-url", default="")
    add.add_argument("--select", action="store_true", help="Guardar como actual.")

    remove = sub.add_parser("remove-looper", help="Borra un looper.")
    remove.add_argument("looper_id")

    return parser.parse_args(argv)


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_provider(store: SQLiteStore, settings: Settings) -> TimelineProvider:
    return TimelineProvider(
        store=store,
        source_factory=NightscoutExportSource,
        settings=settings,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        Exit code (0 on success, 1 on a handled error).
    """
    ns = parse_args(argv)
    configure_logging(ns.verbose)
    try:
        return _run(ns)
    except LoopTimelineError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def _run(ns: argparse.Namespace) -> int:
    store = SQLiteStore(Path(ns.db).expanduser().resolve())
    settings = store.load_settings()
    if ns.units:
        settings = Settings(
            glucose_display_units=DisplayUnits.from_label(ns.units),
            selected_looper_id=settings.selected_looper_id,
        )
    provider = build_provider(store, settings)

    if ns.command == "add-looper":
        looper = Looper(
            id=ns.id or str(uuid.uuid4()),
            name=ns.name,
            nightscout_url=ns.nightscout_url,
            export_path=str(Path(ns.export_path).expanduser()),
        )
        store.save_looper(looper)
        if ns.select:
            store.save_settings(
                Settings(
                    glucose_display_units=settings.glucose_display_units,
                    selected_looper_id=looper.id,
                )
            )
        print(f"OK: Looper {looper.name} ({looper.id})")
        return 0

    if ns.command == "remove-looper":
        if not store.delete_looper(ns.looper_id):
            print(f"Looper no encontrado: {ns.looper_id}", file=sys.stderr)
            return 1
        print(f"OK: Looper borrado: {ns.looper_id}")
        return 0

    if ns.command == "loopers":
        for rec in provider.recommendations():
            print(f"{rec.configuration.looper_id}\t{rec.description}")
        return 0

    if ns.command == "placeholder":
        print(entries_to_frame([provider.placeholder()]).to_string(index=False))
        return 0

    config = WidgetConfiguration(looper_id=ns.looper or settings.selected_looper_id)

    if ns.command == "samples":
        looper = provider.resolve_looper(config)
        if looper is None:
            print(f"Looper no encontrado: {config.looper_id}", file=sys.stderr)
            return 1
        source = NightscoutExportSource(looper, settings)
        samples = sort_samples(asyncio.run(source.fetch_glucose_samples()))
        print(samples_to_frame(samples).to_string(index=False))
        return 0

    timeline = asyncio.run(provider.timeline(config))
    df = entries_to_frame(timeline.entries)
    if ns.limit > 0:
        df = df.head(ns.limit)
    print(df.to_string(index=False))
    print(f"OK: Entries: {len(timeline.entries)}")
    print(f"OK: Refresh after: {timeline.policy.after.isoformat()}")
    return 0
