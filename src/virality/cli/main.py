# Command line access to the location log and its table store.
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from virality.app.state import ApplicationState, now_ms
from virality.components.file_kv import JsonFileKeyValueStore
from virality.components.memory_kv import MemoryKeyValueStore
from virality.components.table_store import TableStore
from virality.core.config import AppConfig, load_config
from virality.core.errors import NotFoundError, SelfTestError, StorageError
from virality.selftest import run_self_test

logger = logging.getLogger("virality")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="virality", description="Personal location log")
    p.add_argument("--config", type=Path, help="TOML config file")
    backend = p.add_mutually_exclusive_group()
    backend.add_argument("--data", type=Path, help="Data file (overrides config)")
    backend.add_argument("--memory", action="store_true", help="Use a throwaway in-memory store")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("selftest", help="Run the table store self-test")

    log = sub.add_parser("log", help="Location log entries").add_subparsers(dest="action", required=True)
    ls = log.add_parser("list", help="List entries, newest first")
    ls.add_argument("--count", type=int, default=None, help="Page size")
    ls.add_argument("--continuation", help="Token from the previous page")
    add = log.add_parser("add", help="Add an entry")
    add.add_argument("--where", required=True, help="Place name")
    add.add_argument("--lat", type=float, required=True, help="Latitude")
    add.add_argument("--lon", type=float, required=True, help="Longitude")
    add.add_argument("--with", dest="companions", help="Who you were with")
    add.add_argument("--timestamp", type=int, help="Milliseconds since the epoch (default: now)")
    show = log.add_parser("show", help="Show one entry")
    show.add_argument("id")
    rm = log.add_parser("remove", help="Remove one entry")
    rm.add_argument("id")

    settings = sub.add_parser("settings", help="Application settings").add_subparsers(
        dest="action", required=True
    )
    settings.add_parser("show", help="Show current settings")
    sset = settings.add_parser("set", help="Change settings")
    sset.add_argument("--tracking", choices=["on", "off"], required=True, help="Background tracking")

    table = sub.add_parser("table", help="Table administration").add_subparsers(dest="action", required=True)
    drop = table.add_parser("drop", help="Delete a table and all of its items")
    drop.add_argument("name")
    return p


def _print(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    if args.memory:
        kv = MemoryKeyValueStore()
    else:
        kv = JsonFileKeyValueStore(config.store.data_path, fsync=config.store.fsync_writes)
    store = TableStore(kv, default_page_size=config.store.default_page_size)

    if args.command == "selftest":
        await run_self_test(store)
        print("Self-test passed")
        return 0

    if args.command == "table":
        await store.delete_table(args.name)
        print(f"Dropped table '{args.name}'")
        return 0

    state = ApplicationState(store, config)
    await state.start()

    if args.command == "settings":
        if args.action == "set":
            settings = await state.get_settings()
            settings["tracking_enabled"] = args.tracking == "on"
            await state.update_settings(settings)
        _print(await state.get_settings())
        return 0

    if args.action == "list":
        page = await state.list_log(args.count, args.continuation)
        _print({"items": page.items, "continuation": page.continuation})
    elif args.action == "add":
        entry = {
            "where": args.where,
            "latitude": args.lat,
            "longitude": args.lon,
            "timestamp": args.timestamp if args.timestamp is not None else now_ms(),
        }
        if args.companions:
            entry["with"] = args.companions
        print(await state.upsert_log_entry(entry))
    elif args.action == "show":
        entry = await state.get_log_entry(args.id)
        if entry is None:
            print(f"No log entry '{args.id}'")
            return 1
        _print(entry)
    elif args.action == "remove":
        await state.remove_log_entry(args.id)
        print(f"Removed log entry '{args.id}'")
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config) if args.config else AppConfig()
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading config: {e}")
        return 2
    if args.data:
        config.store.data_path = str(args.data)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(run(args, config))
    except (NotFoundError, SelfTestError) as e:
        print(f"Error: {e}")
        return 1
    except StorageError as e:
        logger.error(f"Storage failure: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
