#!/usr/bin/env python3
"""
Admin Settings Management Script

Seeds, exports and imports the admin settings catalogue against the
configured database, without going through the HTTP API.

Usage:
    python scripts/manage_settings.py init
    python scripts/manage_settings.py export [--output FILE]
    python scripts/manage_settings.py import FILE [--actor NAME]

Commands:
    init        Create missing tables and write the default catalogue
    export      Write every setting as JSON (stdout by default)
    import      Apply an exported JSON file to the existing settings

Requirements:
    - CIMIENTO_CONFIG_PATH pointing at the database directory
    - Run from project root directory
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from app.db import async_session_maker, engine
from app.db.base import Base
from app.services.settings import Actor, SettingsService


async def run_init() -> int:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        count = await SettingsService(session).initialize_defaults()
        await session.commit()

    print(f"Initialized {count} settings")
    return 0


async def run_export(output: Path | None) -> int:
    async with async_session_maker() as session:
        entries = await SettingsService(session).export_settings()

    text = json.dumps(entries, indent=2, ensure_ascii=False, default=str)
    if output is None:
        print(text)
    else:
        output.write_text(text, encoding="utf-8")
        print(f"Exported {len(entries)} settings to {output}")
    return 0


async def run_import(source: Path, actor_name: str) -> int:
    try:
        entries = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"ERROR: could not read {source}: {e}")
        return 1

    if not isinstance(entries, list):
        print(f"ERROR: {source} does not contain a list of settings")
        return 1

    async with async_session_maker() as session:
        imported = await SettingsService(session).import_settings(
            entries, Actor(name=actor_name)
        )
        await session.commit()

    print(f"Imported {imported} settings from {source}")
    return 0


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "init":
            return await run_init()
        if args.command == "export":
            return await run_export(args.output)
        return await run_import(args.file, args.actor)
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Manage the Cimiento admin settings catalogue"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create tables and write the default catalogue")

    export_parser = subparsers.add_parser("export", help="Export settings as JSON")
    export_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write to this file instead of stdout",
    )

    import_parser = subparsers.add_parser("import", help="Import an exported JSON file")
    import_parser.add_argument("file", type=Path, help="JSON file produced by export")
    import_parser.add_argument(
        "--actor",
        default="CLI",
        help="Name recorded in the change history (default: CLI)",
    )

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
