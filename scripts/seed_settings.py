#!/usr/bin/env python3
"""
Seed the configuration_settings table.

This script:
1. Optionally creates the table (--create-tables) for scratch databases;
   otherwise run `alembic upgrade head` first.
2. Inserts each --setting KEY=VALUE whose key is not stored yet.
3. Prints the resulting settings in storage order.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.models.configuration_setting import KEY_MAX_LENGTH  # noqa: E402
from app.services.baseline_store import SettingRow  # noqa: E402
from app.services.connection import Connection  # noqa: E402
from app.services.value_validator import apply_number_locale, validate  # noqa: E402

DEFAULT_SETTINGS = [
    "MaxRetries=3",
    "Timeout=30",
]


def parse_setting(text: str) -> SettingRow:
    """Parse KEY=VALUE into a validated row."""
    key, sep, raw = text.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{text}'")
    if len(key) > KEY_MAX_LENGTH:
        raise argparse.ArgumentTypeError(f"Key '{key}' is longer than {KEY_MAX_LENGTH} characters")
    result = validate(raw)
    if not result.ok:
        raise argparse.ArgumentTypeError(result.error)
    return SettingRow(key=key, value=result.value)


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed configuration settings")
    parser.add_argument("--db", default=settings.DATABASE_URL, help="Database URL")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables without Alembic")
    parser.add_argument(
        "--setting",
        action="append",
        type=parse_setting,
        help="KEY=VALUE to insert (repeatable); defaults to a small starter set",
    )
    apply_number_locale(settings.NUMBER_LOCALE)
    args = parser.parse_args(argv)

    rows = args.setting or [parse_setting(item) for item in DEFAULT_SETTINGS]

    with Connection() as connection:
        if not connection.try_open(args.db):
            print(f"❌ {connection.last_error}")
            return 1

        store = connection.active_store()
        if args.create_tables:
            Base.metadata.create_all(bind=connection.engine)
        added = store.seed(rows)
        print(f"✅ Added {added} setting(s)")
        for row in store.query():
            print(f"  {row.key}: {row.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
