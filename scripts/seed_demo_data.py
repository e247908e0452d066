#!/usr/bin/env python3
"""Seed demo patient/provider accounts and sample care records."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

from wellness_portal.core.config import StorageConfig
from wellness_portal.storage.document_store import create_document_store
from wellness_portal.storage.seed import DEMO_PASSWORD, seed_store

APP_ROOT = Path(__file__).resolve().parents[1]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Insert demo accounts (password: %s) into the configured store." % DEMO_PASSWORD
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report what would be inserted, do not write.",
    )
    return parser.parse_args()


def main() -> int:
    """Execute check or seed flow."""
    args = _parse_args()
    load_dotenv()
    config = StorageConfig.from_env()
    try:
        store = create_document_store(config, APP_ROOT)
        counts = seed_store(store, datetime.now(timezone.utc).date(), dry_run=args.check)
    except Exception as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    for collection, count in counts.items():
        print(f"{collection}: {count} new record(s)")
    print(f"Mode: {'check' if args.check else 'write'}")
    if not args.check:
        print(f"Demo logins: patient@example.com / provider@example.com, password '{DEMO_PASSWORD}'")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
