#!/usr/bin/env python3
"""
Create the schema and load the sample dataset.

Inserts department "IT", employee "John Doe" and two projects due 3 and 6
months from now, both assigned to him.  Running it again is a no-op.

Usage:
    python3 scripts/seed_data.py
    python3 scripts/seed_data.py --config my_config.yaml
    python3 scripts/seed_data.py --database-url sqlite:///tracking.db
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the tracking database.")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--database-url", type=str, help="Override database.url")
    parser.add_argument(
        "--verbose", action="store_true", help="Emit structured logs to stderr"
    )
    args = parser.parse_args(argv)

    from tracking_config import get_active_config
    from tracking_kernel.db.engine import Database
    from tracking_kernel.exceptions import TrackingKernelError
    from tracking_kernel.logging_config import configure_logging
    from tracking_kernel.services.seed_service import SeedService

    configure_logging(level=logging.INFO if args.verbose else logging.WARNING)

    config = get_active_config(args.config)
    db_config = config.database
    if args.database_url:
        db_config = replace(db_config, url=args.database_url)

    print()
    print(f"  [1/2] Connecting to {db_config.url.split('@')[-1]} ...")
    database = Database(db_config)
    try:
        seeder = SeedService(database)
        seeder.ensure_schema()

        print("  [2/2] Loading sample data...")
        if seeder.seed_sample_data():
            print("  Sample data written.")
        else:
            print("  Store already holds data; nothing written.")
    except TrackingKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        database.dispose()

    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
