"""Run one auto-release sweep by hand.

    python scripts/release_sweep.py --dry-run
    python scripts/release_sweep.py --release 42
"""

from __future__ import annotations

import argparse
import importlib
import json

from dotenv import load_dotenv

from smart_office.common.logging_setup import configure_logging
from smart_office.config import get_settings_module
from smart_office.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="report candidates without changing anything")
    parser.add_argument("--release", type=int, metavar="RESERVATION_ID", help="release one reservation now")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=settings.DB_CONFIG, engine=getattr(settings, "ENGINE", None))

    if args.release is not None:
        reservation = container.release_scheduler.release_now(args.release)
        print(json.dumps(reservation.to_dict(), indent=2))
        return

    report = container.release_scheduler.sweep(dry_run=args.dry_run)
    print(json.dumps(report.to_dict(), indent=2))


if __name__ == "__main__":
    main()
