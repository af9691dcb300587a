# src/petsocial_moderation/scripts/sweeps.py
"""Cron entry point for the scheduled moderation sweeps.

Example crontab::

    */5 * * * * python -m petsocial_moderation.scripts.sweeps audit-queue
    0 3 * * *   python -m petsocial_moderation.scripts.sweeps retention
"""
from __future__ import annotations

import argparse
import logging
import sys

from petsocial_moderation.core.settings import settings
from petsocial_moderation.db.session import SessionLocal
from petsocial_moderation.services.maintenance import (
    run_all_sweeps,
    run_audit_queue_sweep,
    run_retention_sweep,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run moderation maintenance sweeps.")
    parser.add_argument(
        "job",
        choices=["audit-queue", "retention", "all"],
        help="Which sweep to run.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())

    with SessionLocal() as db:
        if args.job == "audit-queue":
            print(f"Replayed {run_audit_queue_sweep(db)} queued audit entries")
        elif args.job == "retention":
            print(f"Purged {run_retention_sweep(db)} expired soft-delete records")
        else:
            report = run_all_sweeps(db)
            print(
                f"Replayed {report.audit_entries_replayed} queued audit entries, "
                f"purged {report.soft_deletes_purged} expired soft-delete records"
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
