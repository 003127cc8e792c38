"""Rebuild the PR ledger from lift log history.

Usage (from repo root):
    python -m scripts.calculate_historical_prs [--user UUID] [--exercise UUID] [--dry-run]

Each (user, exercise) scope is recalculated in its own transaction; a failing
scope is reported and the rest still run. Exit code 1 when any scope failed.
"""

import argparse
import asyncio
import logging
import sys
import uuid

from prledger.core.logging import configure_logging
from prledger.db.session import async_session_maker, engine
from prledger.services.pr_recalculation import RecalculationReport, recalculate_all

logger = logging.getLogger("scripts.calculate_historical_prs")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Recalculate personal records from lift log history.")
    parser.add_argument("--user", type=uuid.UUID, default=None, help="only this user id")
    parser.add_argument("--exercise", type=uuid.UUID, default=None, help="only this exercise id")
    parser.add_argument("--dry-run", action="store_true", help="list matching scopes without writing")
    return parser.parse_args(argv)


def print_report(report: RecalculationReport, dry_run: bool) -> None:
    verb = "Would recalculate" if dry_run else "Recalculated"
    print(f"{verb} {report.processed}/{report.scopes} scope(s), {report.records} record(s) written.")
    for user_id, exercise_id, error in report.errors:
        print(f"  FAILED user={user_id} exercise={exercise_id}: {error}")


async def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()
    logger.info("Starting PR recalculation (user=%s exercise=%s dry_run=%s)", args.user, args.exercise, args.dry_run)
    try:
        report = await recalculate_all(
            async_session_maker,
            user_id=args.user,
            exercise_id=args.exercise,
            dry_run=args.dry_run,
        )
    finally:
        await engine.dispose()
    print_report(report, args.dry_run)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
