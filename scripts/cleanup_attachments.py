"""Delete orphaned attachments (no owner) older than --since minutes.

Usage:
    python -m scripts.cleanup_attachments [--since MINUTES] [--yes]
Asks for confirmation unless --yes is given. Each batch is committed before
the next one is fetched, so an interrupted run can simply be started again.
Requires DATABASE_URL.
"""

import argparse
import asyncio
import sys
from collections.abc import Callable

from attachments.application.use_cases.attachments import (
    AttachmentDeletionService,
    CleanupSweeper,
    DeleteCascade,
)
from attachments.core.config import get_settings
from attachments.core.constants import DEFAULT_CLEANUP_SINCE_MINUTES
from attachments.domain.exceptions import SqlNotConfiguredException
from attachments.infrastructure.external.storage.factory import StorageFactory
from attachments.infrastructure.persistence.database import dispose_engine, get_session_factory
from attachments.infrastructure.persistence.repositories import AttachmentRepository
from attachments.shared.telemetry.logging import setup_logging

CONFIRM_PROMPT = "Delete orphaned attachments older than {since} minutes? [y/N] "


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cleanup_attachments",
        description="Remove attachments that were never bound to an owner.",
    )
    parser.add_argument(
        "-s",
        "--since",
        type=int,
        default=DEFAULT_CLEANUP_SINCE_MINUTES,
        help="Minimum age in minutes of the orphans to delete (default: %(default)s)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )
    args = parser.parse_args(argv)
    if args.since < 0:
        parser.error("--since must be >= 0")
    return args


def confirmed(since: int, ask: Callable[[str], str] | None = None) -> bool:
    """Return True when the operator answers yes (ask defaults to input)."""
    try:
        answer = (ask or input)(CONFIRM_PROMPT.format(since=since))
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def print_progress(processed: int, total: int) -> None:
    print(f"\r{processed}/{total}", end="", flush=True)


async def run(since: int) -> int:
    """Sweep orphans and print progress. Returns the number deleted."""
    settings = get_settings()
    session_factory = get_session_factory()
    storage_factory = StorageFactory(settings)
    cascade = DeleteCascade(storage_factory, settings.storage_prefix)

    try:
        async with session_factory() as session:
            repo = AttachmentRepository(session)
            sweeper = CleanupSweeper(
                repo,
                AttachmentDeletionService(repo, cascade, settings),
                settings,
                after_batch=session.commit,
            )
            result = await sweeper.sweep(since_minutes=since, on_progress=print_progress)
            await session.commit()
    finally:
        await dispose_engine()

    if result.is_empty:
        print("No orphaned attachments to delete.")
    else:
        print()
        print(f"Done. Deleted {result.deleted} of {result.matched} orphaned attachment(s).")
    return result.deleted


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()
    if not args.yes and not confirmed(args.since):
        print("Aborted.")
        return 0
    try:
        asyncio.run(run(args.since))
    except SqlNotConfiguredException:
        print("DATABASE_URL is not configured", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
