"""
Refresh favorite details.

Loads the persisted favorites and runs one explicit reconciliation pass
against PokéAPI, retrying any details that failed before.

Usage:
    python -m pokefaves.jobs.refresh_details --batch-size 10 --delay 0.1
"""

import argparse
import asyncio
import logging

from pokefaves.config import settings
from pokefaves.db.database import init_db
from pokefaves.services.reconciler import ReconcileReport
from pokefaves.services.session import FavoritesSession

logger = logging.getLogger(__name__)


async def run_refresh(session: FavoritesSession) -> ReconcileReport | None:
    """
    Load favorites and reconcile their details once.

    Returns:
        The pass report, or None if the pass could not start
    """
    await session.start(reconcile=False)
    try:
        outcome = await session.reconciler.refresh()
    finally:
        await session.close()

    if not outcome.ok or outcome.value is None:
        logger.error("Refresh did not run: %s", outcome.failure.message if outcome.failure else "")
        return None

    report = outcome.value
    logger.info(
        "Refreshed %d favorites: %d fetched, %d failed",
        len(session.favorites),
        len(report.fetched),
        len(report.failed),
    )
    for favorite_id, reason in report.failed.items():
        logger.warning("Pokemon %d: %s", favorite_id, reason)
    return report


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Refresh details for favorited Pokémon")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.batch_size,
        help=f"Ids fetched concurrently per batch (default: {settings.batch_size})",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.batch_delay_seconds,
        help=f"Seconds between batches (default: {settings.batch_delay_seconds})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = settings.model_copy(
        update={"batch_size": args.batch_size, "batch_delay_seconds": args.delay}
    )

    async def _run() -> ReconcileReport | None:
        await init_db()
        return await run_refresh(FavoritesSession.from_settings(config))

    report = asyncio.run(_run())
    if report is None:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
