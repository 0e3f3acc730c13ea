"""Geocode donations that were saved while the geocoder was unavailable.

Run from backend/:

    python -m scripts.backfill_coordinates --limit 200
"""

import argparse
import asyncio
import logging

from sharecycle.core.config import settings
from sharecycle.db.session import async_session_factory
from sharecycle.services.donations import backfill_coordinates
from sharecycle.services.geocoding import get_geocoder

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fill in pickup coordinates for active donations that have none."
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Process at most this many donations (default: all)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=1.0,
        help="Seconds between geocoder calls (default: %(default)s)",
    )
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    async with async_session_factory() as session:
        report = await backfill_coordinates(
            session, get_geocoder(), limit=args.limit, delay=args.delay
        )
        await session.commit()

    print(
        f"Total: {report.total}  Processed: {report.processed}  "
        f"Updated: {report.successful}  Failed: {report.failed}"
    )
    for failure in report.errors:
        print(f"- {failure.donation_id}: {failure.address} ({failure.error})")
    return 1 if report.failed else 0


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    raise SystemExit(asyncio.run(main()))
