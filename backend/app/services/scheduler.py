"""Background execution of the stale live session and inactive group sweeps.

The sweeps run as asyncio tasks inside the API process (see ``start_reapers``)
or standalone through the CLI::

    python -m app.services.scheduler --job stale
    python -m app.services.scheduler --job groups --loop
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Callable

from app.config import get_settings
from app.database import get_db_session
from app.services.group_reaper import cleanup_inactive_groups
from app.services.live_reaper import end_stale_live_sessions
from grouplive.presence import utcnow
from grouplive.schedule import next_daily_run, parse_clock, seconds_until

logger = logging.getLogger(__name__)

SweepFn = Callable[..., dict[str, int]]

_tasks: list[asyncio.Task] = []


def run_sweep(sweep: SweepFn) -> dict[str, int]:
    """Run one sweep inside a fresh database session."""

    with get_db_session() as db:
        return sweep(db)


def run_stale_sweep() -> dict[str, int]:
    return run_sweep(end_stale_live_sessions)


def run_group_cleanup() -> dict[str, int]:
    return run_sweep(cleanup_inactive_groups)


def next_group_cleanup(after: datetime | None = None) -> datetime:
    """Return the next scheduled cleanup instant.

    With ``after`` (the previous run's target) the result is at least one
    second past it, so a sleep that wakes slightly early cannot schedule the
    same day twice.
    """

    settings = get_settings()
    base = utcnow()
    if after is not None:
        base = max(base, after + timedelta(seconds=1))
    return next_daily_run(
        base, parse_clock(settings.group_cleanup_time), settings.group_cleanup_timezone
    )


async def stale_sweep_loop() -> None:
    interval = get_settings().stale_live_sweep_interval_seconds
    while True:
        try:
            await asyncio.to_thread(run_stale_sweep)
        except Exception as e:
            logger.error(f"Error in stale live sweep loop: {e}", exc_info=True)
        await asyncio.sleep(interval)


async def group_cleanup_loop() -> None:
    previous: datetime | None = None
    while True:
        previous = next_group_cleanup(after=previous)
        delay = seconds_until(previous, utcnow())
        logger.info(f"Next inactive group sweep in {delay:.0f}s")
        await asyncio.sleep(delay)
        try:
            await asyncio.to_thread(run_group_cleanup)
        except Exception as e:
            logger.error(f"Error in inactive group sweep loop: {e}", exc_info=True)


async def start_reapers() -> None:
    if _tasks:
        return
    _tasks.append(asyncio.create_task(stale_sweep_loop(), name="stale-live-sweep"))
    _tasks.append(asyncio.create_task(group_cleanup_loop(), name="inactive-group-sweep"))
    logger.info("Periodic sweeps started")


async def stop_reapers() -> None:
    for task in _tasks:
        task.cancel()
    for task in _tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
    _tasks.clear()


def _create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the stale live session sweep or the inactive group cleanup.",
    )
    parser.add_argument(
        "--job",
        choices=("stale", "groups"),
        required=True,
        help="Which sweep to run.",
    )
    parser.add_argument(
        "--loop",
        action="store_true",
        help="Keep running on the configured schedule instead of sweeping once.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging verbosity (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser


def main() -> None:
    parser = _create_argument_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    job = run_stale_sweep if args.job == "stale" else run_group_cleanup
    if not args.loop:
        job()
        return

    previous: datetime | None = None
    try:
        while True:
            job()
            if args.job == "stale":
                time.sleep(get_settings().stale_live_sweep_interval_seconds)
            else:
                previous = next_group_cleanup(after=previous)
                time.sleep(seconds_until(previous, utcnow()))
    except KeyboardInterrupt:
        logger.info("Sweep loop interrupted; exiting")


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
