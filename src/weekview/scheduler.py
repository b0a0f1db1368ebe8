"""Periodic refresh for long-running views."""

import logging
from datetime import datetime, tzinfo
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .core.window import InfiniteDayWindow, WindowSnapshot

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[WindowSnapshot], None]


async def refresh_window(window: InfiniteDayWindow, on_refreshed: RefreshCallback | None = None) -> None:
    """
    Re-check access and reload every materialized day.

    A permission change to granted already reloads the window, so the
    foreground refresh only runs when that did not happen.
    """
    previous = window.access
    status = await window.check_access()
    reloaded = previous is not None and status != previous and status.any_granted
    if not reloaded:
        window.on_foreground()
    await window.wait_idle()
    logger.info(f"Refreshed {len(window.dates)} days")
    if on_refreshed is not None:
        on_refreshed(window.snapshot())


async def roll_over_day(window: InfiniteDayWindow, on_refreshed: RefreshCallback | None = None) -> None:
    """At midnight, move the selection to the new day and refresh."""
    today = datetime.now(window.tz).date()
    logger.info(f"Day changed to {today.isoformat()}")
    window.select_date(today)
    await refresh_window(window, on_refreshed)


def setup_scheduler(
    window: InfiniteDayWindow,
    interval_minutes: int,
    tz: tzinfo,
    on_refreshed: RefreshCallback | None = None,
) -> AsyncIOScheduler:
    """Set up the periodic refresh and the midnight roll-over."""
    scheduler = AsyncIOScheduler(timezone=tz)

    scheduler.add_job(
        refresh_window,
        IntervalTrigger(minutes=interval_minutes),
        args=[window, on_refreshed],
        id="refresh_window",
        coalesce=True,
        max_instances=1,
    )
    logger.info(f"Scheduled refresh every {interval_minutes} minutes")

    scheduler.add_job(
        roll_over_day,
        CronTrigger(hour=0, minute=0, timezone=tz),
        args=[window, on_refreshed],
        id="roll_over_day",
        coalesce=True,
    )

    return scheduler
