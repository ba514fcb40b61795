import asyncio
import logging
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import settings
from core.database import get_habit_store
from core.habit_store import HabitStore
from core.time_utils import get_current_time, get_reference_timezone

log = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

async def recalc_all_habits(store: HabitStore, concurrency: Optional[int] = None) -> Dict[str, int]:
    """
    Recomputes every habit's metrics so streaks roll forward without user activity.

    A fixed pool of workers drains a bounded queue fed from the habit ids,
    so neither tasks nor pending ids grow with the number of habits.
    Each recompute is the store's own fetch -> compute -> conditional write,
    so it cannot clobber a concurrent progress or freeze update.
    A failing habit is logged and counted; the sweep carries on.
    """
    now = get_current_time(store.tz)
    log.info("[%s] Recalculating habit metrics...", now)

    workers = concurrency or settings.RECALC_CONCURRENCY
    queue: asyncio.Queue = asyncio.Queue(maxsize=workers * 2)
    summary = {"processed": 0, "updated": 0, "failed": 0}

    async def worker():
        while True:
            habit_id = await queue.get()
            try:
                habit = await store.recompute(habit_id)
                if habit is not None:
                    summary["updated"] += 1
            except Exception:
                log.exception("Error recalculating habit %s", habit_id)
                summary["failed"] += 1
            finally:
                summary["processed"] += 1
                queue.task_done()

    pool = [asyncio.create_task(worker()) for _ in range(workers)]
    try:
        async for habit_id in store.habit_ids():
            await queue.put(habit_id)
        await queue.join()
    finally:
        for task in pool:
            task.cancel()
        await asyncio.gather(*pool, return_exceptions=True)

    log.info("[%s] Habit recalculation completed: %s", get_current_time(store.tz), summary)
    return summary

async def run_daily_recalc():
    await recalc_all_habits(get_habit_store())

def start_scheduler():
    # Shortly after midnight in the reference zone, once "yesterday" has concluded
    trigger = CronTrigger(
        hour=settings.RECALC_HOUR,
        minute=settings.RECALC_MINUTE,
        timezone=get_reference_timezone(),
    )
    scheduler.add_job(run_daily_recalc, trigger, id="recalc_habits", replace_existing=True)
    scheduler.start()
    log.info("Habit recalculation scheduled daily at %02d:%02d %s",
             settings.RECALC_HOUR, settings.RECALC_MINUTE, settings.REFERENCE_TIMEZONE)

def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
