from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from settleup.config import Settings
from settleup.logging import get_logger
from settleup.services.reminders import ReminderService

SETTLE_REMINDERS_JOB_ID = "settle_reminders"


def setup_scheduler(settings: Settings, reminders: ReminderService) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.zoneinfo)
    scheduler.add_job(
        _settle_reminders_job,
        CronTrigger(hour=settings.reminder_hour, minute=settings.reminder_minute, timezone=settings.zoneinfo),
        id=SETTLE_REMINDERS_JOB_ID,
        kwargs={"reminders": reminders},
        replace_existing=True,
    )
    return scheduler


async def _settle_reminders_job(reminders: ReminderService) -> None:
    log = get_logger(__name__)
    log.info("reminder.run_started")
    await reminders.send_settle_reminders()
