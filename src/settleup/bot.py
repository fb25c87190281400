from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from settleup.config import get_settings
from settleup.db.repo import Database, SettleUpRepository
from settleup.handlers import basic_router, reminders_router
from settleup.logging import configure_logging, get_logger
from settleup.scheduler import setup_scheduler
from settleup.services.notifications import TelegramDispatcher
from settleup.services.reminders import ReminderService


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    log = get_logger(__name__)

    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    db = Database(settings.database_url)
    await db.connect()
    repo = SettleUpRepository(db)
    reminders = ReminderService(
        store=repo,
        directory=repo,
        dispatcher=TelegramDispatcher(bot),
        threshold_cents=settings.debt_threshold_cents,
    )

    # handlers receive these as keyword arguments
    dp = Dispatcher(repo=repo, reminders=reminders)
    dp.include_router(basic_router)
    dp.include_router(reminders_router)

    scheduler = setup_scheduler(settings, reminders)
    scheduler.start()

    log.info("bot.start", tz=settings.tz, hour=settings.reminder_hour, minute=settings.reminder_minute)
    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown(wait=False)
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
