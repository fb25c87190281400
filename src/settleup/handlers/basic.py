from __future__ import annotations

from html import escape

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from settleup.db.repo import SettleUpRepository
from settleup.logging import get_logger

basic_router = Router()

HELP_TEXT = (
    "/balances GROUP_ID - show balances in a group\n"
    "/remind GROUP_ID - send a settle-up reminder to the group\n"
    "/help - this message"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message, repo: SettleUpRepository) -> None:
    user = message.from_user
    if not user:
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    await repo.add_delivery_token(user_id, str(message.chat.id))
    get_logger(__name__).info("user.registered", user_id=user_id, chat_id=message.chat.id)

    await message.answer(
        f"Hi, {escape(user.first_name)}! Your id is <code>{user_id}</code>.\n"
        "You will receive settle-up reminders in this chat.\n\n" + HELP_TEXT
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)
