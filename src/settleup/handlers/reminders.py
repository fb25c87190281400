from __future__ import annotations

from html import escape
from typing import Optional

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from settleup.db.repo import SettleUpRepository
from settleup.logging import get_logger
from settleup.services.errors import DispatchFailure, GroupNotFound, InvalidExpense, Unauthenticated, Unauthorized
from settleup.services.reminders import ReminderService

reminders_router = Router()


def format_cents(amount_cents: int) -> str:
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{whole}.{cents:02d}"


def format_balances(group_name: str, balances: dict[str, int]) -> str:
    lines = [f"<b>{escape(group_name)}</b>"]
    for user_id, balance in balances.items():
        if balance > 0:
            state = "is owed"
        elif balance < 0:
            state = "owes"
        else:
            state = "settled"
        lines.append(f"<code>{escape(user_id)}</code>: {format_cents(balance)} ({state})")
    return "\n".join(lines)


async def _caller_id(message: Message, repo: SettleUpRepository) -> Optional[str]:
    if not message.from_user:
        return None
    return await repo.get_user_id_by_tg(message.from_user.id)


def _error_reply(exc: Exception) -> str:
    if isinstance(exc, Unauthenticated):
        return "Send /start first so I know who you are."
    if isinstance(exc, GroupNotFound):
        return "Group not found."
    if isinstance(exc, Unauthorized):
        return "You are not a member of this group."
    if isinstance(exc, InvalidExpense):
        return "This group has an invalid expense, balances cannot be computed."
    return "Failed to send reminder."


@reminders_router.message(Command("remind"))
async def cmd_remind(
    message: Message,
    command: CommandObject,
    repo: SettleUpRepository,
    reminders: ReminderService,
) -> None:
    group_id = (command.args or "").strip()
    if not group_id:
        await message.answer("Usage: /remind GROUP_ID")
        return

    log = get_logger(__name__)
    caller_id = await _caller_id(message, repo)
    try:
        result = await reminders.send_group_reminder(group_id, caller_id)
    except (Unauthenticated, Unauthorized, GroupNotFound, InvalidExpense, DispatchFailure) as exc:
        log.info("command.remind.rejected", group_id=group_id, error=type(exc).__name__)
        await message.answer(_error_reply(exc))
        return

    if result.success:
        await message.answer(f"Reminder sent to {result.tokens_sent} chat(s).")
    else:
        await message.answer(result.message or "Nothing was sent.")


@reminders_router.message(Command("balances"))
async def cmd_balances(
    message: Message,
    command: CommandObject,
    repo: SettleUpRepository,
    reminders: ReminderService,
) -> None:
    group_id = (command.args or "").strip()
    if not group_id:
        await message.answer("Usage: /balances GROUP_ID")
        return

    caller_id = await _caller_id(message, repo)
    try:
        group, balances = await reminders.group_balances(group_id, caller_id)
    except (Unauthenticated, Unauthorized, GroupNotFound, InvalidExpense) as exc:
        await message.answer(_error_reply(exc))
        return

    await message.answer(format_balances(group.name, balances))
