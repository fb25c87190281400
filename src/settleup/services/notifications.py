from __future__ import annotations

from dataclasses import dataclass, field
from html import escape
from typing import Mapping, Protocol

from aiogram import Bot
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError

from settleup.logging import get_logger
from settleup.services.errors import DispatchFailure


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    body: str
    data: Mapping[str, str] = field(default_factory=dict)
    tokens: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DispatchResult:
    success_count: int
    failure_count: int


class NotificationDispatcher(Protocol):
    async def send(self, notification: Notification) -> DispatchResult: ...


def render_message(notification: Notification) -> str:
    return f"<b>{escape(notification.title)}</b>\n{escape(notification.body)}"


class TelegramDispatcher:
    """Delivers notifications as bot messages; each token is a Telegram chat id.

    Every token gets a single attempt. Individual failures are logged and
    counted; :class:`DispatchFailure` is raised only when nothing was delivered.
    """

    def __init__(self, bot: Bot) -> None:
        self._bot = bot
        self._log = get_logger(__name__)

    async def send(self, notification: Notification) -> DispatchResult:
        text = render_message(notification)
        success = 0
        failed = 0

        for token in notification.tokens:
            try:
                await self._bot.send_message(token, text, parse_mode=ParseMode.HTML)
            except TelegramAPIError as exc:
                failed += 1
                self._log.warning(
                    "dispatch.token_failed",
                    token=token,
                    error=str(exc),
                    data=dict(notification.data),
                )
            else:
                success += 1

        if notification.tokens and success == 0:
            raise DispatchFailure(f"delivery failed for all {failed} token(s)")

        self._log.info("dispatch.sent", success=success, failed=failed, data=dict(notification.data))
        return DispatchResult(success_count=success, failure_count=failed)
