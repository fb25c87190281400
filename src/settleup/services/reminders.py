from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence

from settleup.db.models import Expense, Group
from settleup.logging import get_logger
from settleup.services.authz import assert_authenticated, assert_group_member
from settleup.services.balances import DEFAULT_DEBT_THRESHOLD_CENTS, Debtor, compute_balances, find_debtors
from settleup.services.errors import DispatchFailure, GroupNotFound, InvalidExpense
from settleup.services.notifications import DispatchResult, Notification, NotificationDispatcher

SETTLE_REMINDER = "settle_reminder"
MANUAL_REMINDER = "manual_reminder"
NO_TOKENS_MESSAGE = "No delivery tokens found"


class GroupStore(Protocol):
    async def list_groups(self) -> list[Group]: ...

    async def get_group(self, group_id: str) -> Optional[Group]: ...

    async def get_group_expenses(self, group_id: str) -> list[Expense]: ...


class UserDirectory(Protocol):
    async def get_delivery_tokens(self, user_id: str) -> list[str]: ...


@dataclass(frozen=True, slots=True)
class ReminderResult:
    success: bool
    tokens_sent: Optional[int] = None
    message: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "tokensSent": self.tokens_sent}
        return {"success": False, "message": self.message}


@dataclass(slots=True)
class ReminderRunSummary:
    notified: int = 0
    skipped: int = 0
    failed: int = 0


def build_settle_reminder(group: Group, debtors: Sequence[Debtor], tokens: Sequence[str]) -> Notification:
    return Notification(
        title=f"Settle up in {group.name}",
        body=f"{len(debtors)} member(s) owe money. Time to settle up!",
        data={"groupId": group.id, "type": SETTLE_REMINDER},
        tokens=tuple(tokens),
    )


def build_manual_reminder(group: Group, tokens: Sequence[str]) -> Notification:
    return Notification(
        title=f"Settle up in {group.name}",
        body="Someone requested a settlement reminder for this group",
        data={"groupId": group.id, "type": MANUAL_REMINDER},
        tokens=tuple(tokens),
    )


class ReminderService:
    """Computes group balances and fans reminders out to group members.

    Balance and debtor selection is pure; token resolution and delivery go
    through the injected ``directory`` and ``dispatcher``.
    """

    def __init__(
        self,
        store: GroupStore,
        directory: UserDirectory,
        dispatcher: NotificationDispatcher,
        threshold_cents: int = DEFAULT_DEBT_THRESHOLD_CENTS,
    ) -> None:
        self.store = store
        self.directory = directory
        self.dispatcher = dispatcher
        self.threshold_cents = threshold_cents
        self._log = get_logger(__name__)

    async def resolve_tokens(self, member_ids: Iterable[str]) -> list[str]:
        tokens: list[str] = []
        for user_id in member_ids:
            tokens.extend(await self.directory.get_delivery_tokens(user_id))
        return list(dict.fromkeys(tokens))

    async def compute_group_balances(self, group: Group) -> dict[str, int]:
        expenses = await self.store.get_group_expenses(group.id)
        return compute_balances(expenses, group.member_user_ids)

    async def remind_group(self, group: Group) -> Optional[DispatchResult]:
        balances = await self.compute_group_balances(group)
        debtors = find_debtors(balances, self.threshold_cents)
        if not debtors:
            return None

        tokens = await self.resolve_tokens(group.member_user_ids)
        if not tokens:
            self._log.info("reminder.no_tokens", group_id=group.id)
            return None

        result = await self.dispatcher.send(build_settle_reminder(group, debtors, tokens))
        self._log.info("reminder.sent", group_id=group.id, tokens=len(tokens), debtors=len(debtors))
        return result

    async def send_settle_reminders(self) -> ReminderRunSummary:
        summary = ReminderRunSummary()
        groups = await self.store.list_groups()

        for group in groups:
            try:
                result = await self.remind_group(group)
            except InvalidExpense as exc:
                summary.failed += 1
                self._log.error("reminder.invalid_expense", group_id=group.id, error=str(exc))
                continue
            except DispatchFailure as exc:
                summary.failed += 1
                self._log.error("reminder.dispatch_failed", group_id=group.id, error=str(exc))
                continue
            except Exception:
                summary.failed += 1
                self._log.exception("reminder.group_failed", group_id=group.id)
                continue

            if result is None:
                summary.skipped += 1
            else:
                summary.notified += 1

        self._log.info(
            "reminder.run_finished",
            groups=len(groups),
            notified=summary.notified,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary

    async def _load_group_for(self, group_id: str, caller_id: Optional[str]) -> Group:
        caller = assert_authenticated(caller_id)
        group = await self.store.get_group(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        assert_group_member(group, caller)
        return group

    async def group_balances(self, group_id: str, caller_id: Optional[str]) -> tuple[Group, dict[str, int]]:
        group = await self._load_group_for(group_id, caller_id)
        return group, await self.compute_group_balances(group)

    async def send_group_reminder(self, group_id: str, caller_id: Optional[str]) -> ReminderResult:
        group = await self._load_group_for(group_id, caller_id)
        balances = await self.compute_group_balances(group)

        tokens = await self.resolve_tokens(group.member_user_ids)
        if not tokens:
            return ReminderResult(success=False, message=NO_TOKENS_MESSAGE)

        try:
            await self.dispatcher.send(build_manual_reminder(group, tokens))
        except DispatchFailure:
            self._log.exception("reminder.manual_failed", group_id=group_id)
            raise

        self._log.info(
            "reminder.manual_sent",
            group_id=group_id,
            caller_id=caller_id,
            tokens=len(tokens),
            debtors=len(find_debtors(balances, self.threshold_cents)),
        )
        return ReminderResult(success=True, tokens_sent=len(tokens))
