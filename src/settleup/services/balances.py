from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from settleup.db.models import Expense
from settleup.services.errors import InvalidExpense, UnknownMember

DEFAULT_DEBT_THRESHOLD_CENTS = 100


@dataclass(frozen=True, slots=True)
class Debtor:
    user_id: str
    balance_cents: int


def _validate(expense: Expense, members: set[str] | None) -> None:
    if not expense.split_among:
        raise InvalidExpense("split_among must not be empty")
    if expense.amount_cents < 0:
        raise InvalidExpense("amount_cents must be non-negative")
    if members is not None:
        for user_id in (expense.paid_by, *expense.split_among):
            if user_id not in members:
                raise UnknownMember(user_id)


def compute_balances(
    expenses: Sequence[Expense],
    member_ids: Iterable[str],
    *,
    strict: bool = False,
) -> dict[str, int]:
    """Net balance per member, in cents. Positive means the member is owed money.

    Each expense credits its full amount to the payer and debits
    ``amount_cents // len(split_among)`` from every participant. The division
    remainder is not redistributed, so a single expense may leave up to
    ``len(split_among) - 1`` cents unaccounted for.

    Participants missing from ``member_ids`` still get an entry unless
    ``strict`` is set, in which case :class:`UnknownMember` is raised.
    """
    balances: dict[str, int] = {user_id: 0 for user_id in member_ids}
    members = set(balances) if strict else None

    for expense in expenses:
        _validate(expense, members)
        share = expense.amount_cents // len(expense.split_among)

        balances[expense.paid_by] = balances.get(expense.paid_by, 0) + expense.amount_cents
        for user_id in expense.split_among:
            balances[user_id] = balances.get(user_id, 0) - share

    return balances


def find_debtors(
    balances: Mapping[str, int],
    threshold_cents: int = DEFAULT_DEBT_THRESHOLD_CENTS,
) -> list[Debtor]:
    # strictly below -threshold: a member owing exactly the threshold is not flagged
    return [
        Debtor(user_id=user_id, balance_cents=balance)
        for user_id, balance in balances.items()
        if balance < -threshold_cents
    ]
