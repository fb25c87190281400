from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True, slots=True)
class Expense:
    """A shared expense: ``paid_by`` covered ``amount_cents`` for ``split_among``.

    Repeated participants in ``split_among`` collapse to one, keeping the order
    of first occurrence.
    """

    paid_by: str
    amount_cents: int
    split_among: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "split_among", tuple(dict.fromkeys(self.split_among)))


@dataclass(frozen=True, slots=True)
class Group:
    id: str
    name: str
    member_user_ids: tuple[str, ...]

    def has_member(self, user_id: str) -> bool:
        return user_id in self.member_user_ids


def group_from_row(row, member_ids: Iterable[str]) -> Group:
    return Group(id=str(row["id"]), name=row["name"], member_user_ids=tuple(member_ids))


def expense_from_row(row) -> Expense:
    return Expense(
        paid_by=row["paid_by"],
        amount_cents=int(row["amount_cents"]),
        split_among=tuple(row["split_among"] or ()),
    )
