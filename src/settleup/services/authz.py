from __future__ import annotations

from typing import Optional

from settleup.db.models import Group
from settleup.services.errors import Unauthenticated, Unauthorized


def is_group_member(group: Group, user_id: str) -> bool:
    return group.has_member(user_id)


def assert_authenticated(caller_id: Optional[str]) -> str:
    if not caller_id:
        raise Unauthenticated("Must be authenticated")
    return caller_id


def assert_group_member(group: Group, user_id: str) -> None:
    if not is_group_member(group, user_id):
        raise Unauthorized("Not a group member")
