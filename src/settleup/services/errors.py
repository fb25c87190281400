from __future__ import annotations


class SettleUpError(Exception):
    """Base class for errors raised by SettleUp services."""


class InvalidExpense(SettleUpError, ValueError):
    pass


class UnknownMember(InvalidExpense):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"user {user_id!r} is not a member of the group")
        self.user_id = user_id


class Unauthenticated(SettleUpError):
    pass


class Unauthorized(SettleUpError, PermissionError):
    pass


class GroupNotFound(SettleUpError, LookupError):
    def __init__(self, group_id: str) -> None:
        super().__init__(f"group {group_id!r} not found")
        self.group_id = group_id


class DispatchFailure(SettleUpError):
    pass
