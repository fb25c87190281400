import pytest

from settleup.db.models import Expense, Group
from settleup.db.repo import SettleUpRepository, asyncpg_dsn, sqlalchemy_asyncpg_url
from settleup.services.errors import InvalidExpense
from settleup.services.reminders import ReminderService
from settleup.services.notifications import DispatchResult


class DummyDB:
    def __init__(self) -> None:
        self.groups = {"g1": {"id": "g1", "name": "Flat"}}
        self.members = {"g1": ["u1", "u2"]}
        self.expenses = {
            "g1": [
                {"id": 1, "paid_by": "u1", "amount_cents": 900, "split_among": ["u1", "u2"]},
                {"id": 2, "paid_by": "u2", "amount_cents": 100, "split_among": None},
            ]
        }
        self.tokens = {"u1": ["100", "101"]}
        self.executed: list[tuple] = []

    async def fetchrow(self, query: str, *args):
        if "FROM groups" in query:
            return self.groups.get(args[0])
        return None

    async def fetch(self, query: str, *args):
        if "FROM group_members" in query:
            return [{"user_id": user_id} for user_id in self.members.get(args[0], [])]
        if "FROM groups" in query:
            return [dict(row, member_user_ids=self.members.get(row["id"])) for row in self.groups.values()]
        if "FROM expenses" in query:
            return self.expenses.get(args[0], [])
        if "FROM user_delivery_tokens" in query:
            return [{"token": token} for token in self.tokens.get(args[0], [])]
        return []

    async def execute(self, query: str, *args):
        self.executed.append((query, args))
        return "INSERT 0 1"


@pytest.mark.asyncio
async def test_get_group_maps_roster():
    repo = SettleUpRepository(DummyDB())  # type: ignore[arg-type]
    assert await repo.get_group("g1") == Group(id="g1", name="Flat", member_user_ids=("u1", "u2"))
    assert await repo.get_group("missing") is None


@pytest.mark.asyncio
async def test_list_groups():
    repo = SettleUpRepository(DummyDB())  # type: ignore[arg-type]
    assert await repo.list_groups() == [Group(id="g1", name="Flat", member_user_ids=("u1", "u2"))]


@pytest.mark.asyncio
async def test_get_group_expenses_without_splits_maps_to_empty_split():
    repo = SettleUpRepository(DummyDB())  # type: ignore[arg-type]
    expenses = await repo.get_group_expenses("g1")
    assert expenses == [
        Expense(paid_by="u1", amount_cents=900, split_among=("u1", "u2")),
        Expense(paid_by="u2", amount_cents=100, split_among=()),
    ]


@pytest.mark.asyncio
async def test_get_delivery_tokens():
    repo = SettleUpRepository(DummyDB())  # type: ignore[arg-type]
    assert await repo.get_delivery_tokens("u1") == ["100", "101"]
    assert await repo.get_delivery_tokens("u2") == []


@pytest.mark.asyncio
async def test_add_delivery_token():
    db = DummyDB()
    repo = SettleUpRepository(db)  # type: ignore[arg-type]
    await repo.add_delivery_token("u1", "555")
    assert db.executed[0][1] == ("u1", "555")


class NullDispatcher:
    async def send(self, notification):
        return DispatchResult(success_count=len(notification.tokens), failure_count=0)


@pytest.mark.asyncio
async def test_expense_without_splits_fails_group_balances():
    repo = SettleUpRepository(DummyDB())  # type: ignore[arg-type]
    service = ReminderService(store=repo, directory=repo, dispatcher=NullDispatcher())
    with pytest.raises(InvalidExpense):
        await service.group_balances("g1", "u1")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql://app:pw@db:5432/settleup", "postgresql+asyncpg://app:pw@db:5432/settleup"),
        ("postgresql+asyncpg://app:pw@db/settleup", "postgresql+asyncpg://app:pw@db/settleup"),
        ("postgres://db/settleup", "postgresql+asyncpg://db/settleup"),
    ],
)
def test_sqlalchemy_asyncpg_url(url, expected):
    assert sqlalchemy_asyncpg_url(url) == expected


def test_sqlalchemy_asyncpg_url_rejects_other_databases():
    with pytest.raises(ValueError):
        sqlalchemy_asyncpg_url("sqlite:///settleup.db")


def test_asyncpg_dsn_strips_driver():
    assert asyncpg_dsn("postgresql+asyncpg://db/settleup") == "postgresql://db/settleup"
    assert asyncpg_dsn("postgresql://db/settleup") == "postgresql://db/settleup"
