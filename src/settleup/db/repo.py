from __future__ import annotations

from typing import Any, Optional

import asyncpg

from settleup.db.models import Expense, Group, expense_from_row, group_from_row
from settleup.logging import get_logger, sql_logger


def asyncpg_dsn(url: str) -> str:
    """DSN for asyncpg itself, which only accepts postgresql:// and postgres://."""
    return url.replace("+asyncpg", "", 1)


def sqlalchemy_asyncpg_url(url: str) -> str:
    """The same database as a SQLAlchemy URL on the asyncpg driver."""
    scheme, sep, rest = asyncpg_dsn(url).partition("://")
    if not sep or scheme not in ("postgres", "postgresql"):
        raise ValueError(f"unsupported database url scheme: {scheme!r}")
    return f"postgresql+asyncpg://{rest}"


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(asyncpg_dsn(self._dsn))
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        pool = await self._ensure_pool()
        sql_logger.debug("sql.fetch", query=query, args=args)
        return await pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._ensure_pool()
        sql_logger.debug("sql.fetchrow", query=query, args=args)
        return await pool.fetchrow(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        pool = await self._ensure_pool()
        sql_logger.debug("sql.execute", query=query, args=args)
        return await pool.execute(query, *args)

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            await self.connect()
        assert self._pool
        return self._pool


class SettleUpRepository:
    """Read access to groups, expenses and delivery tokens.

    Groups and expenses are written by the host application; this side only
    registers users and their delivery tokens.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def ensure_user(self, tg_id: int, username: Optional[str], full_name: Optional[str]) -> str:
        row = await self.db.fetchrow(
            """
            INSERT INTO users (tg_id, username, full_name)
            VALUES ($1, $2, $3)
            ON CONFLICT (tg_id) DO UPDATE
                SET username = EXCLUDED.username,
                    full_name = EXCLUDED.full_name
            RETURNING id
            """,
            tg_id,
            username,
            full_name,
        )
        assert row is not None
        return str(row["id"])

    async def add_delivery_token(self, user_id: str, token: str) -> None:
        await self.db.execute(
            """
            INSERT INTO user_delivery_tokens (user_id, token)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            user_id,
            token,
        )

    async def get_delivery_tokens(self, user_id: str) -> list[str]:
        rows = await self.db.fetch(
            "SELECT token FROM user_delivery_tokens WHERE user_id = $1 ORDER BY created_at, token",
            user_id,
        )
        return [row["token"] for row in rows]

    async def list_groups(self) -> list[Group]:
        rows = await self.db.fetch(
            """
            SELECT g.id, g.name,
                   array_agg(gm.user_id ORDER BY gm.joined_at, gm.user_id)
                       FILTER (WHERE gm.user_id IS NOT NULL) AS member_user_ids
            FROM groups g
            LEFT JOIN group_members gm ON gm.group_id = g.id
            GROUP BY g.id
            ORDER BY g.created_at, g.id
            """
        )
        return [group_from_row(row, row["member_user_ids"] or ()) for row in rows]

    async def get_group(self, group_id: str) -> Optional[Group]:
        row = await self.db.fetchrow("SELECT id, name FROM groups WHERE id = $1", group_id)
        if row is None:
            return None
        members = await self.db.fetch(
            "SELECT user_id FROM group_members WHERE group_id = $1 ORDER BY joined_at, user_id",
            group_id,
        )
        return group_from_row(row, (member["user_id"] for member in members))

    async def get_group_expenses(self, group_id: str) -> list[Expense]:
        rows = await self.db.fetch(
            """
            SELECT e.id, e.paid_by, e.amount_cents,
                   array_agg(es.user_id ORDER BY es.user_id)
                       FILTER (WHERE es.user_id IS NOT NULL) AS split_among
            FROM expenses e
            LEFT JOIN expense_splits es ON es.expense_id = e.id
            WHERE e.group_id = $1
            GROUP BY e.id
            ORDER BY e.created_at, e.id
            """,
            group_id,
        )
        return [expense_from_row(row) for row in rows]

    async def get_user_id_by_tg(self, tg_id: int) -> Optional[str]:
        row = await self.db.fetchrow("SELECT id FROM users WHERE tg_id = $1", tg_id)
        return str(row["id"]) if row else None
