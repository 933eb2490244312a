# wishwall/db/postgres.py

from __future__ import annotations

import ssl as _ssl
from typing import Any, List, Optional

import asyncpg
from sqlalchemy.engine import make_url

from wishwall.db.connection import DatabaseConnection, QueryResult
from wishwall.db.query.placeholders import Dialect
from wishwall.db.schema import build_schema
from wishwall.utils.logger import log_exception, log_info


def to_asyncpg_dsn(url: str) -> str:
    """Strip any SQLAlchemy driver suffix so asyncpg accepts the URL.

    postgresql+asyncpg://u:p@h/db -> postgresql://u:p@h/db
    postgres://u:p@h/db          -> postgresql://u:p@h/db
    """
    parsed = make_url(url)
    return parsed.set(drivername="postgresql").render_as_string(hide_password=False)


def _row_count(status: Optional[str]) -> Optional[int]:
    """Affected rows from a command tag such as 'UPDATE 3' or 'INSERT 0 1'."""
    if not status:
        return None
    last = status.rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else None


class PostgresConnection(DatabaseConnection):
    """asyncpg pool shared by every request in the process."""

    dialect = Dialect.POSTGRES

    def __init__(
        self,
        url: str,
        min_size: int = 1,
        max_size: int = 10,
        acquire_timeout: float = 10.0,
        idle_timeout: float = 30.0,
        ssl: bool = False,
    ):
        self.dsn = to_asyncpg_dsn(url)
        self.min_size = min_size
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self.idle_timeout = idle_timeout
        self.ssl = ssl
        self._pool: Optional[asyncpg.Pool] = None

    async def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            ssl_ctx = None
            if self.ssl:
                ssl_ctx = _ssl.create_default_context()
                ssl_ctx.check_hostname = False
                ssl_ctx.verify_mode = _ssl.CERT_NONE
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    max_inactive_connection_lifetime=self.idle_timeout,
                    ssl=ssl_ctx,
                )
                log_info("PostgreSQL connection pool created")
            except Exception as e:
                log_exception(e, context="PostgresConnection._get_pool")
                raise
        return self._pool

    async def _execute(self, sql: str, params: List[Any]) -> QueryResult:
        pool = await self._get_pool()
        async with pool.acquire(timeout=self.acquire_timeout) as conn:
            stmt = await conn.prepare(sql)
            records = await stmt.fetch(*params)
            rows = [dict(r) for r in records]
            row_count = _row_count(stmt.get_statusmsg())
        if row_count is None:
            row_count = len(rows)
        return QueryResult(rows=rows, row_count=row_count)

    async def initialize_database(self) -> None:
        pool = await self._get_pool()
        async with pool.acquire(timeout=self.acquire_timeout) as conn:
            # without arguments asyncpg runs the whole script in one round-trip
            await conn.execute(build_schema(self.dialect))
        log_info("PostgreSQL database initialized")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
