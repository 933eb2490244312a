# wishwall/db/mysql.py

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import aiomysql
from pymysql.constants import CLIENT
from sqlalchemy.engine import make_url

from wishwall.db.connection import DatabaseConnection, QueryResult
from wishwall.db.query.placeholders import Dialect
from wishwall.db.schema import build_schema, split_statements
from wishwall.utils.logger import log_exception, log_info


def to_pyformat(sql: str) -> str:
    """Rewrite ``?`` placeholders to the driver's ``%s`` outside string literals.

    Literal ``%`` characters are doubled because the driver always applies
    %-formatting to the statement.
    """
    out: list[str] = []
    quote: Optional[str] = None
    for ch in sql:
        if quote:
            out.append("%%" if ch == "%" else ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
    return "".join(out)


class MySQLConnection(DatabaseConnection):
    """aiomysql pool with autocommit; every statement commits on its own."""

    dialect = Dialect.MYSQL

    def __init__(
        self,
        url: str,
        min_size: int = 1,
        max_size: int = 10,
        acquire_timeout: float = 10.0,
        idle_timeout: float = 30.0,
    ):
        parsed = make_url(url)
        self.host = parsed.host or "localhost"
        self.port = parsed.port or 3306
        self.user = parsed.username or "root"
        self.password = parsed.password or ""
        self.database = parsed.database or "wishlist"
        self.min_size = min_size
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self.idle_timeout = idle_timeout
        self._pool: Optional[aiomysql.Pool] = None

    async def _get_pool(self) -> aiomysql.Pool:
        if self._pool is None:
            try:
                self._pool = await aiomysql.create_pool(
                    host=self.host,
                    port=self.port,
                    user=self.user,
                    password=self.password,
                    db=self.database,
                    minsize=self.min_size,
                    maxsize=self.max_size,
                    pool_recycle=int(self.idle_timeout),
                    autocommit=True,
                    charset="utf8mb4",
                    client_flag=CLIENT.FOUND_ROWS,
                )
                log_info("MySQL connection pool created")
            except Exception as e:
                log_exception(e, context="MySQLConnection._get_pool")
                raise
        return self._pool

    async def _acquire(self):
        pool = await self._get_pool()
        return pool, await asyncio.wait_for(pool.acquire(), timeout=self.acquire_timeout)

    async def _execute(self, sql: str, params: List[Any]) -> QueryResult:
        pool, conn = await self._acquire()
        try:
            async with conn.cursor(aiomysql.DictCursor) as cur:
                await cur.execute(to_pyformat(sql), tuple(params))
                if cur.description is not None:
                    rows = [dict(r) for r in await cur.fetchall()]
                    return QueryResult(rows=rows, row_count=len(rows))
                return QueryResult(rows=[], row_count=cur.rowcount)
        finally:
            pool.release(conn)

    async def initialize_database(self) -> None:
        pool, conn = await self._acquire()
        try:
            async with conn.cursor() as cur:
                for statement in split_statements(build_schema(self.dialect)):
                    try:
                        await cur.execute(statement)
                    except aiomysql.Error as e:
                        # indexes already exist on a re-run
                        if "Duplicate key name" in str(e):
                            continue
                        raise
        finally:
            pool.release(conn)
        log_info("MySQL database initialized")

    async def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None
