# wishwall/db/sqlite.py

from __future__ import annotations

import asyncio
import json
import os
from datetime import date, datetime
from typing import Any, List, Optional

import aiosqlite

from wishwall.db.connection import DatabaseConnection, QueryResult
from wishwall.db.query.placeholders import Dialect
from wishwall.db.schema import build_schema
from wishwall.utils.logger import log_exception, log_info


def to_sqlite_value(value: Any) -> Any:
    """Bind datetimes as ISO strings and containers as JSON."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return value


class SQLiteConnection(DatabaseConnection):
    """One shared aiosqlite handle on a database file."""

    dialect = Dialect.SQLITE

    def __init__(self, path: str):
        self.path = path if path == ":memory:" else os.path.abspath(path)
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def _get_db(self) -> aiosqlite.Connection:
        async with self._lock:
            if self._db is None:
                if self.path != ":memory:":
                    os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
                try:
                    db = await aiosqlite.connect(self.path, isolation_level=None)
                    db.row_factory = aiosqlite.Row
                    await db.execute("PRAGMA foreign_keys = ON;")
                    self._db = db
                    log_info(f"SQLite database opened at {self.path}")
                except Exception as e:
                    log_exception(e, context="SQLiteConnection._get_db")
                    raise
        return self._db

    async def _execute(self, sql: str, params: List[Any]) -> QueryResult:
        db = await self._get_db()
        async with db.execute(sql, [to_sqlite_value(p) for p in params]) as cur:
            if cur.description is not None:
                rows = [dict(r) for r in await cur.fetchall()]
                return QueryResult(rows=rows, row_count=len(rows))
            return QueryResult(rows=[], row_count=cur.rowcount)

    async def initialize_database(self) -> None:
        db = await self._get_db()
        await db.executescript(build_schema(self.dialect))
        log_info("SQLite database initialized")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
