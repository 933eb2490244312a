# wishwall/db/query/executor.py
"""
Dialect-agnostic query builder and executor.

Builds ``(sql, params)`` from declarative requests and runs them through a
``DatabaseConnection``. Dialect differences come from the injected
``PlaceholderStrategy``; there is one executor class for all dialects.

Parameter indices increase left to right in the order placeholders appear
in the generated SQL (SET before WHERE, WHERE before HAVING, then LIMIT and
OFFSET).
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from wishwall import config
from wishwall.db.connection import DatabaseConnection, QueryResult
from wishwall.db.query.placeholders import PlaceholderStrategy, get_strategy
from wishwall.errors import QueryRejectedError
from wishwall.observability.metrics import observe_query
from wishwall.observability.tracing import query_span

logger = logging.getLogger(__name__)

Direction = Literal["ASC", "DESC"]
JoinType = Literal["LEFT", "INNER", "RIGHT"]

# created_at is insert-only in every upsert
INSERT_ONLY_COLUMNS = ("created_at",)


@dataclass(frozen=True)
class OrderBy:
    column: str
    direction: Direction = "ASC"


OrderSpec = Union[OrderBy, Tuple[str, str]]


@dataclass(frozen=True)
class SelectOptions:
    where: Optional[Mapping[str, Any]] = None
    order_by: Sequence[OrderSpec] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None
    columns: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class Join:
    table: str
    on: str
    type: JoinType = "INNER"


@dataclass(frozen=True)
class JoinQueryConfig:
    main_table: str
    select: Sequence[str]
    joins: Sequence[Join] = ()
    where: Optional[Mapping[str, Any]] = None
    group_by: Sequence[str] = ()
    having: Optional[Mapping[str, Any]] = None
    order_by: Sequence[OrderSpec] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass
class _ParamCursor:
    """Hands out placeholders left to right and collects their values."""

    strategy: PlaceholderStrategy
    params: List[Any] = field(default_factory=list)

    def bind(self, value: Any) -> str:
        self.params.append(value)
        return self.strategy.placeholder(len(self.params))

    def equalities(self, mapping: Mapping[str, Any]) -> List[str]:
        return [f"{column} = {self.bind(value)}" for column, value in mapping.items()]


def _order_clause(order_by: Sequence[OrderSpec]) -> str:
    parts = []
    for item in order_by:
        column, direction = (item.column, item.direction) if isinstance(item, OrderBy) else item
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise QueryRejectedError(f"Invalid sort direction: {direction}")
        parts.append(f"{column} {direction}")
    return ", ".join(parts)


class QueryExecutor:
    """CRUD, upsert and join queries over one connection and one dialect."""

    def __init__(
        self,
        connection: DatabaseConnection,
        strategy: Optional[PlaceholderStrategy] = None,
        slow_query_ms: Optional[int] = None,
    ):
        self.connection = connection
        self.strategy = strategy or get_strategy(connection.dialect)
        self.slow_query_ms = config.SLOW_QUERY_MS if slow_query_ms is None else slow_query_ms

    @property
    def dialect_name(self) -> str:
        return self.strategy.dialect_name

    def placeholder(self, index: int) -> str:
        return self.strategy.placeholder(index)

    def placeholders(self, start: int, count: int) -> List[str]:
        """``count`` consecutive placeholders beginning at 1-based ``start``."""
        return [self.strategy.placeholder(i) for i in range(start, start + count)]

    async def _run(self, operation: str, sql: str, params: Sequence[Any]) -> QueryResult:
        """Timing wrapper: span, metrics and slow-query logging around one round-trip."""
        dialect = self.strategy.dialect.value
        start = time.perf_counter()
        with query_span(dialect, operation):
            try:
                result = await self.connection.query(sql, list(params))
            except Exception as e:
                elapsed = time.perf_counter() - start
                observe_query(dialect, operation, elapsed, failed=True)
                logger.error(
                    f"[{self.dialect_name}] Query failed: {operation}",
                    extra={"duration_ms": round(elapsed * 1000, 2), "error": str(e)},
                )
                raise
        elapsed = time.perf_counter() - start
        observe_query(dialect, operation, elapsed)
        duration_ms = round(elapsed * 1000, 2)
        if duration_ms > self.slow_query_ms:
            logger.warning(
                f"[{self.dialect_name}] Slow query detected: {operation}",
                extra={"duration_ms": duration_ms},
            )
        else:
            logger.debug(
                f"[{self.dialect_name}] Query completed: {operation}",
                extra={"duration_ms": duration_ms, "row_count": result.row_count},
            )
        return result

    async def insert(self, table: str, data: Mapping[str, Any], returning: bool = False) -> QueryResult:
        if not data:
            raise QueryRejectedError(f"Insert into {table} without columns")
        cursor = _ParamCursor(self.strategy)
        columns = list(data.keys())
        values = [cursor.bind(v) for v in data.values()]
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(values)})"
        if returning and self.strategy.supports_returning:
            sql += " RETURNING *"
        return await self._run(f"INSERT INTO {table}", sql, cursor.params)

    async def select(
        self,
        table: str,
        options: Union[SelectOptions, Mapping[str, Any], None] = None,
    ) -> QueryResult:
        if options is None:
            options = SelectOptions()
        elif not isinstance(options, SelectOptions):
            options = SelectOptions(**options)

        cursor = _ParamCursor(self.strategy)
        columns = ", ".join(options.columns) if options.columns else "*"
        sql = f"SELECT {columns} FROM {table}"
        if options.where:
            sql += f" WHERE {' AND '.join(cursor.equalities(options.where))}"
        if options.order_by:
            sql += f" ORDER BY {_order_clause(options.order_by)}"
        if options.limit is not None:
            sql += f" LIMIT {cursor.bind(options.limit)}"
        if options.offset is not None:
            sql += f" OFFSET {cursor.bind(options.offset)}"
        return await self._run(f"SELECT FROM {table}", sql, cursor.params)

    async def update(
        self,
        table: str,
        data: Mapping[str, Any],
        conditions: Mapping[str, Any],
    ) -> QueryResult:
        if not data:
            raise QueryRejectedError(f"Update of {table} without columns")
        if not conditions:
            raise QueryRejectedError(f"Update of {table} without conditions")
        cursor = _ParamCursor(self.strategy)
        set_clause = ", ".join(cursor.equalities(data))
        where_clause = " AND ".join(cursor.equalities(conditions))
        sql = f"UPDATE {table} SET {set_clause} WHERE {where_clause}"
        return await self._run(f"UPDATE {table}", sql, cursor.params)

    async def delete(self, table: str, conditions: Mapping[str, Any]) -> QueryResult:
        if not conditions:
            raise QueryRejectedError(f"Delete from {table} without conditions")
        cursor = _ParamCursor(self.strategy)
        sql = f"DELETE FROM {table} WHERE {' AND '.join(cursor.equalities(conditions))}"
        return await self._run(f"DELETE FROM {table}", sql, cursor.params)

    async def upsert(
        self,
        table: str,
        data: Mapping[str, Any],
        conflict_columns: Sequence[str],
    ) -> QueryResult:
        """INSERT with a dialect-specific conflict clause.

        Conflict columns and ``created_at`` are written on insert only; when
        no other column is left the conflict clause is a no-op.
        """
        if not data or not conflict_columns:
            raise QueryRejectedError(f"Upsert into {table} needs columns and conflict columns")
        cursor = _ParamCursor(self.strategy)
        columns = list(data.keys())
        values = [cursor.bind(v) for v in data.values()]
        excluded = set(conflict_columns) | set(INSERT_ONLY_COLUMNS)
        update_columns = [col for col in columns if col not in excluded]
        conflict_clause = self.strategy.upsert_clause(conflict_columns, update_columns)
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(values)}) {conflict_clause}"
        )
        return await self._run(f"UPSERT INTO {table}", sql, cursor.params)

    async def select_with_join(self, join_config: JoinQueryConfig) -> QueryResult:
        cursor = _ParamCursor(self.strategy)
        sql = f"SELECT {', '.join(join_config.select)} FROM {join_config.main_table}"
        for join in join_config.joins:
            sql += f" {join.type} JOIN {join.table} ON {join.on}"
        if join_config.where:
            sql += f" WHERE {' AND '.join(cursor.equalities(join_config.where))}"
        if join_config.group_by:
            sql += f" GROUP BY {', '.join(join_config.group_by)}"
        if join_config.having:
            sql += f" HAVING {' AND '.join(cursor.equalities(join_config.having))}"
        if join_config.order_by:
            sql += f" ORDER BY {_order_clause(join_config.order_by)}"
        if join_config.limit is not None:
            sql += f" LIMIT {cursor.bind(join_config.limit)}"
        if join_config.offset is not None:
            sql += f" OFFSET {cursor.bind(join_config.offset)}"
        return await self._run(
            f"SELECT FROM {join_config.main_table} with {len(join_config.joins)} JOINs",
            sql,
            cursor.params,
        )

    # --- support_count primitives ---

    async def increment_support_count(self, wish_id: str) -> QueryResult:
        sql = f"UPDATE wishes SET support_count = support_count + 1 WHERE id = {self.placeholder(1)}"
        return await self._run("INCREMENT support_count", sql, [wish_id])

    async def decrement_support_count(self, wish_id: str) -> QueryResult:
        """Decrement clamped at zero."""
        max_fn = self.strategy.max_function
        sql = (
            f"UPDATE wishes SET support_count = {max_fn}(support_count - 1, 0) "
            f"WHERE id = {self.placeholder(1)}"
        )
        return await self._run("DECREMENT support_count", sql, [wish_id])

    async def update_support_count(self, wish_id: str) -> QueryResult:
        """Recompute support_count from the supports table."""
        if self.strategy.reuses_numbered_parameters:
            subquery_ph = where_ph = self.placeholder(1)
            params: List[Any] = [wish_id]
        else:
            subquery_ph, where_ph = self.placeholders(1, 2)
            params = [wish_id, wish_id]
        sql = (
            "UPDATE wishes SET support_count = ("
            f"SELECT COUNT(*) FROM supports WHERE wish_id = {subquery_ph}"
            f") WHERE id = {where_ph}"
        )
        return await self._run("RECOUNT support_count", sql, params)

    async def raw(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        return await self._run("RAW QUERY", sql, params or [])
