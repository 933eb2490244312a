# wishwall/db/factory.py
# Builds the connection and executor for an explicitly chosen dialect.

from __future__ import annotations

import logging

from wishwall.config import Settings
from wishwall.db.connection import DatabaseConnection
from wishwall.db.mysql import MySQLConnection
from wishwall.db.postgres import PostgresConnection
from wishwall.db.query.executor import QueryExecutor
from wishwall.db.query.placeholders import Dialect, get_strategy, parse_dialect
from wishwall.db.sqlite import SQLiteConnection

logger = logging.getLogger(__name__)

SUPPORTED_DIALECTS = tuple(d.value for d in Dialect)


def create_connection(settings: Settings, dialect: str | Dialect) -> DatabaseConnection:
    dialect = parse_dialect(dialect)
    logger.info(f"Creating database connection: {dialect.value}")

    if dialect is Dialect.SQLITE:
        return SQLiteConnection(settings.SQLITE_DB_PATH)

    pool_kwargs = dict(
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
        acquire_timeout=settings.DB_ACQUIRE_TIMEOUT,
        idle_timeout=settings.DB_IDLE_TIMEOUT,
    )
    if dialect is Dialect.MYSQL:
        return MySQLConnection(settings.DB_URL, **pool_kwargs)

    return PostgresConnection(settings.DB_URL, ssl=settings.DB_SSL, **pool_kwargs)


def create_query_executor(connection: DatabaseConnection, slow_query_ms: int | None = None) -> QueryExecutor:
    strategy = get_strategy(connection.dialect)
    logger.info(f"Creating query executor: {strategy.dialect_name}")
    return QueryExecutor(connection, strategy, slow_query_ms=slow_query_ms)
