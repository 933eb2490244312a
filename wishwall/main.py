# wishwall/main.py
# Wires configuration, observability and the database for one process.

import asyncio
from typing import Optional, Tuple

import wishwall.config as config
from wishwall.config import Settings, get_settings
from wishwall.db.connection import DatabaseConnection
from wishwall.db.factory import create_connection, create_query_executor
from wishwall.db.query.executor import QueryExecutor
from wishwall.db.query.placeholders import parse_dialect
from wishwall.observability.logger import configure_logging
from wishwall.observability.tracing import init_tracing
from wishwall.utils.logger import log_exception, log_info


async def bootstrap(settings: Optional[Settings] = None) -> Tuple[DatabaseConnection, QueryExecutor]:
    """Create the connection and executor for the configured dialect and apply the schema."""
    settings = settings or get_settings()

    # 0. Structured JSON logging as early as possible
    configure_logging(config)

    # 0.1 OpenTelemetry tracing (idempotent)
    init_tracing(config)

    # 1. Dialect is resolved once here and passed down explicitly
    dialect = parse_dialect(settings.DB_TYPE)
    connection = create_connection(settings, dialect)
    executor = create_query_executor(connection, slow_query_ms=settings.SLOW_QUERY_MS)

    # 2. Schema
    try:
        await connection.initialize_database()
    except Exception as e:
        log_exception(e, context="bootstrap.initialize_database")
        await connection.close()
        raise

    log_info(f"Database ready ({dialect.value})")
    return connection, executor


async def main() -> None:
    """Initialize the schema for the configured database and exit."""
    connection, _ = await bootstrap()
    try:
        log_info("Schema initialization complete.")
    finally:
        await connection.close()
        log_info("Database connection closed.")


if __name__ == "__main__":
    asyncio.run(main())
