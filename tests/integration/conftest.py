# tests/integration/conftest.py
# Real databases for the repositories:
# - SQLite on a temporary file (always available)
# - PostgreSQL via TestContainers (skipped when Docker is not reachable)

from typing import Iterator

import pytest  # type: ignore[import-not-found]
import pytest_asyncio

from testcontainers.postgres import PostgresContainer  # type: ignore

from wishwall.db.factory import create_query_executor
from wishwall.db.postgres import PostgresConnection
from wishwall.db.sqlite import SQLiteConnection
from wishwall.repositories import SessionRepository, UserRepository, WishRepository


@pytest_asyncio.fixture
async def sqlite_executor(tmp_path):
    connection = SQLiteConnection(str(tmp_path / "wishwall.sqlite"))
    await connection.initialize_database()
    yield create_query_executor(connection)
    await connection.close()


@pytest.fixture
def repos(sqlite_executor):
    return (
        WishRepository(sqlite_executor),
        SessionRepository(sqlite_executor),
        UserRepository(sqlite_executor),
    )


@pytest.fixture(scope="session")
def postgres_url() -> Iterator[str]:
    # start test container, skip the dependent tests without Docker
    try:
        container = PostgresContainer("postgres:16-alpine")
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest_asyncio.fixture
async def postgres_executor(postgres_url):
    connection = PostgresConnection(postgres_url, min_size=1, max_size=4)
    await connection.initialize_database()
    await connection.query("TRUNCATE supports, sessions, wishes, users RESTART IDENTITY CASCADE")
    yield create_query_executor(connection)
    await connection.close()
