# tests/unit/conftest.py

import pytest

from fakes import RecordingConnection
from wishwall.db.query.executor import QueryExecutor
from wishwall.db.query.placeholders import Dialect


@pytest.fixture
def make_executor():
    """Factory: ``conn, executor = make_executor(Dialect.POSTGRES, *responses)``."""

    def _make(dialect: Dialect = Dialect.SQLITE, *responses):
        conn = RecordingConnection(dialect, list(responses))
        return conn, QueryExecutor(conn, slow_query_ms=10_000)

    return _make
