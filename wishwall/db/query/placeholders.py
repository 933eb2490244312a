# wishwall/db/query/placeholders.py
"""
Dialect strategies for the shared query builder.

Each strategy owns the syntactic fragments that differ between dialects:
parameter placeholders, the upsert conflict clause and the two-argument
max function. Everything else is built once in ``QueryExecutor``.
"""
from __future__ import annotations

import enum
from typing import Sequence

from wishwall.errors import UnsupportedDialectError


class Dialect(str, enum.Enum):
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class PlaceholderStrategy:
    """Base strategy: positional ``?`` placeholders, ON CONFLICT upserts."""

    dialect: Dialect
    dialect_name: str
    supports_returning: bool = False
    supports_upsert: bool = True
    max_function: str = "GREATEST"
    excluded_alias: str = "EXCLUDED"

    def placeholder(self, index: int) -> str:
        return "?"

    @property
    def reuses_numbered_parameters(self) -> bool:
        """True when one bound value may be referenced twice by number."""
        return False

    def upsert_clause(self, conflict_columns: Sequence[str], update_columns: Sequence[str]) -> str:
        target = ", ".join(conflict_columns)
        if not update_columns:
            return f"ON CONFLICT ({target}) DO NOTHING"
        assignments = ", ".join(f"{col} = {self.excluded_alias}.{col}" for col in update_columns)
        return f"ON CONFLICT ({target}) DO UPDATE SET {assignments}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.dialect_name}>"


class PostgresPlaceholderStrategy(PlaceholderStrategy):
    dialect = Dialect.POSTGRES
    dialect_name = "PostgreSQL"
    supports_returning = True

    def placeholder(self, index: int) -> str:
        return f"${index}"

    @property
    def reuses_numbered_parameters(self) -> bool:
        return True


class MySQLPlaceholderStrategy(PlaceholderStrategy):
    dialect = Dialect.MYSQL
    dialect_name = "MySQL"

    def upsert_clause(self, conflict_columns: Sequence[str], update_columns: Sequence[str]) -> str:
        if not update_columns:
            # MySQL has no DO NOTHING; a self-assignment leaves the row untouched
            col = conflict_columns[0]
            return f"ON DUPLICATE KEY UPDATE {col} = {col}"
        assignments = ", ".join(f"{col} = VALUES({col})" for col in update_columns)
        return f"ON DUPLICATE KEY UPDATE {assignments}"


class SQLitePlaceholderStrategy(PlaceholderStrategy):
    dialect = Dialect.SQLITE
    dialect_name = "SQLite"
    max_function = "MAX"
    excluded_alias = "excluded"


_STRATEGIES = {
    Dialect.POSTGRES: PostgresPlaceholderStrategy,
    Dialect.MYSQL: MySQLPlaceholderStrategy,
    Dialect.SQLITE: SQLitePlaceholderStrategy,
}


def parse_dialect(name: str | Dialect) -> Dialect:
    if isinstance(name, Dialect):
        return name
    normalized = (name or "").strip().lower()
    if normalized == "postgresql":
        normalized = "postgres"
    try:
        return Dialect(normalized)
    except ValueError:
        raise UnsupportedDialectError(name) from None


def get_strategy(dialect: str | Dialect) -> PlaceholderStrategy:
    return _STRATEGIES[parse_dialect(dialect)]()
