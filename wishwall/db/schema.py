# wishwall/db/schema.py
"""
Dialect-specific DDL for users, wishes, sessions and supports.

The unique indexes on supports encode "one support per (wish, supporter)".
Postgres and SQLite make them partial (``WHERE ... IS NOT NULL``); MySQL has
no partial indexes, so its unique indexes are plain and NULL columns never
collide there.
"""
from __future__ import annotations

from typing import List

from wishwall.db.query.placeholders import Dialect, parse_dialect

_POSTGRES_TABLES = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    google_id TEXT UNIQUE NOT NULL,
    display_name TEXT NOT NULL,
    email TEXT,
    picture TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS wishes (
    id UUID PRIMARY KEY,
    name TEXT,
    wish TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ,
    user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
    support_count INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    wish_id UUID NOT NULL REFERENCES wishes(id),
    created_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS supports (
    id SERIAL PRIMARY KEY,
    wish_id UUID NOT NULL REFERENCES wishes(id) ON DELETE CASCADE,
    session_id TEXT,
    user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

_POSTGRES_INDEXES = """
-- one support per supporter kind
CREATE UNIQUE INDEX IF NOT EXISTS idx_supports_wish_session
ON supports(wish_id, session_id) WHERE session_id IS NOT NULL;

CREATE UNIQUE INDEX IF NOT EXISTS idx_supports_wish_user
ON supports(wish_id, user_id) WHERE user_id IS NOT NULL;

-- batch loading
CREATE INDEX IF NOT EXISTS idx_wishes_created_at
ON wishes(created_at DESC);

CREATE INDEX IF NOT EXISTS idx_wishes_user_id
ON wishes(user_id) WHERE user_id IS NOT NULL;

CREATE INDEX IF NOT EXISTS idx_supports_wish_id
ON supports(wish_id);

CREATE INDEX IF NOT EXISTS idx_sessions_wish_id
ON sessions(wish_id);
"""

_MYSQL_TABLES = """
CREATE TABLE IF NOT EXISTS users (
    id INT AUTO_INCREMENT PRIMARY KEY,
    google_id VARCHAR(255) UNIQUE NOT NULL,
    display_name VARCHAR(255) NOT NULL,
    email VARCHAR(255),
    picture TEXT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS wishes (
    id CHAR(36) PRIMARY KEY,
    name VARCHAR(255),
    wish TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NULL,
    user_id INT,
    support_count INT NOT NULL DEFAULT 0,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id VARCHAR(255) PRIMARY KEY,
    wish_id CHAR(36) NOT NULL,
    created_at TIMESTAMP NOT NULL,
    FOREIGN KEY (wish_id) REFERENCES wishes(id)
);

CREATE TABLE IF NOT EXISTS supports (
    id INT AUTO_INCREMENT PRIMARY KEY,
    wish_id CHAR(36) NOT NULL,
    session_id VARCHAR(255),
    user_id INT,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wish_id) REFERENCES wishes(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
);
"""

# MySQL has no CREATE INDEX IF NOT EXISTS; the connection skips
# "Duplicate key name" errors when the schema is applied twice.
_MYSQL_INDEXES = """
CREATE UNIQUE INDEX idx_supports_wish_session
ON supports(wish_id, session_id);

CREATE UNIQUE INDEX idx_supports_wish_user
ON supports(wish_id, user_id);

CREATE INDEX idx_wishes_created_at
ON wishes(created_at DESC);

CREATE INDEX idx_wishes_user_id
ON wishes(user_id);

CREATE INDEX idx_supports_wish_id
ON supports(wish_id);

CREATE INDEX idx_sessions_wish_id
ON sessions(wish_id);
"""

_SQLITE_TABLES = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    google_id TEXT UNIQUE NOT NULL,
    display_name TEXT NOT NULL,
    email TEXT,
    picture TEXT,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS wishes (
    id TEXT PRIMARY KEY,
    name TEXT,
    wish TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    updated_at DATETIME,
    user_id INTEGER,
    support_count INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    wish_id TEXT NOT NULL,
    created_at DATETIME NOT NULL,
    FOREIGN KEY (wish_id) REFERENCES wishes(id)
);

CREATE TABLE IF NOT EXISTS supports (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    wish_id TEXT NOT NULL,
    session_id TEXT,
    user_id INTEGER,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (wish_id) REFERENCES wishes(id) ON DELETE CASCADE,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
);
"""

_SQLITE_INDEXES = _POSTGRES_INDEXES

_SCHEMAS = {
    Dialect.POSTGRES: (_POSTGRES_TABLES, _POSTGRES_INDEXES),
    Dialect.MYSQL: (_MYSQL_TABLES, _MYSQL_INDEXES),
    Dialect.SQLITE: (_SQLITE_TABLES, _SQLITE_INDEXES),
}


def build_schema(dialect: str | Dialect) -> str:
    """Full DDL script (tables, then indexes) for ``dialect``."""
    tables, indexes = _SCHEMAS[parse_dialect(dialect)]
    return f"{tables.strip()}\n\n{indexes.strip()}\n"


def split_statements(ddl: str) -> List[str]:
    """Split a DDL script into single statements, dropping ``--`` comments."""
    lines = [line for line in ddl.splitlines() if not line.strip().startswith("--")]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]
