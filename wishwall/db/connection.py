# wishwall/db/connection.py
"""
Connection contract shared by the three database families.

``query`` validates the statement locally and then delegates to the
driver-specific ``_execute``; driver errors propagate unchanged.
"""
from __future__ import annotations

import abc
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import sqlglot
from sqlglot.errors import SqlglotError

from wishwall.db.query.placeholders import Dialect, get_strategy
from wishwall.errors import QueryRejectedError

Row = Dict[str, Any]

_NUMBERED_RE = re.compile(r"\$(\d+)")


@dataclass
class QueryResult:
    rows: List[Row] = field(default_factory=list)
    row_count: Optional[int] = None


def _strip_literals(sql: str) -> str:
    """Return ``sql`` with string literals, quoted identifiers and comments blanked.

    Raises QueryRejectedError on an unterminated literal or comment.
    """
    out: list[str] = []
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            j = i + 1
            while True:
                if j >= n:
                    raise QueryRejectedError("Unbalanced quotes in SQL", details={"position": i})
                if sql[j] == ch:
                    # doubled quote is an escaped quote
                    if j + 1 < n and sql[j + 1] == ch:
                        j += 2
                        continue
                    break
                j += 1
            out.append(" ")
            i = j + 1
        elif sql.startswith("--", i):
            j = sql.find("\n", i)
            i = n if j == -1 else j
        elif sql.startswith("/*", i):
            j = sql.find("*/", i + 2)
            if j == -1:
                raise QueryRejectedError("Unterminated comment in SQL", details={"position": i})
            out.append(" ")
            i = j + 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def validate_statement(
    sql: str,
    params: Sequence[Any],
    numbered: bool,
    dialect: Optional[str] = None,
) -> None:
    """Reject statements that cannot be sent as-is.

    Checks: non-empty text, balanced quotes/parentheses/comments, and the
    placeholder count matching ``params``. With ``numbered`` placeholders a
    parameter may be referenced more than once, so the highest index must
    equal the parameter count. When ``dialect`` is given the statement must
    also parse under that dialect's grammar.
    """
    if not sql or not sql.strip():
        raise QueryRejectedError("Empty SQL statement")

    bare = _strip_literals(sql)

    depth = 0
    for ch in bare:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        raise QueryRejectedError("Unbalanced parentheses in SQL")

    if numbered:
        indices = {int(m) for m in _NUMBERED_RE.findall(bare)}
        expected = max(indices) if indices else 0
        if expected != len(params) or (indices and min(indices) < 1):
            raise QueryRejectedError(
                "Placeholder/parameter count mismatch",
                details={"placeholders": expected, "params": len(params)},
            )
    else:
        count = bare.count("?")
        if count != len(params):
            raise QueryRejectedError(
                "Placeholder/parameter count mismatch",
                details={"placeholders": count, "params": len(params)},
            )

    if dialect is not None:
        try:
            sqlglot.parse_one(sql, read=dialect)
        except SqlglotError as e:
            raise QueryRejectedError(
                "SQL failed to parse",
                details={"dialect": dialect, "error": str(e)},
            ) from e


class DatabaseConnection(abc.ABC):
    """Executes ``(sql, params)`` against one concrete database."""

    dialect: Dialect

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        params = list(params or [])
        validate_statement(
            sql,
            params,
            get_strategy(self.dialect).reuses_numbered_parameters,
            dialect=self.dialect.value,
        )
        return await self._execute(sql, params)

    @abc.abstractmethod
    async def _execute(self, sql: str, params: List[Any]) -> QueryResult:
        """Run one statement; SELECT-like statements return their rows."""

    @abc.abstractmethod
    async def initialize_database(self) -> None:
        """Create the schema for this dialect (idempotent)."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the pool or file handle."""
