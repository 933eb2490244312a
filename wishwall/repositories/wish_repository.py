# wishwall/repositories/wish_repository.py
"""
Wish persistence with batch loading.

A page of wishes is assembled in exactly three queries whatever its size:

1. wishes LEFT JOIN supports for the viewer flag, paginated once;
2. sessions for the whole page (``wish_id IN (...)``) to resolve anonymous authors;
3. supports for the whole page to build each supporter set.

An empty first result returns immediately. support_count is always
recomputed from the supports table after a mutation.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

from wishwall.db.query.executor import Join, JoinQueryConfig, OrderBy, QueryExecutor, SelectOptions
from wishwall.domain.identity import (
    Identity,
    SessionIdentity,
    UserIdentity,
    fallback_session_identity,
    resolve_identity,
)
from wishwall.domain.wish import Wish
from wishwall.errors import NotFoundError, is_duplicate_key_error

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _supporter_tag(row: Dict[str, Any]) -> Optional[str]:
    if row.get("user_id") is not None:
        return UserIdentity(user_id=row["user_id"]).supporter_tag
    if row.get("session_id"):
        return SessionIdentity(session_id=row["session_id"]).supporter_tag
    return None


class WishRepository:
    """Data access for wishes and their supports."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    # --- writes ---

    async def save(self, wish: Wish) -> None:
        """Insert or update a wish; created_at is never overwritten.

        support_count is left to the recount after support mutations.
        """
        await self.executor.upsert(
            "wishes",
            {
                "id": wish.id,
                "name": wish.name,
                "wish": wish.content,
                "created_at": wish.created_at,
                "updated_at": wish.updated_at,
                "user_id": wish.user_id,
            },
            ["id"],
        )

    async def update(self, wish: Wish) -> None:
        result = await self.executor.update(
            "wishes",
            {"name": wish.name, "wish": wish.content, "updated_at": wish.updated_at or _utcnow()},
            {"id": wish.id},
        )
        if not result.row_count:
            raise NotFoundError(f"Wish {wish.id} not found for update", details={"wish_id": wish.id})

    # --- reads ---

    async def find_by_id(self, wish_id: str) -> Optional[Wish]:
        result = await self.executor.select("wishes", SelectOptions(where={"id": wish_id}, limit=1))
        wishes = await self._assemble(result.rows)
        return wishes[0] if wishes else None

    async def find_by_user_id(self, user_id: int) -> Optional[Wish]:
        result = await self.executor.select(
            "wishes",
            SelectOptions(
                where={"user_id": user_id},
                order_by=[OrderBy("created_at", "DESC")],
                limit=1,
            ),
        )
        wishes = await self._assemble(result.rows)
        return wishes[0] if wishes else None

    async def find_by_session_id(self, session_id: str) -> Optional[Wish]:
        result = await self.executor.select_with_join(
            JoinQueryConfig(
                main_table="wishes w",
                select=["w.*"],
                joins=[Join("sessions s", "w.id = s.wish_id", "INNER")],
                where={"s.session_id": session_id},
                limit=1,
            )
        )
        wishes = await self._assemble(result.rows)
        return wishes[0] if wishes else None

    async def find_latest(self, limit: int, offset: int = 0) -> List[Wish]:
        return await self.find_latest_with_support_status(limit, offset)

    async def find_latest_with_support_status(
        self,
        limit: int,
        offset: int = 0,
        viewer: Optional[Identity] = None,
        *,
        session_id: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> List[Wish]:
        """Latest wishes with the viewer's support flag and full supporter sets."""
        viewer = viewer or resolve_identity(session_id=session_id, user_id=user_id)
        viewer_columns = viewer.as_columns() if viewer else {"session_id": None, "user_id": None}

        ph = self.executor.placeholders(1, 4)
        sql = (
            "SELECT DISTINCT w.id, w.name, w.wish, w.user_id, w.created_at, w.updated_at, "
            "w.support_count, "
            "CASE WHEN vs.wish_id IS NOT NULL THEN 1 ELSE 0 END AS is_supported_by_viewer "
            "FROM wishes w "
            "LEFT JOIN supports vs ON (w.id = vs.wish_id "
            f"AND (vs.session_id = {ph[0]} OR vs.user_id = {ph[1]})) "
            "ORDER BY w.created_at DESC, w.id "
            f"LIMIT {ph[2]} OFFSET {ph[3]}"
        )
        result = await self.executor.raw(
            sql, [viewer_columns["session_id"], viewer_columns["user_id"], limit, offset]
        )
        return await self._assemble(result.rows)

    async def _assemble(self, rows: List[Dict[str, Any]]) -> List[Wish]:
        """Resolve authors and supporters for ``rows`` with two IN-list queries."""
        if not rows:
            return []

        wish_ids = [str(row["id"]) for row in rows]
        session_authors = await self._load_session_authors(wish_ids)
        supporters = await self._load_supporters(wish_ids)

        wishes = []
        for row, wish_id in zip(rows, wish_ids):
            if row.get("user_id") is not None:
                author: Identity = UserIdentity(user_id=row["user_id"])
            elif wish_id in session_authors:
                author = SessionIdentity(session_id=session_authors[wish_id])
            else:
                logger.warning("Session wish without sessions row, using fallback author",
                               extra={"wish_id": wish_id})
                author = fallback_session_identity(wish_id)

            wishes.append(
                Wish(
                    id=wish_id,
                    content=row["wish"],
                    author=author,
                    name=row.get("name"),
                    support_count=row.get("support_count") or 0,
                    supporters=frozenset(supporters.get(wish_id, ())),
                    created_at=row["created_at"],
                    updated_at=row.get("updated_at"),
                    is_supported=bool(row.get("is_supported_by_viewer")),
                )
            )
        return wishes

    def _in_list(self, values: Iterable[Any]) -> str:
        values = list(values)
        return ", ".join(self.executor.placeholders(1, len(values)))

    async def _load_session_authors(self, wish_ids: List[str]) -> Dict[str, str]:
        result = await self.executor.raw(
            f"SELECT wish_id, session_id FROM sessions WHERE wish_id IN ({self._in_list(wish_ids)})",
            wish_ids,
        )
        authors: Dict[str, str] = {}
        for row in result.rows:
            authors.setdefault(str(row["wish_id"]), row["session_id"])
        return authors

    async def _load_supporters(self, wish_ids: List[str]) -> Dict[str, Set[str]]:
        result = await self.executor.raw(
            "SELECT wish_id, session_id, user_id FROM supports "
            f"WHERE wish_id IN ({self._in_list(wish_ids)})",
            wish_ids,
        )
        grouped: Dict[str, Set[str]] = defaultdict(set)
        for row in result.rows:
            tag = _supporter_tag(row)
            if tag:
                grouped[str(row["wish_id"])].add(tag)
        return grouped

    # --- supports ---

    async def has_supported(
        self,
        wish_id: str,
        supporter: Optional[Identity] = None,
        *,
        session_id: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> bool:
        supporter = supporter or resolve_identity(session_id=session_id, user_id=user_id)
        if supporter is None:
            logger.warning("has_supported called without a supporter", extra={"wish_id": wish_id})
            return False

        if isinstance(supporter, UserIdentity):
            where = {"wish_id": wish_id, "user_id": supporter.user_id}
        else:
            where = {"wish_id": wish_id, "session_id": supporter.session_id}
        result = await self.executor.select(
            "supports", SelectOptions(where=where, columns=["1"], limit=1)
        )
        return len(result.rows) > 0

    async def add_support(
        self,
        wish_id: str,
        supporter: Optional[Identity] = None,
        *,
        session_id: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> bool:
        """Record a support; True when a new row was written.

        The existence check handles the common repeat; a concurrent writer
        that slips past it hits the unique index and is treated the same way.
        """
        supporter = supporter or resolve_identity(session_id=session_id, user_id=user_id)
        if supporter is None:
            logger.warning("add_support called without a supporter", extra={"wish_id": wish_id})
            return False

        if await self.has_supported(wish_id, supporter):
            logger.debug("Support already exists, skipping", extra={"wish_id": wish_id})
            return False

        try:
            await self.executor.insert(
                "supports",
                {"wish_id": wish_id, **supporter.as_columns(), "created_at": _utcnow()},
            )
        except Exception as e:
            if is_duplicate_key_error(e):
                logger.debug("Duplicate support ignored", extra={"wish_id": wish_id})
                return False
            raise

        await self.executor.update_support_count(wish_id)
        return True

    async def remove_support(
        self,
        wish_id: str,
        supporter: Optional[Identity] = None,
        *,
        session_id: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> bool:
        """Delete the supporter's row and recount; True when a row was removed."""
        supporter = supporter or resolve_identity(session_id=session_id, user_id=user_id)
        if supporter is None:
            logger.warning("remove_support called without a supporter", extra={"wish_id": wish_id})
            return False

        if isinstance(supporter, UserIdentity):
            conditions = {"wish_id": wish_id, "user_id": supporter.user_id}
        else:
            conditions = {"wish_id": wish_id, "session_id": supporter.session_id}
        result = await self.executor.delete("supports", conditions)
        await self.executor.update_support_count(wish_id)
        return bool(result.row_count)

    async def support_count(self, wish_id: str) -> Optional[int]:
        result = await self.executor.select(
            "wishes", SelectOptions(where={"id": wish_id}, columns=["support_count"], limit=1)
        )
        return result.rows[0]["support_count"] if result.rows else None
