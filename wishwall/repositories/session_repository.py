# wishwall/repositories/session_repository.py
# Anonymous session <-> wish links

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from wishwall.db.query.executor import QueryExecutor, SelectOptions
from wishwall.domain.identity import generate_session_id


class SessionRepository:
    """Tracks which wish an anonymous session authored."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    def generate_session_id(self) -> str:
        return generate_session_id()

    async def link_session_to_wish(self, session_id: str, wish_id: str) -> None:
        await self.executor.insert(
            "sessions",
            {
                "session_id": session_id,
                "wish_id": wish_id,
                "created_at": datetime.now(timezone.utc),
            },
        )

    async def get_wish_id_by_session(self, session_id: str) -> Optional[str]:
        """Wish authored by ``session_id``, or None."""
        result = await self.executor.select(
            "sessions",
            SelectOptions(where={"session_id": session_id}, columns=["wish_id"], limit=1),
        )
        if result.rows:
            return str(result.rows[0]["wish_id"])
        return None
