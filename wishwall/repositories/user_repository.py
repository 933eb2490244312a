# wishwall/repositories/user_repository.py
# Google-backed user accounts

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from wishwall.db.query.executor import QueryExecutor, SelectOptions
from wishwall.domain.user import User
from wishwall.errors import DomainError, DuplicateKeyError, NotFoundError, is_duplicate_key_error

logger = logging.getLogger(__name__)


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        id=row["id"],
        google_id=row["google_id"],
        display_name=row["display_name"],
        email=row.get("email"),
        picture=row.get("picture"),
        created_at=row.get("created_at"),
    )


class UserRepository:
    """Lookup and registration of users by Google id."""

    def __init__(self, executor: QueryExecutor):
        self.executor = executor

    async def find_by_google_id(self, google_id: str) -> Optional[User]:
        result = await self.executor.select(
            "users", SelectOptions(where={"google_id": google_id}, limit=1)
        )
        return _to_user(result.rows[0]) if result.rows else None

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.executor.select("users", SelectOptions(where={"id": user_id}, limit=1))
        return _to_user(result.rows[0]) if result.rows else None

    async def save(self, user: User) -> User:
        """Insert a new user and return it with its generated id.

        Dialects without RETURNING re-read the row by Google id.
        """
        if not user.is_new:
            raise DomainError(
                "Cannot save existing user, use update instead",
                error_code="INVALID_USER_DATA",
                details={"user_id": user.id},
            )

        data = {
            "google_id": user.google_id,
            "display_name": user.display_name,
            "email": user.email,
            "picture": user.picture,
        }
        if user.created_at is not None:
            data["created_at"] = user.created_at

        try:
            result = await self.executor.insert("users", data, returning=True)
        except Exception as e:
            if is_duplicate_key_error(e):
                raise DuplicateKeyError(
                    "User with this Google ID already exists",
                    details={"google_id": user.google_id},
                ) from e
            raise

        if result.rows:
            return _to_user(result.rows[0])

        saved = await self.find_by_google_id(user.google_id)
        if saved is None:
            raise NotFoundError(
                "User not found after insert", details={"google_id": user.google_id}
            )
        return saved

    async def update(self, user: User) -> User:
        if user.is_new:
            raise DomainError(
                "Cannot update user without ID",
                error_code="INVALID_USER_DATA",
                details={"google_id": user.google_id},
            )

        result = await self.executor.update(
            "users",
            {"display_name": user.display_name, "email": user.email, "picture": user.picture},
            {"id": user.id},
        )
        if not result.row_count:
            raise NotFoundError(f"User {user.id} not found for update", details={"user_id": user.id})

        updated = await self.find_by_id(user.id)
        if updated is None:
            raise NotFoundError(f"User {user.id} not found after update", details={"user_id": user.id})
        return updated

    async def delete(self, user_id: int) -> bool:
        result = await self.executor.delete("users", {"id": user_id})
        return bool(result.row_count)

    async def exists_by_google_id(self, google_id: str) -> bool:
        sql = f"SELECT COUNT(*) AS total FROM users WHERE google_id = {self.executor.placeholder(1)}"
        result = await self.executor.raw(sql, [google_id])
        return bool(result.rows) and int(result.rows[0]["total"]) > 0

    async def count(self) -> int:
        result = await self.executor.raw("SELECT COUNT(*) AS total FROM users")
        return int(result.rows[0]["total"]) if result.rows else 0

    async def register_or_get(self, user: User) -> User:
        """Return the existing account for the Google id, creating it if needed."""
        existing = await self.find_by_google_id(user.google_id)
        if existing is not None:
            return existing
        try:
            return await self.save(user)
        except DuplicateKeyError:
            # lost a registration race
            logger.info("Concurrent registration detected", extra={"google_id": user.google_id})
            existing = await self.find_by_google_id(user.google_id)
            if existing is None:
                raise
            return existing
