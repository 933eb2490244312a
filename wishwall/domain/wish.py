# wishwall/domain/wish.py

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wishwall.domain.identity import Identity
from wishwall.errors import DomainError

MAX_NAME_LENGTH = 64
MIN_CONTENT_LENGTH = 1
MAX_CONTENT_LENGTH = 240


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_wish_id() -> str:
    return str(uuid.uuid4())


class Wish(BaseModel):
    """A single wish plus the viewer-dependent fields filled by the repository."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_wish_id)
    content: str
    author: Identity
    name: Optional[str] = None
    support_count: int = Field(default=0, ge=0)
    supporters: frozenset[str] = frozenset()
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None
    is_supported: bool = False

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < MIN_CONTENT_LENGTH:
            raise ValueError(f"Wish must have at least {MIN_CONTENT_LENGTH} character")
        if len(v) > MAX_CONTENT_LENGTH:
            raise ValueError(f"Wish cannot be longer than {MAX_CONTENT_LENGTH} characters")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"Name cannot be longer than {MAX_NAME_LENGTH} characters")
        return v or None

    @property
    def user_id(self) -> Optional[int]:
        return getattr(self.author, "user_id", None)

    def update(self, name: Optional[str] = None, content: Optional[str] = None) -> "Wish":
        """Return an edited copy; id, author and created_at are kept."""
        data = self.model_dump()
        if name is not None:
            data["name"] = name
        if content is not None:
            data["content"] = content
        data["updated_at"] = _utcnow()
        return Wish.model_validate(data)

    def can_be_supported_by(self, identity: Identity) -> bool:
        return identity != self.author

    def ensure_supportable_by(self, identity: Identity) -> None:
        if not self.can_be_supported_by(identity):
            raise DomainError(
                "Cannot support your own wish",
                error_code="SELF_SUPPORT",
                details={"wish_id": self.id},
            )

    def is_supported_by(self, identity: Identity) -> bool:
        return identity.supporter_tag in self.supporters
