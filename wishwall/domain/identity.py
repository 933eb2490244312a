# wishwall/domain/identity.py
# "Who did this": an authenticated user or an anonymous session, never both.

from __future__ import annotations

import secrets
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    user_id: int = Field(gt=0)

    @property
    def supporter_tag(self) -> str:
        return f"user_{self.user_id}"

    def as_columns(self) -> dict:
        """supports/wishes column values; session_id is always NULL for users."""
        return {"session_id": None, "user_id": self.user_id}


class SessionIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["session"] = "session"
    session_id: str

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("session_id cannot be empty")
        return v

    @property
    def supporter_tag(self) -> str:
        return f"session_{self.session_id}"

    def as_columns(self) -> dict:
        return {"session_id": self.session_id, "user_id": None}


Identity = Annotated[Union[UserIdentity, SessionIdentity], Field(discriminator="kind")]


def resolve_identity(
    session_id: Optional[str] = None,
    user_id: Optional[int] = None,
) -> Optional[Union[UserIdentity, SessionIdentity]]:
    """Build the identity from the optional pair.

    A user id wins when both are present; None when neither is.
    """
    if user_id is not None:
        return UserIdentity(user_id=user_id)
    if session_id:
        return SessionIdentity(session_id=session_id)
    return None


def fallback_session_identity(wish_id: str) -> SessionIdentity:
    """Author placeholder for session wishes whose sessions row is missing."""
    return SessionIdentity(session_id=f"session_{wish_id}")


def generate_session_id() -> str:
    return secrets.token_hex(16)
