# wishwall/domain/user.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Google-identity-backed account. ``id`` is None until persisted."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    google_id: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    email: Optional[str] = None
    picture: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_new(self) -> bool:
        return self.id is None
