from wishwall.domain.identity import (
    Identity,
    SessionIdentity,
    UserIdentity,
    fallback_session_identity,
    generate_session_id,
    resolve_identity,
)
from wishwall.domain.user import User
from wishwall.domain.wish import Wish, generate_wish_id

__all__ = [
    "Identity",
    "SessionIdentity",
    "UserIdentity",
    "User",
    "Wish",
    "fallback_session_identity",
    "generate_session_id",
    "generate_wish_id",
    "resolve_identity",
]
