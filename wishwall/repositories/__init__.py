from wishwall.repositories.session_repository import SessionRepository
from wishwall.repositories.user_repository import UserRepository
from wishwall.repositories.wish_repository import WishRepository

__all__ = ["SessionRepository", "UserRepository", "WishRepository"]
