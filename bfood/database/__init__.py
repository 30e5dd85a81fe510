from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from bfood.database.engine import async_session, engine
from bfood.database.session import get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "async_session",
    "engine",
    "get_db",
]
