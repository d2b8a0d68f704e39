from .models import (
    User,
    Image,
    AuditEvent,
)
from .session import get_db, async_session_factory, engine, init_db

__all__ = [
    "User",
    "Image",
    "AuditEvent",
    "get_db",
    "async_session_factory",
    "engine",
    "init_db",
]
