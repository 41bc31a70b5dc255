"""
Storage package - In-memory storage for editing sessions.
"""

from flowedit.storage.memory import (
    SessionStorage,
    StoredSession,
    session_storage,
)

__all__ = [
    "SessionStorage",
    "StoredSession",
    "session_storage",
]
