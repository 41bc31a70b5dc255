"""
In-Memory Session Storage for the Flow Editor.

Holds the editor state of each open flow while it is being edited. Nothing
is written anywhere; sessions live only as long as the process.
"""

from typing import Dict, List, Optional
from datetime import datetime
import asyncio
from dataclasses import dataclass, field

from flowedit.flow.editor import EditorState


@dataclass
class StoredSession:
    """An editing session for one flow."""
    session_id: str
    name: str
    state: EditorState = field(default_factory=EditorState)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


class SessionStorage:
    """
    Thread-safe in-memory storage for editing sessions.

    Each update swaps in a whole new EditorState; states are never edited
    in place.
    """

    def __init__(self):
        self._sessions: Dict[str, StoredSession] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        session_id: str,
        name: str,
        state: Optional[EditorState] = None,
    ) -> StoredSession:
        """
        Create (or replace) a session.

        Args:
            session_id: Unique session identifier
            name: Human-readable flow name
            state: Initial editor state (empty flow if omitted)

        Returns:
            The stored session
        """
        async with self._lock:
            stored = StoredSession(
                session_id=session_id,
                name=name,
                state=state or EditorState(),
            )
            self._sessions[session_id] = stored
            return stored

    async def get(self, session_id: str) -> Optional[StoredSession]:
        """Get a session by ID."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def update(self, session_id: str, state: EditorState) -> Optional[StoredSession]:
        """Replace the editor state of a session."""
        async with self._lock:
            if session_id not in self._sessions:
                return None
            stored = self._sessions[session_id]
            stored.state = state
            stored.updated_at = datetime.now()
            return stored

    async def delete(self, session_id: str) -> bool:
        """Delete a session."""
        async with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    async def list_all(self) -> List[StoredSession]:
        """List all sessions."""
        async with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)


# Global storage instance
session_storage = SessionStorage()
