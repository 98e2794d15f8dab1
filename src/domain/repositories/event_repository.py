"""Event catalog protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.event import Event, EventSession


class IEventRepository(Protocol):
    """Read access to events and their sessions."""

    async def get(self, event_id: UUID) -> Event | None:
        """Get an event by ID."""
        ...

    async def get_session(self, session_id: UUID) -> EventSession | None:
        """Get a session by ID."""
        ...

    async def list_sessions(self, event_id: UUID) -> list[EventSession]:
        """Get all sessions of an event, ordered by start time."""
        ...
