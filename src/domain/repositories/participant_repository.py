"""Participant directory protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.participant import Participant


class IParticipantRepository(Protocol):
    """Lookup and registration of invitee identities."""

    async def get(self, id: UUID) -> Participant | None:
        """Get a participant by ID."""
        ...

    async def get_by_email(self, email: str) -> Participant | None:
        """Get a participant by normalized email."""
        ...

    async def create(self, participant: Participant) -> Participant:
        """Register a participant not yet known to the directory."""
        ...
