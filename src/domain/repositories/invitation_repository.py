"""Invitation repository protocol."""

from collections.abc import Collection
from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.decline import DeclineDetail
from domain.entities.invitation import Invitation, InvitationStatus


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities."""

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_by_ids(self, ids: Collection[UUID]) -> list[Invitation]:
        """Get several invitations, in no particular order."""
        ...

    async def get_open_for_invitee(
        self,
        event_id: UUID,
        session_id: UUID | None,
        invitee_id: UUID | None,
        email: str,
    ) -> Invitation | None:
        """Get the pending/tentative invitation of an invitee for an event or session."""
        ...

    async def list_for_event(self, event_id: UUID) -> list[Invitation]:
        """Get every invitation of an event, across all of its sessions."""
        ...

    async def list_for_session(self, session_id: UUID) -> list[Invitation]:
        """Get every invitation of one session."""
        ...

    async def transition(
        self,
        id: UUID,
        from_statuses: Collection[InvitationStatus],
        to_status: InvitationStatus,
        responded_at: datetime,
        decline_detail: DeclineDetail | None = None,
    ) -> Invitation | None:
        """Move an invitation to ``to_status`` only if it is in ``from_statuses``.

        Returns None when the conditional update matched no row.
        """
        ...

    async def mark_notified(self, ids: Collection[UUID], notified_at: datetime) -> int:
        """Record a successful delivery. Returns count of updated rows."""
        ...
