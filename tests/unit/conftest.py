"""Shared fixtures for unit tests."""

from collections.abc import Collection
from dataclasses import replace
from datetime import date, datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from domain.entities.decline import DeclineDetail
from domain.entities.event import Event, EventSession
from domain.entities.invitation import Invitation, InvitationStatus
from domain.services.token_codec import TokenCodec

NOW = datetime(2025, 10, 1, 12, 0, 0)


class InMemoryInvitationRepository:
    """Invitation repository over a dict, honouring the conditional transition."""

    def __init__(self) -> None:
        self.items: dict[UUID, Invitation] = {}

    def add(self, *invitations: Invitation) -> None:
        for invitation in invitations:
            self.items[invitation.id] = invitation

    async def create(self, invitation: Invitation) -> Invitation:
        self.items[invitation.id] = invitation
        return replace(invitation)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        invitation = self.items.get(id)
        return replace(invitation) if invitation else None

    async def get_by_ids(self, ids: Collection[UUID]) -> list[Invitation]:
        return [replace(self.items[i]) for i in ids if i in self.items]

    async def get_open_for_invitee(
        self,
        event_id: UUID,
        session_id: UUID | None,
        invitee_id: UUID | None,
        email: str,
    ) -> Invitation | None:
        for invitation in self.items.values():
            if (
                invitation.event_id == event_id
                and invitation.session_id == session_id
                and (invitation.email == email or (invitee_id and invitation.invitee_id == invitee_id))
                and invitation.is_open
            ):
                return replace(invitation)
        return None

    async def list_for_event(self, event_id: UUID) -> list[Invitation]:
        return [replace(i) for i in self.items.values() if i.event_id == event_id]

    async def list_for_session(self, session_id: UUID) -> list[Invitation]:
        return [replace(i) for i in self.items.values() if i.session_id == session_id]

    async def transition(
        self,
        id: UUID,
        from_statuses: Collection[InvitationStatus],
        to_status: InvitationStatus,
        responded_at: datetime,
        decline_detail: DeclineDetail | None = None,
    ) -> Invitation | None:
        current = self.items.get(id)
        if current is None or current.status not in from_statuses:
            return None
        updated = replace(
            current,
            status=to_status,
            responded_at=responded_at,
            decline_detail=decline_detail,
        )
        self.items[id] = updated
        return replace(updated)

    async def mark_notified(self, ids: Collection[UUID], notified_at: datetime) -> int:
        count = 0
        for id in ids:
            if id in self.items:
                current = self.items[id]
                self.items[id] = replace(
                    current,
                    last_notified_at=notified_at,
                    delivery_count=current.delivery_count + 1,
                )
                count += 1
        return count


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing."""

    def __init__(self) -> None:
        self.invitations: Any = AsyncMock()
        self.participants: Any = AsyncMock()
        self.events: Any = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def invitation_repo(uow: FakeUnitOfWork) -> InMemoryInvitationRepository:
    """Swap the invitation mock for a stateful in-memory repository."""
    repo = InMemoryInvitationRepository()
    uow.invitations = repo
    return repo


@pytest.fixture
def event() -> Event:
    return Event(
        title="PyCon Test",
        starts_on=date(2025, 11, 6),
        ends_on=date(2025, 11, 9),
        location="Lisbon",
        venue="Congress Centre",
    )


@pytest.fixture
def keynote(event: Event) -> EventSession:
    return EventSession(event_id=event.id, title="Opening Keynote")


@pytest.fixture
def panel(event: Event) -> EventSession:
    return EventSession(event_id=event.id, title="Closing Panel")


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec("unit-test-secret", clock=lambda: NOW)
