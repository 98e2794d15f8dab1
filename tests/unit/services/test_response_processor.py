"""Unit tests for ResponseProcessor."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from core.exceptions import (
    AlreadyRespondedError,
    InvalidDeclineDetailError,
    InvalidTokenError,
    InvitationExpiredError,
    InvitationNotFoundError,
    TokenExpiredError,
)
from domain.entities.decline import NotInterested, SuggestedTopic, TimeConflict
from domain.entities.invitation import (
    Invitation,
    InvitationRole,
    InvitationStatus,
    ResponseAction,
)
from domain.services.response_processor import ResponseProcessor
from domain.services.token_codec import TokenCodec
from tests.unit.conftest import NOW, FakeUnitOfWork, InMemoryInvitationRepository

EARLIER = NOW - timedelta(days=3)


@pytest.fixture
def processor(uow: FakeUnitOfWork, codec: TokenCodec) -> ResponseProcessor:
    return ResponseProcessor(lambda: uow, token_codec=codec, clock=lambda: NOW)


@pytest.fixture
def pending(invitation_repo: InMemoryInvitationRepository, codec: TokenCodec) -> Invitation:
    invitation = Invitation(
        event_id=uuid4(),
        session_id=uuid4(),
        email="jane@example.com",
        role=InvitationRole.SPEAKER,
        invited_at=EARLIER,
        expires_at=NOW + timedelta(days=27),
    )
    invitation.token = codec.encode(invitation)
    invitation_repo.add(invitation)
    return invitation


def _answered(
    repo: InMemoryInvitationRepository, status: InvitationStatus
) -> Invitation:
    invitation = Invitation(
        event_id=uuid4(),
        email="sam@example.com",
        role=InvitationRole.SPEAKER,
        status=status,
        responded_at=EARLIER,
        expires_at=NOW + timedelta(days=10),
    )
    repo.add(invitation)
    return invitation


class TestStateMachine:
    @pytest.mark.asyncio
    async def test_accept_pending(
        self, processor: ResponseProcessor, uow: FakeUnitOfWork, pending: Invitation
    ) -> None:
        updated = await processor.respond(pending.id, ResponseAction.ACCEPT)

        assert updated.status is InvitationStatus.ACCEPTED
        assert updated.responded_at == NOW
        assert updated.decline_detail is None
        assert uow.committed

    @pytest.mark.asyncio
    async def test_tentative_then_accept(
        self, processor: ResponseProcessor, pending: Invitation
    ) -> None:
        tentative = await processor.respond(pending.id, ResponseAction.TENTATIVE)
        accepted = await processor.respond(pending.id, ResponseAction.ACCEPT)

        assert tentative.status is InvitationStatus.TENTATIVE
        assert accepted.status is InvitationStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_tentative_then_decline(
        self, processor: ResponseProcessor, pending: Invitation
    ) -> None:
        await processor.respond(pending.id, ResponseAction.TENTATIVE)

        declined = await processor.respond(pending.id, ResponseAction.DECLINE, NotInterested())

        assert declined.status is InvitationStatus.DECLINED

    @pytest.mark.asyncio
    async def test_tentative_twice_is_a_conflict(
        self, processor: ResponseProcessor, pending: Invitation
    ) -> None:
        await processor.respond(pending.id, ResponseAction.TENTATIVE)

        with pytest.raises(AlreadyRespondedError):
            await processor.respond(pending.id, ResponseAction.TENTATIVE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [InvitationStatus.ACCEPTED, InvitationStatus.DECLINED, InvitationStatus.CANCELLED],
    )
    @pytest.mark.parametrize("action", list(ResponseAction))
    async def test_terminal_invitation_never_changes(
        self,
        processor: ResponseProcessor,
        invitation_repo: InMemoryInvitationRepository,
        status: InvitationStatus,
        action: ResponseAction,
    ) -> None:
        answered = _answered(invitation_repo, status)
        detail = NotInterested() if action is ResponseAction.DECLINE else None

        with pytest.raises(AlreadyRespondedError) as exc_info:
            await processor.respond(answered.id, action, detail)

        stored = invitation_repo.items[answered.id]
        assert stored.status is status
        assert stored.responded_at == EARLIER
        assert exc_info.value.details["status"] == status.value

    @pytest.mark.asyncio
    async def test_unknown_invitation(
        self, processor: ResponseProcessor, invitation_repo: InMemoryInvitationRepository
    ) -> None:
        with pytest.raises(InvitationNotFoundError):
            await processor.respond(uuid4(), ResponseAction.ACCEPT)

    @pytest.mark.asyncio
    async def test_expired_invitation(
        self, processor: ResponseProcessor, invitation_repo: InMemoryInvitationRepository
    ) -> None:
        stale = Invitation(
            event_id=uuid4(),
            email="old@example.com",
            role=InvitationRole.SPEAKER,
            invited_at=NOW - timedelta(days=40),
            expires_at=NOW - timedelta(days=10),
        )
        invitation_repo.add(stale)

        with pytest.raises(InvitationExpiredError):
            await processor.respond(stale.id, ResponseAction.ACCEPT)

        assert invitation_repo.items[stale.id].status is InvitationStatus.PENDING


class TestDecline:
    @pytest.mark.asyncio
    async def test_suggested_topic_is_persisted(
        self,
        processor: ResponseProcessor,
        invitation_repo: InMemoryInvitationRepository,
        pending: Invitation,
    ) -> None:
        updated = await processor.respond(
            pending.id, ResponseAction.DECLINE, SuggestedTopic(topic="Typing in practice")
        )

        assert updated.status is InvitationStatus.DECLINED
        assert invitation_repo.items[pending.id].decline_detail == SuggestedTopic(
            topic="Typing in practice"
        )

    @pytest.mark.asyncio
    async def test_time_conflict_without_times(
        self, processor: ResponseProcessor, pending: Invitation
    ) -> None:
        updated = await processor.respond(pending.id, ResponseAction.DECLINE, TimeConflict())

        assert isinstance(updated.decline_detail, TimeConflict)
        assert updated.decline_detail.suggested_start is None
        assert not hasattr(updated.decline_detail, "topic")

    @pytest.mark.asyncio
    async def test_decline_requires_detail(
        self,
        processor: ResponseProcessor,
        invitation_repo: InMemoryInvitationRepository,
        pending: Invitation,
    ) -> None:
        with pytest.raises(InvalidDeclineDetailError):
            await processor.respond(pending.id, ResponseAction.DECLINE)

        assert invitation_repo.items[pending.id].status is InvitationStatus.PENDING

    @pytest.mark.asyncio
    async def test_detail_rejected_with_accept(
        self, processor: ResponseProcessor, pending: Invitation
    ) -> None:
        with pytest.raises(InvalidDeclineDetailError):
            await processor.respond(pending.id, ResponseAction.ACCEPT, NotInterested())


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_lost_race_is_already_responded(
        self, processor: ResponseProcessor, uow: FakeUnitOfWork, pending: Invitation
    ) -> None:
        uow.invitations = AsyncMock()
        uow.invitations.get_by_id.return_value = pending
        uow.invitations.transition.return_value = None

        with pytest.raises(AlreadyRespondedError):
            await processor.respond(pending.id, ResponseAction.ACCEPT)

        assert uow.rolled_back
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_only_one_wins(
        self,
        processor: ResponseProcessor,
        invitation_repo: InMemoryInvitationRepository,
        pending: Invitation,
    ) -> None:
        results = await asyncio.gather(
            *(processor.respond(pending.id, ResponseAction.ACCEPT) for _ in range(5)),
            return_exceptions=True,
        )

        successes = [r for r in results if isinstance(r, Invitation)]
        conflicts = [r for r in results if isinstance(r, AlreadyRespondedError)]
        assert len(successes) == 1
        assert len(conflicts) == 4
        assert invitation_repo.items[pending.id].status is InvitationStatus.ACCEPTED


class TestRespondWithToken:
    @pytest.mark.asyncio
    async def test_valid_token(self, processor: ResponseProcessor, pending: Invitation) -> None:
        updated = await processor.respond_with_token(pending.token, ResponseAction.ACCEPT)

        assert updated.id == pending.id
        assert updated.status is InvitationStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_malformed_token(self, processor: ResponseProcessor, pending: Invitation) -> None:
        with pytest.raises(InvalidTokenError):
            await processor.respond_with_token("garbage", ResponseAction.ACCEPT)

    @pytest.mark.asyncio
    async def test_expired_token_rejected_before_any_change(
        self,
        uow: FakeUnitOfWork,
        invitation_repo: InMemoryInvitationRepository,
        pending: Invitation,
    ) -> None:
        late = datetime(2026, 1, 1)
        processor = ResponseProcessor(
            lambda: uow,
            token_codec=TokenCodec("unit-test-secret", clock=lambda: late),
            clock=lambda: late,
        )

        with pytest.raises(TokenExpiredError):
            await processor.respond_with_token(pending.token, ResponseAction.ACCEPT)

        assert invitation_repo.items[pending.id].status is InvitationStatus.PENDING

    @pytest.mark.asyncio
    async def test_superseded_token_rejected(
        self,
        processor: ResponseProcessor,
        invitation_repo: InMemoryInvitationRepository,
        codec: TokenCodec,
        pending: Invitation,
    ) -> None:
        reissued = Invitation(
            id=pending.id,
            event_id=pending.event_id,
            email=pending.email,
            role=pending.role,
            expires_at=pending.expires_at + timedelta(days=1),
        )
        stale_token = codec.encode(reissued)

        with pytest.raises(InvalidTokenError):
            await processor.respond_with_token(stale_token, ResponseAction.ACCEPT)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_pending(self, processor: ResponseProcessor, pending: Invitation) -> None:
        cancelled = await processor.cancel(pending.id)

        assert cancelled.status is InvitationStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_accepted_is_conflict(
        self, processor: ResponseProcessor, invitation_repo: InMemoryInvitationRepository
    ) -> None:
        answered = _answered(invitation_repo, InvitationStatus.ACCEPTED)

        with pytest.raises(AlreadyRespondedError):
            await processor.cancel(answered.id)

    @pytest.mark.asyncio
    async def test_get(self, processor: ResponseProcessor, pending: Invitation) -> None:
        assert (await processor.get(pending.id)).email == "jane@example.com"

