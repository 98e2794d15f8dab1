"""Unit tests for AggregationEngine."""

from datetime import timedelta
from uuid import uuid4

import pytest

from core.exceptions import EventNotFoundError, SessionNotFoundError, ValidationError
from domain.entities.event import Event, EventSession
from domain.entities.invitation import Invitation, InvitationRole, InvitationStatus
from domain.services.aggregation_engine import AggregationEngine
from tests.unit.conftest import NOW, FakeUnitOfWork, InMemoryInvitationRepository


@pytest.fixture
def engine(uow: FakeUnitOfWork) -> AggregationEngine:
    return AggregationEngine(lambda: uow, clock=lambda: NOW)


@pytest.fixture(autouse=True)
def catalog(
    uow: FakeUnitOfWork, event: Event, keynote: EventSession, panel: EventSession
) -> None:
    sessions = {keynote.id: keynote, panel.id: panel}

    async def get_event(event_id):  # type: ignore[no-untyped-def]
        return event if event_id == event.id else None

    async def get_session(session_id):  # type: ignore[no-untyped-def]
        return sessions.get(session_id)

    uow.events.get.side_effect = get_event
    uow.events.get_session.side_effect = get_session
    uow.events.list_sessions.return_value = [keynote, panel]


def _add(
    repo: InMemoryInvitationRepository,
    event: Event,
    session: EventSession | None,
    status: InvitationStatus,
    count: int,
    days_ago: int = 0,
) -> None:
    for _ in range(count):
        repo.add(
            Invitation(
                event_id=event.id,
                session_id=session.id if session else None,
                email=f"{uuid4().hex[:8]}@example.com",
                role=InvitationRole.SPEAKER,
                status=status,
                invited_at=NOW - timedelta(days=days_ago),
                responded_at=None if status is InvitationStatus.PENDING else NOW,
            )
        )


class TestStats:
    @pytest.mark.asyncio
    async def test_event_with_ten_invitations(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
        panel: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.ACCEPTED, 3)
        _add(invitation_repo, event, panel, InvitationStatus.ACCEPTED, 1)
        _add(invitation_repo, event, keynote, InvitationStatus.DECLINED, 1)
        _add(invitation_repo, event, panel, InvitationStatus.DECLINED, 2)
        _add(invitation_repo, event, panel, InvitationStatus.PENDING, 3)

        snapshot = await engine.stats(event_id=event.id)

        assert snapshot.counts[InvitationStatus.ACCEPTED] == 4
        assert snapshot.counts[InvitationStatus.DECLINED] == 3
        assert snapshot.counts[InvitationStatus.PENDING] == 3
        assert snapshot.total == 10
        assert snapshot.response_rate_percent == 70

    @pytest.mark.asyncio
    async def test_event_without_invitations(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
    ) -> None:
        snapshot = await engine.stats(event_id=event.id)

        assert snapshot.total == 0
        assert snapshot.response_rate == 0.0
        assert snapshot.percentage(InvitationStatus.ACCEPTED) == 0

    @pytest.mark.asyncio
    async def test_single_session(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
        panel: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.ACCEPTED, 2)
        _add(invitation_repo, event, panel, InvitationStatus.PENDING, 5)

        snapshot = await engine.stats(session_id=keynote.id)

        assert snapshot.total == 2
        assert snapshot.response_rate == 1.0

    @pytest.mark.asyncio
    async def test_requires_exactly_one_scope(
        self, engine: AggregationEngine, event: Event, keynote: EventSession
    ) -> None:
        with pytest.raises(ValidationError):
            await engine.stats()
        with pytest.raises(ValidationError):
            await engine.stats(event_id=event.id, session_id=keynote.id)

    @pytest.mark.asyncio
    async def test_unknown_scopes(self, engine: AggregationEngine) -> None:
        with pytest.raises(EventNotFoundError):
            await engine.stats(event_id=uuid4())
        with pytest.raises(SessionNotFoundError):
            await engine.stats(session_id=uuid4())


class TestAllSessions:
    @pytest.mark.asyncio
    async def test_event_equals_sum_of_sessions(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
        panel: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.ACCEPTED, 2)
        _add(invitation_repo, event, keynote, InvitationStatus.TENTATIVE, 1)
        _add(invitation_repo, event, panel, InvitationStatus.DECLINED, 4)
        _add(invitation_repo, event, None, InvitationStatus.PENDING, 2)

        breakdown = await engine.stats_all(event.id)
        keynote_only = await engine.stats(session_id=keynote.id)
        panel_only = await engine.stats(session_id=panel.id)

        assert [s.session_id for s in breakdown.sessions] == [keynote.id, panel.id, None]
        assert breakdown.sessions[0].snapshot.counts == keynote_only.counts
        assert breakdown.sessions[1].snapshot.counts == panel_only.counts
        for status in InvitationStatus:
            assert breakdown.overall.counts[status] == sum(
                s.snapshot.counts[status] for s in breakdown.sessions
            )
        assert breakdown.overall.total == 9

    @pytest.mark.asyncio
    async def test_sessions_without_invitations_are_listed(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
    ) -> None:
        breakdown = await engine.stats_all(event.id)

        assert [s.title for s in breakdown.sessions] == ["Opening Keynote", "Closing Panel"]
        assert all(s.snapshot.total == 0 for s in breakdown.sessions)
        assert breakdown.overall.total == 0


class TestOutstanding:
    @pytest.mark.asyncio
    async def test_longest_waiting_first(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
        panel: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.PENDING, 1, days_ago=2)
        _add(invitation_repo, event, panel, InvitationStatus.TENTATIVE, 1, days_ago=9)
        _add(invitation_repo, event, panel, InvitationStatus.ACCEPTED, 1, days_ago=20)

        outstanding = await engine.outstanding(event.id)

        assert [o.days_pending for o in outstanding] == [9, 2]

    @pytest.mark.asyncio
    async def test_min_days_pending(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.PENDING, 1, days_ago=2)
        _add(invitation_repo, event, keynote, InvitationStatus.PENDING, 1, days_ago=8)

        outstanding = await engine.outstanding(event.id, min_days_pending=7)

        assert len(outstanding) == 1
        assert outstanding[0].days_pending == 8

    @pytest.mark.asyncio
    async def test_session_filter(
        self,
        engine: AggregationEngine,
        invitation_repo: InMemoryInvitationRepository,
        event: Event,
        keynote: EventSession,
        panel: EventSession,
    ) -> None:
        _add(invitation_repo, event, keynote, InvitationStatus.PENDING, 2)
        _add(invitation_repo, event, panel, InvitationStatus.PENDING, 1)

        outstanding = await engine.outstanding(event.id, session_id=panel.id)

        assert [o.session_id for o in outstanding] == [panel.id]

    @pytest.mark.asyncio
    async def test_session_of_other_event(self, engine: AggregationEngine) -> None:
        with pytest.raises(SessionNotFoundError):
            await engine.outstanding(uuid4(), session_id=uuid4())

    @pytest.mark.asyncio
    async def test_negative_days_rejected(self, engine: AggregationEngine, event: Event) -> None:
        with pytest.raises(ValidationError):
            await engine.outstanding(event.id, min_days_pending=-1)
