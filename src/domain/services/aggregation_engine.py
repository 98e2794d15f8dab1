"""Per-event and per-session response statistics."""

from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from core.exceptions import EventNotFoundError, SessionNotFoundError, ValidationError
from domain.entities.invitation import Invitation
from domain.entities.stats import (
    EventStatsBreakdown,
    OutstandingInvitation,
    SessionStats,
    StatsSnapshot,
)
from domain.repositories.unit_of_work import IUnitOfWork


class AggregationEngine:
    """Pull-based statistics over the current invitation set. Read-only."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def stats(
        self,
        event_id: UUID | None = None,
        session_id: UUID | None = None,
    ) -> StatsSnapshot:
        """Counts for one event (all of its sessions) or one session.

        Exactly one of ``event_id`` and ``session_id`` must be given.

        Raises:
            ValidationError: Neither or both scopes given.
            EventNotFoundError / SessionNotFoundError: Unknown scope.
        """
        if (event_id is None) == (session_id is None):
            raise ValidationError("Provide exactly one of event_id or session_id")

        if event_id is not None:
            breakdown = await self.stats_all(event_id)
            return breakdown.overall

        async with self._uow_factory() as uow:
            session = await uow.events.get_session(session_id)
            if not session:
                raise SessionNotFoundError(str(session_id))
            invitations = await uow.invitations.list_for_session(session_id)
        return StatsSnapshot.from_invitations(invitations, self._clock())

    async def stats_all(self, event_id: UUID) -> EventStatsBreakdown:
        """The "all sessions" view.

        Per-session snapshots come from a single read; the event figure is
        their sum, so both always agree. Invitations issued at event level
        (no session yet) form their own bucket with ``session_id=None``.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            event = await uow.events.get(event_id)
            if not event:
                raise EventNotFoundError(str(event_id))
            sessions = await uow.events.list_sessions(event_id)
            invitations = await uow.invitations.list_for_event(event_id)

        by_session: dict[UUID | None, list[Invitation]] = defaultdict(list)
        for invitation in invitations:
            by_session[invitation.session_id].append(invitation)

        session_stats: list[SessionStats] = []
        for session in sessions:
            session_stats.append(
                SessionStats(
                    session_id=session.id,
                    title=session.title,
                    snapshot=StatsSnapshot.from_invitations(by_session.pop(session.id, []), now),
                )
            )

        event_level = by_session.pop(None, [])
        if event_level:
            session_stats.append(
                SessionStats(
                    session_id=None,
                    title=None,
                    snapshot=StatsSnapshot.from_invitations(event_level, now),
                )
            )

        # Invitations whose session is no longer listed still count
        for orphan_session_id, orphaned in by_session.items():
            session_stats.append(
                SessionStats(
                    session_id=orphan_session_id,
                    title=None,
                    snapshot=StatsSnapshot.from_invitations(orphaned, now),
                )
            )

        overall = StatsSnapshot.combine(s.snapshot for s in session_stats)
        return EventStatsBreakdown(
            event_id=event_id,
            overall=overall,
            sessions=tuple(session_stats),
        )

    async def outstanding(
        self,
        event_id: UUID,
        session_id: UUID | None = None,
        min_days_pending: int = 0,
    ) -> list[OutstandingInvitation]:
        """Open invitations, longest-waiting first.

        Args:
            event_id: The event to look at.
            session_id: Restrict to one session of the event.
            min_days_pending: Only invitations waiting at least this many days.
        """
        if min_days_pending < 0:
            raise ValidationError("min_days_pending must not be negative")

        if session_id is not None:
            async with self._uow_factory() as uow:
                session = await uow.events.get_session(session_id)
                if not session or session.event_id != event_id:
                    raise SessionNotFoundError(str(session_id))
            snapshot = await self.stats(session_id=session_id)
        else:
            snapshot = await self.stats(event_id=event_id)

        return [item for item in snapshot.outstanding if item.days_pending >= min_days_pending]
