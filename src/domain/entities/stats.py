"""Response statistics value objects."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from domain.entities.invitation import Invitation, InvitationRole, InvitationStatus


def _empty_counts() -> dict[InvitationStatus, int]:
    return {status: 0 for status in InvitationStatus}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, slots=True)
class OutstandingInvitation:
    """An open invitation and how long it has been waiting."""

    invitation_id: UUID
    event_id: UUID
    session_id: UUID | None
    email: str
    name: str | None
    role: InvitationRole
    status: InvitationStatus
    invited_at: datetime
    days_pending: int

    @classmethod
    def from_invitation(cls, invitation: Invitation, now: datetime) -> "OutstandingInvitation":
        return cls(
            invitation_id=invitation.id,
            event_id=invitation.event_id,
            session_id=invitation.session_id,
            email=invitation.email,
            name=invitation.name,
            role=invitation.role,
            status=invitation.status,
            invited_at=invitation.invited_at,
            days_pending=invitation.days_pending(now),
        )


@dataclass(frozen=True)
class StatsSnapshot:
    """Status counts for one scope, computed on demand and never mutated."""

    counts: dict[InvitationStatus, int] = field(default_factory=_empty_counts)
    outstanding: tuple[OutstandingInvitation, ...] = ()

    @classmethod
    def from_invitations(
        cls, invitations: Iterable[Invitation], now: datetime
    ) -> "StatsSnapshot":
        counts = _empty_counts()
        outstanding: list[OutstandingInvitation] = []
        for invitation in invitations:
            counts[invitation.status] += 1
            if invitation.is_open:
                outstanding.append(OutstandingInvitation.from_invitation(invitation, now))
        outstanding.sort(key=lambda item: item.days_pending, reverse=True)
        return cls(counts=counts, outstanding=tuple(outstanding))

    @classmethod
    def combine(cls, snapshots: Iterable["StatsSnapshot"]) -> "StatsSnapshot":
        """Element-wise sum of several snapshots."""
        counts = _empty_counts()
        outstanding: list[OutstandingInvitation] = []
        for snapshot in snapshots:
            for status, count in snapshot.counts.items():
                counts[status] += count
            outstanding.extend(snapshot.outstanding)
        outstanding.sort(key=lambda item: item.days_pending, reverse=True)
        return cls(counts=counts, outstanding=tuple(outstanding))

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def responded(self) -> int:
        return self.counts[InvitationStatus.ACCEPTED] + self.counts[InvitationStatus.DECLINED]

    @property
    def response_rate(self) -> float:
        """(accepted + declined) / total, 0.0 when there are no invitations."""
        if self.total == 0:
            return 0.0
        return self.responded / self.total

    @property
    def response_rate_percent(self) -> int:
        return _round_half_up(self.response_rate * 100)

    def percentage(self, status: InvitationStatus) -> int:
        if self.total == 0:
            return 0
        return _round_half_up(self.counts[status] / self.total * 100)

    @property
    def percentages(self) -> dict[InvitationStatus, int]:
        return {status: self.percentage(status) for status in InvitationStatus}


@dataclass(frozen=True)
class SessionStats:
    """Snapshot for one session; ``session_id`` is None for event-level invitations."""

    session_id: UUID | None
    title: str | None
    snapshot: StatsSnapshot


@dataclass(frozen=True)
class EventStatsBreakdown:
    """The "all sessions" view: per-session snapshots and their sum."""

    event_id: UUID
    overall: StatsSnapshot
    sessions: tuple[SessionStats, ...]
