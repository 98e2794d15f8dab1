"""Invitation domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.decline import DeclineDetail


class InvitationStatus(StrEnum):
    """Response status of a speaker invitation."""

    PENDING = "pending"
    TENTATIVE = "tentative"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        """Pending and tentative invitations can still change."""
        return self in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return not self.is_open


OPEN_STATUSES = frozenset({InvitationStatus.PENDING, InvitationStatus.TENTATIVE})


class InvitationRole(StrEnum):
    """What the invitee is asked to do."""

    SPEAKER = "speaker"
    MODERATOR = "moderator"
    CHAIRPERSON = "chairperson"


class ResponseAction(StrEnum):
    """An invitee's answer. Values are the statuses they lead to."""

    ACCEPT = "accepted"
    DECLINE = "declined"
    TENTATIVE = "tentative"

    @property
    def target_status(self) -> InvitationStatus:
        return InvitationStatus(self.value)


# Default invitation expiry: 30 days
INVITATION_EXPIRY_DAYS = 30


@dataclass
class Invitation:
    """Binds one invitee to one event (and optionally one session)."""

    event_id: UUID
    email: str
    role: InvitationRole
    id: UUID = field(default_factory=uuid4)
    session_id: UUID | None = None
    invitee_id: UUID | None = None
    name: str | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    token: str = ""
    invited_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=INVITATION_EXPIRY_DAYS)
    )
    responded_at: datetime | None = None
    decline_detail: DeclineDetail | None = None
    last_notified_at: datetime | None = None
    delivery_count: int = 0

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the invitation has expired."""
        return (now or datetime.utcnow()) > self.expires_at

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    def days_pending(self, now: datetime | None = None) -> int:
        """Whole days since the invitation was issued."""
        delta = (now or datetime.utcnow()) - self.invited_at
        return max(delta.days, 0)
