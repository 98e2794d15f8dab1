"""SQLAlchemy ORM models."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

OPEN_STATUS_CLAUSE = "status IN ('pending', 'tentative')"
NIL_SESSION_ID = "00000000-0000-0000-0000-000000000000"


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ParticipantModel(Base):
    """Invitee identity (user directory)."""

    __tablename__ = "participants"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class EventModel(Base):
    """Conference event."""

    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    starts_on: Mapped[date] = mapped_column(Date, nullable=False)
    ends_on: Mapped[date] = mapped_column(Date, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255))
    venue: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)

    sessions: Mapped[list["EventSessionModel"]] = relationship(
        "EventSessionModel",
        back_populates="event",
        cascade="all, delete-orphan",
    )


class EventSessionModel(Base):
    """Programme slot within an event."""

    __tablename__ = "event_sessions"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    starts_at: Mapped[datetime | None] = mapped_column(DateTime)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime)

    event: Mapped["EventModel"] = relationship("EventModel", back_populates="sessions")


class InvitationModel(Base):
    """Speaker invitation model."""

    __tablename__ = "invitations"
    __table_args__ = (
        Index("ix_invitations_event_status", "event_id", "status"),
        Index("ix_invitations_session_status", "session_id", "status"),
        Index("ix_invitations_invitee_event", "event_id", "email"),
        # At most one open invitation per invitee and event/session
        Index(
            "uq_invitations_open_invitee",
            "event_id",
            text(f"coalesce(session_id, '{NIL_SESSION_ID}')"),
            "email",
            unique=True,
            postgresql_where=text(OPEN_STATUS_CLAUSE),
            sqlite_where=text(OPEN_STATUS_CLAUSE),
        ),
        CheckConstraint(
            "(status = 'pending') = (responded_at IS NULL)",
            name="ck_invitations_responded_at",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    event_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
    )
    session_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("event_sessions.id", ondelete="SET NULL"),
    )
    invitee_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("participants.id", ondelete="SET NULL"),
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint(
            "role IN ('speaker', 'moderator', 'chairperson')",
            name="ck_invitations_role",
        ),
        nullable=False,
        default="speaker",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint(
            "status IN ('pending', 'tentative', 'accepted', 'declined', 'cancelled')",
            name="ck_invitations_status",
        ),
        nullable=False,
        default="pending",
    )
    token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    invited_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime)
    last_notified_at: Mapped[datetime | None] = mapped_column(DateTime)
    delivery_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    decline_detail: Mapped[Optional["DeclineDetailModel"]] = relationship(
        "DeclineDetailModel",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )


class DeclineDetailModel(Base):
    """Structured decline reason, 1:1 with a declined invitation."""

    __tablename__ = "invitation_decline_details"
    __table_args__ = (
        CheckConstraint(
            "reason_code = 'suggested_topic' OR suggested_topic IS NULL",
            name="ck_decline_topic_reason",
        ),
        CheckConstraint(
            "reason_code = 'time_conflict' OR "
            "(suggested_time_start IS NULL AND suggested_time_end IS NULL)",
            name="ck_decline_time_reason",
        ),
    )

    invitation_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("invitations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    reason_code: Mapped[str] = mapped_column(
        String(30),
        CheckConstraint(
            "reason_code IN ('not_interested', 'suggested_topic', 'time_conflict')",
            name="ck_decline_reason_code",
        ),
        nullable=False,
    )
    suggested_topic: Mapped[str | None] = mapped_column(Text)
    suggested_time_start: Mapped[datetime | None] = mapped_column(DateTime)
    suggested_time_end: Mapped[datetime | None] = mapped_column(DateTime)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
