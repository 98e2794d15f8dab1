"""Event and session domain entities (read-only context for invitations)."""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4


@dataclass
class Event:
    """A conference. Owned by event management, read by this engine."""

    title: str
    starts_on: date
    ends_on: date
    id: UUID = field(default_factory=uuid4)
    location: str | None = None
    venue: str | None = None
    description: str | None = None

    @property
    def date_range(self) -> str:
        """Human readable dates, e.g. ``November 6, 2025 - November 9, 2025``."""
        start = _format_date(self.starts_on)
        if self.ends_on == self.starts_on:
            return start
        return f"{start} - {_format_date(self.ends_on)}"


@dataclass
class EventSession:
    """A slot in the programme of an event."""

    event_id: UUID
    title: str
    id: UUID = field(default_factory=uuid4)
    starts_at: datetime | None = None
    ends_at: datetime | None = None


def _format_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"
