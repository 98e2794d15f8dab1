"""Participant (invitee identity) domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4


@dataclass
class Participant:
    """A person known to the user directory, referenced by invitations."""

    email: str
    id: UUID = field(default_factory=uuid4)
    name: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True, slots=True)
class Candidate:
    """Someone an organizer wants to invite, as typed into the request."""

    email: str
    name: str | None = None

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Basic shape check: one local part, one dotted domain."""
    local, sep, domain = email.strip().partition("@")
    if not sep or not local or "@" in domain:
        return False
    host, dot, tld = domain.rpartition(".")
    return bool(dot and host and tld)
