"""Invitation issuing: deduplication and creation of pending invitations."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import EventNotFoundError, InvalidCandidateError, SessionNotFoundError
from domain.entities.event import Event, EventSession
from domain.entities.invitation import (
    INVITATION_EXPIRY_DAYS,
    Invitation,
    InvitationRole,
)
from domain.entities.participant import Candidate, Participant, is_valid_email
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.token_codec import TokenCodec

logger = structlog.get_logger()


class SkipReason(StrEnum):
    ALREADY_INVITED = "already_invited"


@dataclass(frozen=True, slots=True)
class IssuedInvitation:
    invitation: Invitation
    token: str
    participant: Participant


@dataclass(frozen=True, slots=True)
class SkippedCandidate:
    candidate: Candidate
    reason: SkipReason
    invitation_id: UUID | None = None


@dataclass
class IssueResult:
    """Outcome of one issue call, plus the context needed to dispatch it."""

    event: Event
    session: EventSession | None
    created: list[IssuedInvitation] = field(default_factory=list)
    skipped: list[SkippedCandidate] = field(default_factory=list)


class InvitationIssuer:
    """Creates one pending invitation per new invitee of an event/session.

    Nothing is sent from here; the created invitations and their tokens are
    handed to the Dispatcher by the caller.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        token_codec: TokenCodec,
        expiry_days: int = INVITATION_EXPIRY_DAYS,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._codec = token_codec
        self._expiry = timedelta(days=expiry_days)
        self._clock = clock

    async def issue(
        self,
        event_id: UUID,
        candidates: Sequence[Candidate],
        role: InvitationRole,
        session_id: UUID | None = None,
    ) -> IssueResult:
        """Issue invitations for every candidate not already invited.

        Args:
            event_id: The event to invite to.
            candidates: People to invite, identified by e-mail.
            role: Role offered to every candidate of this batch.
            session_id: Optional session of the event.

        Returns:
            IssueResult with created invitations (and their tokens) and
            skipped candidates.

        Raises:
            InvalidCandidateError: Empty list or an invalid e-mail.
            EventNotFoundError: If the event does not exist.
            SessionNotFoundError: If the session does not exist or belongs
                to another event.
        """
        self._validate(candidates)

        async with self._uow_factory() as uow:
            event = await uow.events.get(event_id)
            if not event:
                raise EventNotFoundError(str(event_id))

            session: EventSession | None = None
            if session_id is not None:
                session = await uow.events.get_session(session_id)
                if not session or session.event_id != event_id:
                    raise SessionNotFoundError(str(session_id))

            result = IssueResult(event=event, session=session)
            issued_in_batch: dict[str, UUID] = {}
            now = self._clock()

            for candidate in candidates:
                email = candidate.normalized_email
                participant = await self._resolve_participant(uow, candidate)

                # Same person listed twice in one request
                if email in issued_in_batch:
                    result.skipped.append(
                        SkippedCandidate(candidate, SkipReason.ALREADY_INVITED, issued_in_batch[email])
                    )
                    continue

                existing = await uow.invitations.get_open_for_invitee(
                    event_id, session_id, participant.id, email
                )
                if existing:
                    # Re-invitation keeps the original token and expiry
                    result.skipped.append(
                        SkippedCandidate(candidate, SkipReason.ALREADY_INVITED, existing.id)
                    )
                    continue

                invitation = Invitation(
                    event_id=event_id,
                    session_id=session_id,
                    invitee_id=participant.id,
                    email=email,
                    name=(candidate.name or "").strip() or participant.name,
                    role=role,
                    invited_at=now,
                    expires_at=now + self._expiry,
                )
                invitation.token = self._codec.encode(invitation)

                try:
                    created = await uow.invitations.create(invitation)
                except IntegrityError as exc:
                    # A concurrent issue call won the race for this invitee
                    if not _is_unique_violation(exc):
                        raise
                    winner = await uow.invitations.get_open_for_invitee(
                        event_id, session_id, participant.id, email
                    )
                    logger.info(
                        "invitation_issue_raced",
                        event_id=str(event_id),
                        email=email,
                        invitation_id=str(winner.id) if winner else None,
                    )
                    result.skipped.append(
                        SkippedCandidate(
                            candidate, SkipReason.ALREADY_INVITED, winner.id if winner else None
                        )
                    )
                    continue
                issued_in_batch[email] = created.id
                result.created.append(IssuedInvitation(created, invitation.token, participant))

            await uow.commit()

        logger.info(
            "invitations_issued",
            event_id=str(event_id),
            session_id=str(session_id) if session_id else None,
            role=role.value,
            created=len(result.created),
            skipped=len(result.skipped),
        )
        return result

    @staticmethod
    def _validate(candidates: Sequence[Candidate]) -> None:
        if not candidates:
            raise InvalidCandidateError("At least one candidate is required")

        invalid = [c.email for c in candidates if not c.email or not is_valid_email(c.email)]
        if invalid:
            raise InvalidCandidateError(
                "Invalid e-mail address in candidate list",
                details={"invalid_emails": invalid},
            )

    @staticmethod
    async def _resolve_participant(uow: IUnitOfWork, candidate: Candidate) -> Participant:
        email = candidate.normalized_email
        participant = await uow.participants.get_by_email(email)
        if participant:
            return participant
        name = (candidate.name or "").strip() or None
        try:
            return await uow.participants.create(Participant(email=email, name=name))
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            # Registered concurrently by another request
            existing = await uow.participants.get_by_email(email)
            if existing is None:
                raise
            return existing


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = str(exc.orig).lower() if exc.orig else ""
    return "unique" in orig or "duplicate" in orig
