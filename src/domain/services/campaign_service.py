"""IssueAndSend and reminder campaigns."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode
from uuid import UUID

import structlog

from core.exceptions import EventNotFoundError
from domain.entities.campaign import Campaign, CampaignResult, MessageTemplate, Recipient
from domain.entities.event import Event, EventSession
from domain.entities.invitation import Invitation, InvitationRole
from domain.entities.participant import Candidate
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.aggregation_engine import AggregationEngine
from domain.services.dispatcher import Dispatcher
from domain.services.invitation_issuer import (
    InvitationIssuer,
    IssuedInvitation,
    SkippedCandidate,
)
from domain.services.personalization import (
    event_placeholders,
    recipient_placeholders,
    resolve_display_name,
)

logger = structlog.get_logger()

DEFAULT_REMINDER_TEMPLATE = MessageTemplate(
    subject="Reminder: your invitation to {{eventTitle}}",
    message=(
        "Dear {{recipientName}},\n\n"
        "This is a gentle reminder to respond to your invitation as "
        "{{role}} at {{eventTitle}} ({{eventDates}}).\n\n"
        "Please accept or decline using the link below:\n{{responseLink}}\n\n"
        "Thank you for your time."
    ),
)


@dataclass(frozen=True)
class IssueAndSendResult:
    created: list[IssuedInvitation]
    skipped: list[SkippedCandidate]
    campaign: CampaignResult


class CampaignService:
    """Ties issuing and dispatch together for organizer-facing operations."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        issuer: InvitationIssuer,
        dispatcher: Dispatcher,
        aggregation: AggregationEngine,
        response_base_url: str,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._issuer = issuer
        self._dispatcher = dispatcher
        self._aggregation = aggregation
        self._response_base_url = response_base_url.rstrip("/")
        self._clock = clock

    async def issue_and_send(
        self,
        event_id: UUID,
        role: InvitationRole,
        template: MessageTemplate,
        candidates: Sequence[Candidate],
        session_id: UUID | None = None,
        rate_limit_ms: int | None = None,
    ) -> IssueAndSendResult:
        """Issue invitations and deliver the newly created ones.

        Skipped candidates (already invited) are not re-sent. Delivery
        success is recorded on the invitation but never changes its status.
        """
        issued = await self._issuer.issue(event_id, candidates, role, session_id)

        recipients = [
            self._recipient(
                item.invitation,
                item.token,
                names=[self._candidate_name(candidates, item.invitation.email), item.participant.name],
            )
            for item in issued.created
        ]
        campaign = Campaign(
            recipients=recipients,
            template=self._with_event_values(template, issued.event, issued.session),
            rate_limit_ms=rate_limit_ms,
        )
        result = await self._dispatcher.send(campaign)
        await self._record_delivery(result)

        return IssueAndSendResult(
            created=issued.created,
            skipped=issued.skipped,
            campaign=result,
        )

    async def send_reminders(
        self,
        event_id: UUID,
        session_id: UUID | None = None,
        min_days_pending: int = 0,
        template: MessageTemplate | None = None,
        rate_limit_ms: int | None = None,
    ) -> CampaignResult:
        """Re-deliver outstanding invitations with their existing tokens."""
        outstanding = await self._aggregation.outstanding(
            event_id, session_id=session_id, min_days_pending=min_days_pending
        )
        if not outstanding:
            return CampaignResult()

        async with self._uow_factory() as uow:
            event = await uow.events.get(event_id)
            if not event:
                raise EventNotFoundError(str(event_id))
            invitations = await uow.invitations.get_by_ids([o.invitation_id for o in outstanding])
            sessions: dict[UUID, EventSession] = {
                s.id: s for s in await uow.events.list_sessions(event_id)
            }

        by_id = {invitation.id: invitation for invitation in invitations}
        # Keep the longest-waiting-first order of the outstanding list
        ordered = [by_id[o.invitation_id] for o in outstanding if o.invitation_id in by_id]

        base = template or DEFAULT_REMINDER_TEMPLATE
        session = sessions.get(session_id) if session_id else None
        recipients = []
        for invitation in ordered:
            recipient = self._recipient(invitation, invitation.token, names=[invitation.name])
            if session is None and invitation.session_id in sessions:
                recipient.values["sessionTitle"] = sessions[invitation.session_id].title
            recipients.append(recipient)

        result = await self._dispatcher.send(
            Campaign(
                recipients=recipients,
                template=self._with_event_values(base, event, session),
                rate_limit_ms=rate_limit_ms,
            )
        )
        await self._record_delivery(result)
        logger.info(
            "reminders_sent",
            event_id=str(event_id),
            session_id=str(session_id) if session_id else None,
            min_days_pending=min_days_pending,
            sent=len(result.sent),
            failed=len(result.failed),
        )
        return result

    def response_link(self, token: str) -> str:
        return f"{self._response_base_url}/invitations/respond?{urlencode({'token': token})}"

    # --- Internal helpers ---

    def _recipient(
        self, invitation: Invitation, token: str, names: list[str | None]
    ) -> Recipient:
        display_name = resolve_display_name(names, invitation.email)
        return Recipient(
            invitation=invitation,
            address=invitation.email,
            values=recipient_placeholders(invitation, display_name, self.response_link(token)),
        )

    @staticmethod
    def _with_event_values(
        template: MessageTemplate, event: Event, session: EventSession | None
    ) -> MessageTemplate:
        # Organizer-supplied placeholders win over event-derived ones
        values = {**event_placeholders(event, session), **template.placeholders}
        return MessageTemplate(subject=template.subject, message=template.message, placeholders=values)

    @staticmethod
    def _candidate_name(candidates: Sequence[Candidate], email: str) -> str | None:
        for candidate in candidates:
            if candidate.normalized_email == email:
                return candidate.name
        return None

    async def _record_delivery(self, result: CampaignResult) -> None:
        if not result.sent:
            return
        async with self._uow_factory() as uow:
            await uow.invitations.mark_notified(
                [outcome.invitation.id for outcome in result.sent], self._clock()
            )
            await uow.commit()
