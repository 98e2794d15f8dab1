"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.v1.dependencies import get_campaign_service, get_response_processor
from api.v1.schemas.invitation import (
    CampaignResultResponse,
    DeclineDetailResponse,
    DeliveryOutcomeResponse,
    InvitationResponse,
    IssuedInvitationResponse,
    IssueInvitationsRequest,
    IssueInvitationsResponse,
    ReminderRequest,
    RespondRequest,
    SkippedCandidateResponse,
    TemplateRequest,
    TokenRespondRequest,
)
from core.exceptions import InvalidDeclineDetailError
from core.rate_limit import limiter
from domain.entities.campaign import CampaignResult, DeliveryOutcome, MessageTemplate
from domain.entities.decline import (
    DeclineDetail,
    SuggestedTopic,
    TimeConflict,
    build_decline_detail,
)
from domain.entities.invitation import Invitation, InvitationRole, ResponseAction
from domain.entities.participant import Candidate
from domain.services.campaign_service import CampaignService
from domain.services.response_processor import ResponseProcessor

# Event-scoped routes (issue, reminders)
events_router = APIRouter(prefix="/events/{event_id}", tags=["invitations"])

# Invitation-scoped routes (respond, cancel, read)
invitations_router = APIRouter(prefix="/invitations", tags=["invitations"])


@events_router.post(
    "/invitations",
    response_model=IssueInvitationsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue and send invitations",
    responses={
        201: {"description": "Invitations issued; per-recipient delivery results"},
        400: {"description": "Invalid candidate list"},
        404: {"description": "Event or session not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def issue_invitations(
    request: Request,
    event_id: UUID,
    body: IssueInvitationsRequest,
    service: CampaignService = Depends(get_campaign_service),
) -> IssueInvitationsResponse:
    """
    Create one pending invitation per new candidate and deliver it.

    Candidates who already hold an open invitation for the same event and
    session are reported under `skipped` and are not e-mailed again.
    A failed delivery never rolls back the invitation.
    """
    result = await service.issue_and_send(
        event_id=event_id,
        role=InvitationRole(body.role),
        template=_build_template(body.template),
        candidates=[Candidate(email=c.email, name=c.name) for c in body.candidates],
        session_id=body.session_id,
        rate_limit_ms=body.rate_limit_ms,
    )
    return IssueInvitationsResponse(
        created=[
            IssuedInvitationResponse(
                **_build_invitation_response(item.invitation).model_dump(),
                token=item.token,
            )
            for item in result.created
        ],
        skipped=[
            SkippedCandidateResponse(
                email=item.candidate.normalized_email,
                name=item.candidate.name,
                reason=item.reason.value,
                invitation_id=item.invitation_id,
            )
            for item in result.skipped
        ],
        campaign=_build_campaign_response(result.campaign),
        meta={
            "created_count": len(result.created),
            "skipped_count": len(result.skipped),
        },
    )


@events_router.post(
    "/reminders",
    response_model=CampaignResultResponse,
    summary="Send reminders",
    responses={
        200: {"description": "Per-recipient delivery results"},
        404: {"description": "Event or session not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def send_reminders(
    request: Request,
    event_id: UUID,
    body: ReminderRequest,
    service: CampaignService = Depends(get_campaign_service),
) -> CampaignResultResponse:
    """Re-send outstanding invitations with their original response link."""
    result = await service.send_reminders(
        event_id=event_id,
        session_id=body.session_id,
        min_days_pending=body.min_days_pending,
        template=_build_template(body.template) if body.template else None,
        rate_limit_ms=body.rate_limit_ms,
    )
    return _build_campaign_response(result)


@invitations_router.get(
    "/{invitation_id}",
    response_model=InvitationResponse,
    summary="Get invitation",
    responses={
        200: {"description": "Invitation with its decline detail, if any"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_invitation(
    request: Request,
    invitation_id: UUID,
    processor: ResponseProcessor = Depends(get_response_processor),
) -> InvitationResponse:
    """Get a single invitation."""
    invitation = await processor.get(invitation_id)
    return _build_invitation_response(invitation)


@invitations_router.post(
    "/respond",
    response_model=InvitationResponse,
    summary="Respond with token",
    responses={
        200: {"description": "Response recorded"},
        400: {"description": "Invalid decline detail"},
        401: {"description": "Invalid or expired token"},
        409: {"description": "Invitation already answered"},
        410: {"description": "Invitation expired"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def respond_with_token(
    request: Request,
    body: TokenRespondRequest,
    processor: ResponseProcessor = Depends(get_response_processor),
) -> InvitationResponse:
    """Answer an invitation from the e-mail link. The token is the only credential."""
    invitation = await processor.respond_with_token(
        body.token,
        ResponseAction(body.action),
        _build_decline_detail(body),
    )
    return _build_invitation_response(invitation)


@invitations_router.post(
    "/{invitation_id}/respond",
    response_model=InvitationResponse,
    summary="Respond to invitation",
    responses={
        200: {"description": "Response recorded"},
        400: {"description": "Invalid decline detail"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already answered"},
        410: {"description": "Invitation expired"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def respond(
    request: Request,
    invitation_id: UUID,
    body: RespondRequest,
    processor: ResponseProcessor = Depends(get_response_processor),
) -> InvitationResponse:
    """
    Accept, decline or tentatively accept an invitation.

    Declining requires a `reason_code`. `suggested_topic` only goes with
    `suggested_topic`, the suggested times only with `time_conflict`.
    """
    invitation = await processor.respond(
        invitation_id,
        ResponseAction(body.action),
        _build_decline_detail(body),
    )
    return _build_invitation_response(invitation)


@invitations_router.post(
    "/{invitation_id}/cancel",
    response_model=InvitationResponse,
    summary="Cancel invitation",
    responses={
        200: {"description": "Invitation cancelled"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation already answered"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def cancel_invitation(
    request: Request,
    invitation_id: UUID,
    processor: ResponseProcessor = Depends(get_response_processor),
) -> InvitationResponse:
    """Withdraw an open invitation. The record is kept as `cancelled`."""
    invitation = await processor.cancel(invitation_id)
    return _build_invitation_response(invitation)


# --- Helpers ---


def _build_template(body: TemplateRequest) -> MessageTemplate:
    return MessageTemplate(
        subject=body.subject,
        message=body.message,
        placeholders=dict(body.placeholders),
    )


def _build_decline_detail(body: RespondRequest) -> DeclineDetail | None:
    if body.action == ResponseAction.DECLINE:
        return build_decline_detail(
            body.reason_code,
            suggested_topic=body.suggested_topic,
            suggested_time_start=body.suggested_time_start,
            suggested_time_end=body.suggested_time_end,
            note=body.note,
        )
    if body.has_decline_fields:
        raise InvalidDeclineDetailError("Decline details are only accepted with a decline")
    return None


def _build_decline_response(detail: DeclineDetail | None) -> DeclineDetailResponse | None:
    if detail is None:
        return None
    response = DeclineDetailResponse(reason_code=detail.reason_code.value, note=detail.note)
    if isinstance(detail, SuggestedTopic):
        response.suggested_topic = detail.topic
    elif isinstance(detail, TimeConflict):
        response.suggested_time_start = detail.suggested_start
        response.suggested_time_end = detail.suggested_end
    return response


def _build_invitation_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        event_id=invitation.event_id,
        session_id=invitation.session_id,
        invitee_id=invitation.invitee_id,
        email=invitation.email,
        name=invitation.name,
        role=invitation.role.value,
        status=invitation.status.value,
        invited_at=invitation.invited_at,
        expires_at=invitation.expires_at,
        responded_at=invitation.responded_at,
        last_notified_at=invitation.last_notified_at,
        delivery_count=invitation.delivery_count,
        decline_detail=_build_decline_response(invitation.decline_detail),
    )


def _build_outcome_response(outcome: DeliveryOutcome) -> DeliveryOutcomeResponse:
    return DeliveryOutcomeResponse(
        invitation_id=outcome.invitation.id,
        address=outcome.address,
        delivery_status=outcome.delivery_status.value,
        error=outcome.error,
        delivered_at=outcome.delivered_at,
        message_id=outcome.message_id,
    )


def _build_campaign_response(result: CampaignResult) -> CampaignResultResponse:
    summary = result.summary.as_dict()
    return CampaignResultResponse(
        sent_count=summary["successful"],
        failed_count=summary["failed"],
        success_rate=summary["success_rate"],
        sent=[_build_outcome_response(o) for o in result.sent],
        failed=[_build_outcome_response(o) for o in result.failed],
    )
