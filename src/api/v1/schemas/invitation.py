"""Pydantic schemas for Invitation API."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_naive_utc(value: datetime | None) -> datetime | None:
    """Stored datetimes are naive UTC; convert aware input accordingly."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TemplateRequest(BaseModel):
    """Message template with ``{{placeholder}}`` fields."""

    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    placeholders: dict[str, str] = Field(default_factory=dict)


class CandidateRequest(BaseModel):
    """One prospective invitee."""

    email: str = Field(..., max_length=255)
    name: str | None = Field(None, max_length=200)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class IssueInvitationsRequest(BaseModel):
    """Schema for issuing and sending invitations for an event."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "role": "speaker",
                "session_id": "456e4567-e89b-12d3-a456-426614174000",
                "template": {
                    "subject": "Invitation to speak at {{eventTitle}}",
                    "message": "Dear {{recipientName}},\n\nWe would be honoured "
                    "to have you as {{role}} at {{eventTitle}} ({{eventDates}}).\n\n"
                    "{{responseLink}}",
                    "placeholders": {"organizer": "Programme Committee"},
                },
                "candidates": [{"name": "Jane Doe", "email": "jane@example.com"}],
                "rate_limit_ms": 1000,
            }
        },
    )

    role: str = Field("speaker", pattern="^(speaker|moderator|chairperson)$")
    session_id: UUID | None = None
    template: TemplateRequest
    candidates: list[CandidateRequest] = Field(..., min_length=1, max_length=500)
    rate_limit_ms: int | None = Field(None, ge=0, le=60000)


class RespondRequest(BaseModel):
    """Schema for an invitee's answer."""

    action: str = Field(..., pattern="^(accepted|declined|tentative)$")
    reason_code: str | None = Field(
        None, pattern="^(not_interested|suggested_topic|time_conflict)$"
    )
    suggested_topic: str | None = Field(None, max_length=500)
    suggested_time_start: datetime | None = None
    suggested_time_end: datetime | None = None
    note: str | None = Field(None, max_length=2000)

    @field_validator("suggested_time_start", "suggested_time_end")
    @classmethod
    def normalize_time(cls, v: datetime | None) -> datetime | None:
        return _to_naive_utc(v)

    @property
    def has_decline_fields(self) -> bool:
        return any(
            value is not None
            for value in (
                self.reason_code,
                self.suggested_topic,
                self.suggested_time_start,
                self.suggested_time_end,
                self.note,
            )
        )


class TokenRespondRequest(RespondRequest):
    """Answer authenticated by the invitation token from the e-mail link."""

    token: str = Field(..., min_length=1)


class ReminderRequest(BaseModel):
    """Schema for re-sending outstanding invitations."""

    session_id: UUID | None = None
    min_days_pending: int = Field(0, ge=0)
    template: TemplateRequest | None = None
    rate_limit_ms: int | None = Field(None, ge=0, le=60000)


class DeclineDetailResponse(BaseModel):
    """Structured decline reason."""

    reason_code: str
    suggested_topic: str | None = None
    suggested_time_start: datetime | None = None
    suggested_time_end: datetime | None = None
    note: str | None = None


class InvitationResponse(BaseModel):
    """Schema for Invitation response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "event_id": "456e4567-e89b-12d3-a456-426614174000",
                "session_id": None,
                "email": "jane@example.com",
                "name": "Jane Doe",
                "role": "speaker",
                "status": "pending",
                "invited_at": "2025-10-01T10:00:00",
                "expires_at": "2025-10-31T10:00:00",
            }
        },
    )

    id: UUID
    event_id: UUID
    session_id: UUID | None = None
    invitee_id: UUID | None = None
    email: str
    name: str | None = None
    role: str
    status: str
    invited_at: datetime
    expires_at: datetime
    responded_at: datetime | None = None
    last_notified_at: datetime | None = None
    delivery_count: int = 0
    decline_detail: DeclineDetailResponse | None = None


class IssuedInvitationResponse(InvitationResponse):
    """Newly created invitation, including its response token."""

    token: str = Field(
        ...,
        description="Signed response token embedded in the invitation link.",
    )


class SkippedCandidateResponse(BaseModel):
    email: str
    name: str | None = None
    reason: str
    invitation_id: UUID | None = None


class DeliveryOutcomeResponse(BaseModel):
    """Delivery result of one recipient."""

    invitation_id: UUID
    address: str | None = None
    delivery_status: str
    error: str | None = None
    delivered_at: datetime | None = None
    message_id: str | None = None


class CampaignResultResponse(BaseModel):
    """Per-recipient delivery results of a campaign."""

    sent_count: int
    failed_count: int
    success_rate: float = Field(..., description="Delivered share in percent")
    sent: list[DeliveryOutcomeResponse]
    failed: list[DeliveryOutcomeResponse]


class IssueInvitationsResponse(BaseModel):
    """Schema for issue-and-send response."""

    created: list[IssuedInvitationResponse]
    skipped: list[SkippedCandidateResponse]
    campaign: CampaignResultResponse
    meta: dict[str, Any] = Field(default_factory=dict)
