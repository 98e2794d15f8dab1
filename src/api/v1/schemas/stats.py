"""Pydantic schemas for statistics API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class StatsSnapshotResponse(BaseModel):
    """Status counts for one event or session."""

    total: int
    counts: dict[str, int]
    percentages: dict[str, int]
    responded: int
    response_rate: float = Field(..., description="(accepted + declined) / total")
    response_rate_percent: int
    outstanding_count: int


class SessionStatsResponse(BaseModel):
    session_id: UUID | None = None
    title: str | None = None
    stats: StatsSnapshotResponse


class EventStatsResponse(BaseModel):
    """Event statistics; ``sessions`` is only filled for ``scope=all``."""

    event_id: UUID
    scope: str
    stats: StatsSnapshotResponse
    sessions: list[SessionStatsResponse] | None = None


class OutstandingInvitationResponse(BaseModel):
    invitation_id: UUID
    event_id: UUID
    session_id: UUID | None = None
    email: str
    name: str | None = None
    role: str
    status: str
    invited_at: datetime
    days_pending: int


class OutstandingListResponse(BaseModel):
    """Open invitations, longest-waiting first."""

    data: list[OutstandingInvitationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
