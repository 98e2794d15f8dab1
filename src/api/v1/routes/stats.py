"""Response statistics API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.v1.dependencies import get_aggregation_engine
from api.v1.schemas.stats import (
    EventStatsResponse,
    OutstandingInvitationResponse,
    OutstandingListResponse,
    SessionStatsResponse,
    StatsSnapshotResponse,
)
from core.rate_limit import limiter
from domain.entities.stats import StatsSnapshot
from domain.services.aggregation_engine import AggregationEngine

event_stats_router = APIRouter(prefix="/events/{event_id}", tags=["stats"])
session_stats_router = APIRouter(prefix="/sessions/{session_id}", tags=["stats"])


@event_stats_router.get(
    "/stats",
    response_model=EventStatsResponse,
    summary="Get event statistics",
    responses={
        200: {"description": "Status counts and response rate"},
        404: {"description": "Event not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_event_stats(
    request: Request,
    event_id: UUID,
    engine: AggregationEngine = Depends(get_aggregation_engine),
    scope: str = Query("single", pattern="^(single|all)$", description="single or all"),
) -> EventStatsResponse:
    """
    Get response statistics for an event.

    With `scope=all` the per-session breakdown is included; the event figures
    are always the sum of the per-session figures.
    """
    breakdown = await engine.stats_all(event_id)
    sessions = None
    if scope == "all":
        sessions = [
            SessionStatsResponse(
                session_id=item.session_id,
                title=item.title,
                stats=_build_snapshot_response(item.snapshot),
            )
            for item in breakdown.sessions
        ]
    return EventStatsResponse(
        event_id=event_id,
        scope=scope,
        stats=_build_snapshot_response(breakdown.overall),
        sessions=sessions,
    )


@event_stats_router.get(
    "/outstanding",
    response_model=OutstandingListResponse,
    summary="List outstanding invitations",
    responses={
        200: {"description": "Pending and tentative invitations, longest-waiting first"},
        404: {"description": "Event or session not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_outstanding(
    request: Request,
    event_id: UUID,
    engine: AggregationEngine = Depends(get_aggregation_engine),
    session_id: UUID | None = Query(None, description="Restrict to one session"),
    min_days_pending: int = Query(0, ge=0, description="Minimum days without a response"),
) -> OutstandingListResponse:
    """List invitations still waiting for an answer."""
    outstanding = await engine.outstanding(
        event_id, session_id=session_id, min_days_pending=min_days_pending
    )
    data = [
        OutstandingInvitationResponse(
            invitation_id=item.invitation_id,
            event_id=item.event_id,
            session_id=item.session_id,
            email=item.email,
            name=item.name,
            role=item.role.value,
            status=item.status.value,
            invited_at=item.invited_at,
            days_pending=item.days_pending,
        )
        for item in outstanding
    ]
    return OutstandingListResponse(
        data=data,
        meta={"total": len(data), "min_days_pending": min_days_pending},
    )


@session_stats_router.get(
    "/stats",
    response_model=SessionStatsResponse,
    summary="Get session statistics",
    responses={
        200: {"description": "Status counts and response rate"},
        404: {"description": "Session not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_session_stats(
    request: Request,
    session_id: UUID,
    engine: AggregationEngine = Depends(get_aggregation_engine),
) -> SessionStatsResponse:
    """Get response statistics for a single session."""
    snapshot = await engine.stats(session_id=session_id)
    return SessionStatsResponse(
        session_id=session_id,
        stats=_build_snapshot_response(snapshot),
    )


def _build_snapshot_response(snapshot: StatsSnapshot) -> StatsSnapshotResponse:
    return StatsSnapshotResponse(
        total=snapshot.total,
        counts={status.value: count for status, count in snapshot.counts.items()},
        percentages={status.value: pct for status, pct in snapshot.percentages.items()},
        responded=snapshot.responded,
        response_rate=snapshot.response_rate,
        response_rate_percent=snapshot.response_rate_percent,
        outstanding_count=len(snapshot.outstanding),
    )
