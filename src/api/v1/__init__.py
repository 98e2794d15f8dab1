"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.invitations import events_router, invitations_router
from api.v1.routes.stats import event_stats_router, session_stats_router

router = APIRouter()
router.include_router(events_router)
router.include_router(invitations_router)
router.include_router(event_stats_router)
router.include_router(session_stats_router)
