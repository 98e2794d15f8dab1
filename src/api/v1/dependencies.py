"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.services.aggregation_engine import AggregationEngine
from domain.services.campaign_service import CampaignService
from domain.services.dispatcher import Dispatcher
from domain.services.invitation_issuer import InvitationIssuer
from domain.services.response_processor import ResponseProcessor
from domain.services.token_codec import TokenCodec
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.notifications.log_notifier import LogNotifier
from infrastructure.notifications.provider import INotifier
from infrastructure.notifications.smtp_notifier import SMTPNotifier


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_token_codec() -> TokenCodec:
    """Get the invitation token codec."""
    return TokenCodec(
        secret_key=settings.invitation_token_secret,
        algorithm=settings.invitation_token_algorithm,
    )


@lru_cache
def get_notifier() -> INotifier:
    """Get the configured notifier backend."""
    if settings.notifier_backend == "smtp":
        return SMTPNotifier()
    return LogNotifier()


@lru_cache
def get_dispatcher() -> Dispatcher:
    """Get Dispatcher instance."""
    return Dispatcher(
        get_notifier(),
        max_workers=settings.dispatch_max_workers,
        default_rate_limit_ms=settings.dispatch_rate_limit_ms,
        send_timeout=settings.notifier_timeout_seconds,
    )


@lru_cache
def get_invitation_issuer() -> InvitationIssuer:
    """Get InvitationIssuer instance."""
    return InvitationIssuer(
        get_uow_factory(),
        token_codec=get_token_codec(),
        expiry_days=settings.invitation_expiry_days,
    )


@lru_cache
def get_response_processor() -> ResponseProcessor:
    """Get ResponseProcessor instance."""
    return ResponseProcessor(get_uow_factory(), token_codec=get_token_codec())


@lru_cache
def get_aggregation_engine() -> AggregationEngine:
    """Get AggregationEngine instance."""
    return AggregationEngine(get_uow_factory())


@lru_cache
def get_campaign_service() -> CampaignService:
    """Get CampaignService instance."""
    return CampaignService(
        get_uow_factory(),
        issuer=get_invitation_issuer(),
        dispatcher=get_dispatcher(),
        aggregation=get_aggregation_engine(),
        response_base_url=settings.response_base_url,
    )
