"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from uuid import UUID, uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.database.models import Base, EventModel, EventSessionModel
from infrastructure.notifications.provider import DeliveryReceipt

# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_TOKEN_SECRET = "test-invitation-secret"


@dataclass
class SentMessage:
    address: str
    subject: str
    body: str


@dataclass
class RecordingNotifier:
    """Notifier double that records every message and fails for chosen addresses."""

    fail_for: set[str] = field(default_factory=set)
    sent: list[SentMessage] = field(default_factory=list)

    async def send(self, address: str, subject: str, body: str) -> DeliveryReceipt:
        if address in self.fail_for:
            return DeliveryReceipt.failure(f"Mailbox unavailable: {address}")
        self.sent.append(SentMessage(address=address, subject=subject, body=body))
        return DeliveryReceipt.success(f"<{len(self.sent)}@test>")


@dataclass
class SeededEvent:
    event_id: UUID
    keynote_id: UUID
    panel_id: UUID


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def seeded_event(
    session_factory: async_sessionmaker[AsyncSession],
) -> SeededEvent:
    """An event with two sessions."""
    event_id, keynote_id, panel_id = uuid4(), uuid4(), uuid4()
    async with session_factory() as session:
        session.add(
            EventModel(
                id=event_id,
                title="PyCon Test",
                starts_on=date(2025, 11, 6),
                ends_on=date(2025, 11, 9),
                location="Lisbon",
                venue="Congress Centre",
            )
        )
        await session.flush()
        session.add_all(
            [
                EventSessionModel(
                    id=keynote_id,
                    event_id=event_id,
                    title="Opening Keynote",
                    starts_at=datetime(2025, 11, 6, 9, 0),
                ),
                EventSessionModel(
                    id=panel_id,
                    event_id=event_id,
                    title="Closing Panel",
                    starts_at=datetime(2025, 11, 9, 16, 0),
                ),
            ]
        )
        await session.commit()
    return SeededEvent(event_id=event_id, keynote_id=keynote_id, panel_id=panel_id)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client with database and notifier overrides.

    This client:
    - Uses an in-memory SQLite database
    - Records outbound messages instead of sending them
    - Dispatches without pacing delay
    """
    from api.v1.dependencies import (
        get_aggregation_engine,
        get_campaign_service,
        get_response_processor,
    )
    from domain.services.aggregation_engine import AggregationEngine
    from domain.services.campaign_service import CampaignService
    from domain.services.dispatcher import Dispatcher
    from domain.services.invitation_issuer import InvitationIssuer
    from domain.services.response_processor import ResponseProcessor
    from domain.services.token_codec import TokenCodec
    from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
    from main import create_app

    app = create_app()

    def test_uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    codec = TokenCodec(TEST_TOKEN_SECRET)
    aggregation = AggregationEngine(test_uow_factory)
    processor = ResponseProcessor(test_uow_factory, token_codec=codec)
    campaigns = CampaignService(
        test_uow_factory,
        issuer=InvitationIssuer(test_uow_factory, token_codec=codec),
        dispatcher=Dispatcher(notifier, default_rate_limit_ms=0),
        aggregation=aggregation,
        response_base_url="https://speakers.test",
    )

    app.dependency_overrides[get_aggregation_engine] = lambda: aggregation
    app.dependency_overrides[get_response_processor] = lambda: processor
    app.dependency_overrides[get_campaign_service] = lambda: campaigns

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
