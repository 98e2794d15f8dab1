"""SQLAlchemy implementation of Event repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.event import Event, EventSession
from infrastructure.database.models import EventModel, EventSessionModel


class SQLAlchemyEventRepository:
    """SQLAlchemy implementation of IEventRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, event_id: UUID) -> Event | None:
        """Get an event by ID."""
        model = await self._session.get(EventModel, event_id)
        if not model:
            return None
        return Event(
            id=model.id,
            title=model.title,
            starts_on=model.starts_on,
            ends_on=model.ends_on,
            location=model.location,
            venue=model.venue,
            description=model.description,
        )

    async def get_session(self, session_id: UUID) -> EventSession | None:
        """Get a session by ID."""
        model = await self._session.get(EventSessionModel, session_id)
        return self._session_to_entity(model) if model else None

    async def list_sessions(self, event_id: UUID) -> list[EventSession]:
        """Get all sessions of an event, ordered by start time."""
        stmt = (
            select(EventSessionModel)
            .where(EventSessionModel.event_id == event_id)
            .order_by(EventSessionModel.starts_at, EventSessionModel.title)
        )
        result = await self._session.execute(stmt)
        return [self._session_to_entity(model) for model in result.scalars()]

    @staticmethod
    def _session_to_entity(model: EventSessionModel) -> EventSession:
        return EventSession(
            id=model.id,
            event_id=model.event_id,
            title=model.title,
            starts_at=model.starts_at,
            ends_at=model.ends_at,
        )
