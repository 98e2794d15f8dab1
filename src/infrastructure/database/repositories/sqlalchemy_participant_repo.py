"""SQLAlchemy implementation of Participant repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.participant import Participant, normalize_email
from infrastructure.database.models import ParticipantModel


class SQLAlchemyParticipantRepository:
    """SQLAlchemy implementation of IParticipantRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Participant | None:
        """Get a participant by ID."""
        model = await self._session.get(ParticipantModel, id)
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Participant | None:
        """Get a participant by normalized email."""
        stmt = select(ParticipantModel).where(ParticipantModel.email == normalize_email(email))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, participant: Participant) -> Participant:
        """Register a participant not yet known to the directory.

        Runs in a savepoint so a duplicate e-mail leaves the transaction usable.
        """
        model = ParticipantModel(
            id=participant.id,
            email=normalize_email(participant.email),
            name=participant.name,
            created_at=participant.created_at,
        )
        async with self._session.begin_nested():
            self._session.add(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: ParticipantModel) -> Participant:
        return Participant(
            id=model.id,
            email=model.email,
            name=model.name,
            created_at=model.created_at,
        )
