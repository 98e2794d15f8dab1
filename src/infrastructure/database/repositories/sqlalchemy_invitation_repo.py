"""SQLAlchemy implementation of Invitation repository."""

from collections.abc import Collection
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.decline import (
    DeclineDetail,
    DeclineReason,
    NotInterested,
    SuggestedTopic,
    TimeConflict,
)
from domain.entities.invitation import (
    Invitation,
    InvitationRole,
    InvitationStatus,
    OPEN_STATUSES,
)
from infrastructure.database.models import DeclineDetailModel, InvitationModel


class SQLAlchemyInvitationRepository:
    """SQLAlchemy implementation of IInvitationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation.

        Runs in a savepoint: a unique violation (another open invitation for
        the same invitee) undoes only this insert and re-raises IntegrityError.
        """
        model = self._to_model(invitation)
        async with self._session.begin_nested():
            self._session.add(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        stmt = select(InvitationModel).where(InvitationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_ids(self, ids: Collection[UUID]) -> list[Invitation]:
        """Get several invitations, in no particular order."""
        if not ids:
            return []
        stmt = select(InvitationModel).where(InvitationModel.id.in_(list(ids)))
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_open_for_invitee(
        self,
        event_id: UUID,
        session_id: UUID | None,
        invitee_id: UUID | None,
        email: str,
    ) -> Invitation | None:
        """Get the pending/tentative invitation of an invitee for an event or session."""
        identity = InvitationModel.email == email
        if invitee_id is not None:
            identity = or_(identity, InvitationModel.invitee_id == invitee_id)
        scope = (
            InvitationModel.session_id == session_id
            if session_id is not None
            else InvitationModel.session_id.is_(None)
        )
        stmt = (
            select(InvitationModel)
            .where(
                InvitationModel.event_id == event_id,
                scope,
                identity,
                InvitationModel.status.in_([s.value for s in OPEN_STATUSES]),
            )
            .order_by(InvitationModel.invited_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_for_event(self, event_id: UUID) -> list[Invitation]:
        """Get every invitation of an event, across all of its sessions."""
        stmt = (
            select(InvitationModel)
            .where(InvitationModel.event_id == event_id)
            .order_by(InvitationModel.invited_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_for_session(self, session_id: UUID) -> list[Invitation]:
        """Get every invitation of one session."""
        stmt = (
            select(InvitationModel)
            .where(InvitationModel.session_id == session_id)
            .order_by(InvitationModel.invited_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def transition(
        self,
        id: UUID,
        from_statuses: Collection[InvitationStatus],
        to_status: InvitationStatus,
        responded_at: datetime,
        decline_detail: DeclineDetail | None = None,
    ) -> Invitation | None:
        """Conditional status update: UPDATE ... WHERE id = :id AND status IN (...)."""
        stmt = (
            update(InvitationModel)
            .where(
                InvitationModel.id == id,
                InvitationModel.status.in_([s.value for s in from_statuses]),
            )
            .values(status=to_status.value, responded_at=responded_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None

        if decline_detail is not None:
            await self._session.execute(
                insert(DeclineDetailModel).values(**self._detail_values(id, decline_detail))
            )
        await self._session.flush()

        reload = (
            select(InvitationModel)
            .where(InvitationModel.id == id)
            .execution_options(populate_existing=True)
        )
        model = (await self._session.execute(reload)).scalar_one()
        return self._to_entity(model)

    async def mark_notified(self, ids: Collection[UUID], notified_at: datetime) -> int:
        """Record a successful delivery. Returns count of updated rows."""
        if not ids:
            return 0
        stmt = (
            update(InvitationModel)
            .where(InvitationModel.id.in_(list(ids)))
            .values(
                last_notified_at=notified_at,
                delivery_count=InvitationModel.delivery_count + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: InvitationModel) -> Invitation:
        """Convert ORM model to domain entity."""
        return Invitation(
            id=model.id,
            event_id=model.event_id,
            session_id=model.session_id,
            invitee_id=model.invitee_id,
            email=model.email,
            name=model.name,
            role=InvitationRole(model.role),
            status=InvitationStatus(model.status),
            token=model.token,
            invited_at=model.invited_at,
            expires_at=model.expires_at,
            responded_at=model.responded_at,
            decline_detail=self._detail_to_entity(model.decline_detail),
            last_notified_at=model.last_notified_at,
            delivery_count=model.delivery_count or 0,
        )

    def _to_model(self, entity: Invitation) -> InvitationModel:
        """Convert domain entity to ORM model."""
        return InvitationModel(
            id=entity.id,
            event_id=entity.event_id,
            session_id=entity.session_id,
            invitee_id=entity.invitee_id,
            email=entity.email,
            name=entity.name,
            role=entity.role.value,
            status=entity.status.value,
            token=entity.token,
            invited_at=entity.invited_at,
            expires_at=entity.expires_at,
            responded_at=entity.responded_at,
            last_notified_at=entity.last_notified_at,
            delivery_count=entity.delivery_count,
            decline_detail=None,
        )

    @staticmethod
    def _detail_values(invitation_id: UUID, detail: DeclineDetail) -> dict[str, Any]:
        values: dict[str, Any] = {
            "invitation_id": invitation_id,
            "reason_code": detail.reason_code.value,
            "note": detail.note,
        }
        if isinstance(detail, SuggestedTopic):
            values["suggested_topic"] = detail.topic
        elif isinstance(detail, TimeConflict):
            values["suggested_time_start"] = detail.suggested_start
            values["suggested_time_end"] = detail.suggested_end
        return values

    @staticmethod
    def _detail_to_entity(model: DeclineDetailModel | None) -> DeclineDetail | None:
        if model is None:
            return None
        reason = DeclineReason(model.reason_code)
        if reason is DeclineReason.SUGGESTED_TOPIC:
            return SuggestedTopic(topic=model.suggested_topic or "", note=model.note)
        if reason is DeclineReason.TIME_CONFLICT:
            return TimeConflict(
                suggested_start=model.suggested_time_start,
                suggested_end=model.suggested_time_end,
                note=model.note,
            )
        return NotInterested(note=model.note)
