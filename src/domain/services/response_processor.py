"""Invitee responses: the only mutation path for invitation status."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyRespondedError,
    InvalidDeclineDetailError,
    InvalidTokenError,
    InvitationExpiredError,
    InvitationNotFoundError,
    TokenExpiredError,
)
from domain.entities.decline import DeclineDetail
from domain.entities.invitation import (
    Invitation,
    InvitationStatus,
    OPEN_STATUSES,
    ResponseAction,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.token_codec import TokenCodec, TokenFailure, TokenFailureReason

logger = structlog.get_logger()

# Allowed source statuses per target status
_TRANSITIONS: dict[InvitationStatus, frozenset[InvitationStatus]] = {
    InvitationStatus.ACCEPTED: OPEN_STATUSES,
    InvitationStatus.DECLINED: OPEN_STATUSES,
    InvitationStatus.TENTATIVE: frozenset({InvitationStatus.PENDING}),
    InvitationStatus.CANCELLED: OPEN_STATUSES,
}


class ResponseProcessor:
    """Validates and commits invitee responses.

    The status change is a conditional update keyed on the current status,
    so two concurrent submissions for one invitation cannot both succeed.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        token_codec: TokenCodec,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._codec = token_codec
        self._clock = clock

    async def get(self, invitation_id: UUID) -> Invitation:
        """Get one invitation.

        Raises:
            InvitationNotFoundError: If invitation ID does not exist.
        """
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            return invitation

    async def respond(
        self,
        invitation_id: UUID,
        action: ResponseAction,
        detail: DeclineDetail | None = None,
    ) -> Invitation:
        """Record an invitee's answer.

        Args:
            invitation_id: The invitation being answered.
            action: accepted, declined or tentative.
            detail: Decline reason payload, required for (and only for) declines.

        Returns:
            The updated invitation.

        Raises:
            InvitationNotFoundError: If invitation ID does not exist.
            AlreadyRespondedError: If the invitation is no longer open for
                this action, including a concurrent duplicate submission.
            InvalidDeclineDetailError: Missing or extraneous decline detail.
            InvitationExpiredError: If the invitation has expired.
        """
        self._check_detail(action, detail)

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            return await self._apply(uow, invitation, action.target_status, detail)

    async def respond_with_token(
        self,
        token: str,
        action: ResponseAction,
        detail: DeclineDetail | None = None,
    ) -> Invitation:
        """Record an answer authenticated by the invitation token alone.

        Raises:
            InvalidTokenError: Malformed, tampered, or superseded token.
            TokenExpiredError: Token past its expiry.
            Everything ``respond`` raises.
        """
        decoded = self._codec.decode(token)
        if isinstance(decoded, TokenFailure):
            if decoded.reason is TokenFailureReason.EXPIRED:
                raise TokenExpiredError()
            raise InvalidTokenError()

        self._check_detail(action, detail)

        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(decoded.invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(decoded.invitation_id))
            if invitation.token != token or invitation.email != decoded.email:
                raise InvalidTokenError("This invitation link is no longer valid")
            return await self._apply(uow, invitation, action.target_status, detail)

    async def cancel(self, invitation_id: UUID) -> Invitation:
        """Withdraw an open invitation. Cancelled is terminal; nothing is deleted.

        Raises:
            InvitationNotFoundError: If invitation ID does not exist.
            AlreadyRespondedError: If the invitation is already terminal.
        """
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_id(invitation_id)
            if not invitation:
                raise InvitationNotFoundError(str(invitation_id))
            return await self._apply(
                uow, invitation, InvitationStatus.CANCELLED, None, check_expiry=False
            )

    # --- Internal helpers ---

    async def _apply(
        self,
        uow: IUnitOfWork,
        invitation: Invitation,
        target: InvitationStatus,
        detail: DeclineDetail | None,
        check_expiry: bool = True,
    ) -> Invitation:
        allowed = _TRANSITIONS[target]
        if invitation.status not in allowed:
            raise AlreadyRespondedError(str(invitation.id), invitation.status.value)

        now = self._clock()
        if check_expiry and invitation.is_expired(now):
            raise InvitationExpiredError(str(invitation.id))

        updated = await uow.invitations.transition(
            invitation.id,
            from_statuses=allowed,
            to_status=target,
            responded_at=now,
            decline_detail=detail if target is InvitationStatus.DECLINED else None,
        )
        if updated is None:
            # Lost the race against another submission
            await uow.rollback()
            raise AlreadyRespondedError(str(invitation.id))

        await uow.commit()
        logger.info(
            "invitation_responded",
            invitation_id=str(invitation.id),
            from_status=invitation.status.value,
            to_status=target.value,
            reason_code=detail.reason_code.value if detail else None,
        )
        return updated

    @staticmethod
    def _check_detail(action: ResponseAction, detail: DeclineDetail | None) -> None:
        if action is ResponseAction.DECLINE and detail is None:
            raise InvalidDeclineDetailError("A reason code is required when declining")
        if action is not ResponseAction.DECLINE and detail is not None:
            raise InvalidDeclineDetailError(
                "Decline details are only accepted with a decline",
                reason_code=detail.reason_code.value,
            )
