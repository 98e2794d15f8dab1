"""Invitation response tokens.

A token is a compact JWS: base64url JSON claims plus an HMAC signature.
It identifies the invitee, the invitation and its event/session, and
carries the expiry, so a response can be authenticated without a login.

Claims:
    {
        "sub": "<invitee uuid or e-mail>",
        "inv": "<invitation uuid>",
        "evt": "<event uuid>",
        "ses": "<session uuid>" | null,
        "eml": "invitee@example.com",
        "exp": 1234567890,
        "typ": "invitation"
    }
"""

import calendar
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from domain.entities.invitation import Invitation

TOKEN_TYPE = "invitation"


class TokenFailureReason(StrEnum):
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Decoded, verified token contents."""

    invitation_id: UUID
    event_id: UUID
    session_id: UUID | None
    invitee_id: UUID | None
    email: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenFailure:
    reason: TokenFailureReason
    detail: str = ""


DecodeResult = TokenPayload | TokenFailure


class TokenCodec:
    """Encode and verify invitation tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def encode(self, invitation: Invitation) -> str:
        """Serialize the invitation's identity and expiry into a signed token."""
        claims: dict[str, Any] = {
            "sub": str(invitation.invitee_id) if invitation.invitee_id else invitation.email,
            "inv": str(invitation.id),
            "evt": str(invitation.event_id),
            "ses": str(invitation.session_id) if invitation.session_id else None,
            "eml": invitation.email,
            "exp": calendar.timegm(invitation.expires_at.utctimetuple()),
            "typ": TOKEN_TYPE,
        }
        return str(jwt.encode(claims, self._secret_key, algorithm=self._algorithm))

    def decode(self, token: str) -> DecodeResult:
        """Verify a token. Never raises; failures come back as TokenFailure."""
        if not isinstance(token, str) or not token:
            return TokenFailure(TokenFailureReason.MALFORMED, "empty token")

        try:
            # Expiry is checked below against the injected clock
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as exc:
            return TokenFailure(TokenFailureReason.MALFORMED, str(exc))
        except (ValueError, TypeError, AttributeError) as exc:
            return TokenFailure(TokenFailureReason.MALFORMED, str(exc))

        try:
            payload = self._to_payload(claims)
        except (KeyError, ValueError, TypeError, AttributeError, OverflowError, OSError) as exc:
            return TokenFailure(TokenFailureReason.MALFORMED, f"invalid claims: {exc}")

        if self._clock() >= payload.expires_at:
            return TokenFailure(TokenFailureReason.EXPIRED, "token has expired")

        return payload

    @staticmethod
    def _to_payload(claims: dict[str, Any]) -> TokenPayload:
        if claims.get("typ") != TOKEN_TYPE:
            raise ValueError("not an invitation token")

        subject = claims["sub"]
        email = claims["eml"]
        if not isinstance(email, str) or not email:
            raise ValueError("missing e-mail")
        invitee_id = UUID(subject) if subject != email else None
        session = claims.get("ses")
        exp = claims["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TypeError("exp must be numeric")

        return TokenPayload(
            invitation_id=UUID(claims["inv"]),
            event_id=UUID(claims["evt"]),
            session_id=UUID(session) if session else None,
            invitee_id=invitee_id,
            email=email,
            expires_at=datetime.utcfromtimestamp(exp),
        )
