"""Notifier protocol: the outbound delivery capability injected into dispatch."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class DeliveryReceipt:
    """Outcome reported by a notifier for one message."""

    ok: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def success(cls, message_id: Optional[str] = None) -> "DeliveryReceipt":
        return cls(ok=True, message_id=message_id)

    @classmethod
    def failure(cls, error: str) -> "DeliveryReceipt":
        return cls(ok=False, error=error)


class INotifier(Protocol):
    """Protocol for notification transports."""

    async def send(self, address: str, subject: str, body: str) -> DeliveryReceipt:
        """
        Deliver one message.

        Args:
            address: Recipient address (e-mail for the bundled transports)
            subject: Rendered subject line
            body: Rendered plain-text body

        Returns:
            A receipt; transports may also raise DeliveryError, which
            callers treat the same as a failed receipt
        """
        ...
