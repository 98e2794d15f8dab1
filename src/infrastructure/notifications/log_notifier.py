"""Notifier that only logs messages (development and demos)."""

from uuid import uuid4

import structlog

from infrastructure.notifications.provider import DeliveryReceipt

logger = structlog.get_logger()


class LogNotifier:
    """Pretends every message was delivered and logs it."""

    async def send(self, address: str, subject: str, body: str) -> DeliveryReceipt:
        message_id = f"<{uuid4()}@log-notifier>"
        logger.info(
            "notification_logged",
            address=address,
            subject=subject,
            body_length=len(body),
            message_id=message_id,
        )
        return DeliveryReceipt.success(message_id)
