"""Campaign delivery through the injected notifier."""

import asyncio
from collections.abc import Callable
from datetime import datetime

import structlog

from core.rate_limit import TokenBucket
from domain.entities.campaign import (
    Campaign,
    CampaignResult,
    DeliveryOutcome,
    DeliveryStatus,
    MessageTemplate,
    Recipient,
)
from domain.services.personalization import compose_body, render_template
from infrastructure.notifications.provider import INotifier

logger = structlog.get_logger()

DEFAULT_RATE_LIMIT_MS = 1000
DEFAULT_MAX_WORKERS = 3
DEFAULT_SEND_TIMEOUT_SECONDS = 10.0


class Dispatcher:
    """Personalize and deliver a campaign with bounded concurrency.

    Workers share one token bucket, so the spacing between two notifier
    calls never drops below the campaign's rate limit. A failing recipient
    is recorded and skipped; it never aborts the rest of the batch.
    Invitation status is never touched here.
    """

    def __init__(
        self,
        notifier: INotifier,
        max_workers: int = DEFAULT_MAX_WORKERS,
        default_rate_limit_ms: int = DEFAULT_RATE_LIMIT_MS,
        send_timeout: float = DEFAULT_SEND_TIMEOUT_SECONDS,
        limiter_factory: Callable[[int], TokenBucket] = TokenBucket.from_millis,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._notifier = notifier
        self._max_workers = max_workers
        self._default_rate_limit_ms = default_rate_limit_ms
        self._send_timeout = send_timeout
        self._limiter_factory = limiter_factory
        self._clock = clock

    async def send(self, campaign: Campaign) -> CampaignResult:
        """Deliver every recipient of the campaign.

        Returns:
            CampaignResult whose ``sent`` and ``failed`` lists keep the order
            of ``campaign.recipients``.
        """
        recipients = campaign.recipients
        if not recipients:
            return CampaignResult()

        rate_limit_ms = (
            campaign.rate_limit_ms
            if campaign.rate_limit_ms is not None
            else self._default_rate_limit_ms
        )
        limiter = self._limiter_factory(rate_limit_ms)
        queue: asyncio.Queue[tuple[int, Recipient]] = asyncio.Queue()
        for position, recipient in enumerate(recipients):
            queue.put_nowait((position, recipient))

        outcomes: list[DeliveryOutcome | None] = [None] * len(recipients)

        async def worker() -> None:
            while True:
                try:
                    position, recipient = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                await limiter.acquire()
                outcomes[position] = await self._deliver(recipient, campaign.template)

        workers = min(self._max_workers, len(recipients))
        await asyncio.gather(*(worker() for _ in range(workers)))

        result = CampaignResult.from_outcomes([o for o in outcomes if o is not None])
        summary = result.summary
        logger.info(
            "campaign_completed",
            total=summary.total,
            successful=summary.successful,
            failed=summary.failed,
            success_rate=round(summary.success_rate * 100, 1),
            rate_limit_ms=rate_limit_ms,
            workers=workers,
        )
        return result

    async def _deliver(self, recipient: Recipient, template: MessageTemplate) -> DeliveryOutcome:
        invitation = recipient.invitation
        if not recipient.address:
            return self._failed(recipient, "No delivery address")

        values = {**template.placeholders, **recipient.values}
        subject = render_template(template.subject, values)
        body = compose_body(template.message, values)

        try:
            receipt = await asyncio.wait_for(
                self._notifier.send(recipient.address, subject, body),
                timeout=self._send_timeout,
            )
        except asyncio.TimeoutError:
            return self._failed(recipient, f"Delivery timed out after {self._send_timeout:g}s")
        except Exception as exc:
            # Any transport error stays scoped to this recipient
            return self._failed(recipient, str(exc) or type(exc).__name__)

        if not receipt.ok:
            return self._failed(recipient, receipt.error or "Delivery failed")

        logger.info(
            "invitation_delivered",
            invitation_id=str(invitation.id),
            address=recipient.address,
        )
        return DeliveryOutcome(
            invitation=invitation,
            address=recipient.address,
            delivery_status=DeliveryStatus.DELIVERED,
            delivered_at=self._clock(),
            message_id=receipt.message_id,
        )

    @staticmethod
    def _failed(recipient: Recipient, error: str) -> DeliveryOutcome:
        logger.warning(
            "invitation_delivery_failed",
            invitation_id=str(recipient.invitation.id),
            address=recipient.address,
            error=error,
        )
        return DeliveryOutcome(
            invitation=recipient.invitation,
            address=recipient.address,
            delivery_status=DeliveryStatus.FAILED,
            error=error,
        )
