"""Campaign value objects: what to send and how it went."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from domain.entities.invitation import Invitation


class DeliveryStatus(StrEnum):
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MessageTemplate:
    """Subject and body with ``{{placeholder}}`` fields.

    ``placeholders`` are campaign-wide values supplied by the organizer.
    """

    subject: str
    message: str
    placeholders: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Recipient:
    """One personalized delivery target of a campaign."""

    invitation: Invitation
    address: str | None
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Campaign:
    recipients: list[Recipient]
    template: MessageTemplate
    rate_limit_ms: int | None = None


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Result of one notifier call, attributed to its invitation."""

    invitation: Invitation
    address: str | None
    delivery_status: DeliveryStatus
    error: str | None = None
    delivered_at: datetime | None = None
    message_id: str | None = None

    @property
    def delivered(self) -> bool:
        return self.delivery_status is DeliveryStatus.DELIVERED


@dataclass(frozen=True, slots=True)
class CampaignSummary:
    total: int
    successful: int
    failed: int

    @property
    def success_rate(self) -> float:
        """Share of delivered messages, 0.0 for an empty campaign."""
        if self.total == 0:
            return 0.0
        return self.successful / self.total

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": round(self.success_rate * 100, 1),
        }


@dataclass(frozen=True)
class CampaignResult:
    """Ordered per-recipient outcomes. Built fresh for each send."""

    sent: list[DeliveryOutcome] = field(default_factory=list)
    failed: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def summary(self) -> CampaignSummary:
        return CampaignSummary(
            total=len(self.sent) + len(self.failed),
            successful=len(self.sent),
            failed=len(self.failed),
        )

    @classmethod
    def from_outcomes(cls, outcomes: list[DeliveryOutcome]) -> "CampaignResult":
        return cls(
            sent=[o for o in outcomes if o.delivered],
            failed=[o for o in outcomes if not o.delivered],
        )
