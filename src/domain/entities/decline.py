"""Decline reasons and their reason-specific payloads."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from core.exceptions import InvalidDeclineDetailError


class DeclineReason(StrEnum):
    """Structured classification of why an invitee declined."""

    NOT_INTERESTED = "not_interested"
    SUGGESTED_TOPIC = "suggested_topic"
    TIME_CONFLICT = "time_conflict"


@dataclass(frozen=True, slots=True)
class NotInterested:
    note: str | None = None

    reason_code = DeclineReason.NOT_INTERESTED


@dataclass(frozen=True, slots=True)
class SuggestedTopic:
    """Declined the proposed topic, offering another one instead."""

    topic: str
    note: str | None = None

    reason_code = DeclineReason.SUGGESTED_TOPIC

    def __post_init__(self) -> None:
        if not self.topic or not self.topic.strip():
            raise InvalidDeclineDetailError(
                "A suggested topic is required for this reason",
                reason_code=self.reason_code.value,
            )


@dataclass(frozen=True, slots=True)
class TimeConflict:
    """Declined because of the slot; an alternative window is optional."""

    suggested_start: datetime | None = None
    suggested_end: datetime | None = None
    note: str | None = None

    reason_code = DeclineReason.TIME_CONFLICT

    def __post_init__(self) -> None:
        if (
            self.suggested_start is not None
            and self.suggested_end is not None
            and self.suggested_end < self.suggested_start
        ):
            raise InvalidDeclineDetailError(
                "Suggested end time must not be before the suggested start time",
                reason_code=self.reason_code.value,
            )


DeclineDetail = NotInterested | SuggestedTopic | TimeConflict


def build_decline_detail(
    reason_code: str | DeclineReason | None,
    suggested_topic: str | None = None,
    suggested_time_start: datetime | None = None,
    suggested_time_end: datetime | None = None,
    note: str | None = None,
) -> DeclineDetail:
    """Map flat request fields onto the variant for ``reason_code``.

    Fields that belong to another reason are rejected rather than dropped.

    Raises:
        InvalidDeclineDetailError: Missing or unknown reason, a payload that
            does not fit the reason, or an inverted time window.
    """
    if reason_code is None:
        raise InvalidDeclineDetailError("A reason code is required when declining")
    try:
        reason = DeclineReason(reason_code)
    except ValueError:
        raise InvalidDeclineDetailError(
            f"Unknown decline reason: {reason_code}", reason_code=str(reason_code)
        ) from None

    note = note.strip() if note and note.strip() else None
    has_topic = suggested_topic is not None
    has_times = suggested_time_start is not None or suggested_time_end is not None

    if reason is DeclineReason.NOT_INTERESTED:
        if has_topic or has_times:
            raise InvalidDeclineDetailError(
                "No suggestion may accompany this reason", reason_code=reason.value
            )
        return NotInterested(note=note)

    if reason is DeclineReason.SUGGESTED_TOPIC:
        if has_times:
            raise InvalidDeclineDetailError(
                "Suggested times only apply to a time conflict", reason_code=reason.value
            )
        return SuggestedTopic(topic=(suggested_topic or "").strip(), note=note)

    if has_topic:
        raise InvalidDeclineDetailError(
            "A suggested topic only applies to the suggested_topic reason",
            reason_code=reason.value,
        )
    return TimeConflict(
        suggested_start=suggested_time_start,
        suggested_end=suggested_time_end,
        note=note,
    )
