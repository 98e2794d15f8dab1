"""Message personalization: display names and placeholder substitution."""

import re
from collections.abc import Iterable, Mapping

from domain.entities.event import Event, EventSession
from domain.entities.invitation import Invitation

DEFAULT_DISPLAY_NAME = "Speaker"
RESPONSE_LINK_PLACEHOLDER = "responseLink"

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_LOCAL_PART_SEPARATORS = re.compile(r"[._\-+]+")


def resolve_display_name(
    names: Iterable[str | None],
    email: str | None = None,
    default: str = DEFAULT_DISPLAY_NAME,
) -> str:
    """Pick the name to greet someone with.

    Fallbacks, in order:
      1. the first of ``names`` that is longer than two characters and is
         not just the e-mail local part,
      2. any other non-empty entry of ``names``,
      3. a name derived from the e-mail local part (``jane.doe`` -> ``Jane Doe``),
      4. ``default``.
    """
    local_part = email.split("@", 1)[0].strip() if email else ""
    cleaned = [name.strip() for name in names if name and name.strip()]

    for name in cleaned:
        if len(name) > 2 and name.lower() != local_part.lower():
            return name

    if cleaned:
        return cleaned[0]

    if local_part:
        words = [word for word in _LOCAL_PART_SEPARATORS.split(local_part) if word]
        derived = " ".join(word.capitalize() for word in words if not word.isdigit())
        if derived:
            return derived

    return default


def render_template(text: str, values: Mapping[str, str | None]) -> str:
    """Replace ``{{name}}`` fields. Unknown or empty values become ''."""

    def _substitute(match: re.Match[str]) -> str:
        value = values.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_substitute, text)


def has_placeholder(text: str, name: str) -> bool:
    return any(match.group(1) == name for match in _PLACEHOLDER.finditer(text))


def compose_body(message: str, values: Mapping[str, str | None]) -> str:
    """Render the message and make sure the response link is in it."""
    body = render_template(message, values)
    link = values.get(RESPONSE_LINK_PLACEHOLDER)
    if link and not has_placeholder(message, RESPONSE_LINK_PLACEHOLDER):
        body = f"{body.rstrip()}\n\nRespond to this invitation:\n{link}\n"
    return body


def event_placeholders(event: Event, session: EventSession | None = None) -> dict[str, str]:
    """Campaign-wide values derived from the event and session."""
    return {
        "eventTitle": event.title,
        "eventDates": event.date_range,
        "eventLocation": event.location or "",
        "eventVenue": event.venue or "",
        "eventDescription": event.description or "",
        "sessionTitle": session.title if session else "",
    }


def recipient_placeholders(
    invitation: Invitation,
    display_name: str,
    response_link: str,
) -> dict[str, str]:
    """Per-recipient values."""
    return {
        "recipientName": display_name,
        "facultyName": display_name,
        "role": invitation.role.value.capitalize(),
        RESPONSE_LINK_PLACEHOLDER: response_link,
        "expiresAt": f"{invitation.expires_at:%B} {invitation.expires_at.day}, {invitation.expires_at.year}",
    }
