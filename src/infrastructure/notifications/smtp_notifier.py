"""SMTP notifier.

Uses the SMTP settings from core.config.settings. The blocking smtplib
conversation runs in a worker thread so the dispatch loop stays responsive.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from core.config import settings
from core.exceptions import DeliveryError
from infrastructure.notifications.provider import DeliveryReceipt

logger = structlog.get_logger()


class SMTPNotifier:
    """Deliver plain-text e-mails through an SMTP relay."""

    def __init__(
        self,
        host: str = settings.smtp_host,
        port: int = settings.smtp_port,
        username: str = settings.smtp_username,
        password: str = settings.smtp_password,
        sender: str = settings.smtp_from,
        use_tls: bool = settings.smtp_use_tls,
        timeout: float = settings.notifier_timeout_seconds,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._use_tls = use_tls
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._sender)

    async def send(self, address: str, subject: str, body: str) -> DeliveryReceipt:
        if not self.is_configured:
            logger.warning("smtp_not_configured", address=address)
            return DeliveryReceipt.failure("SMTP is not configured")

        message = self._build_message(address, subject, body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(address, f"SMTP delivery failed: {exc}") from exc

        return DeliveryReceipt.success(message["Message-ID"])

    def _build_message(self, address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = address
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password)
            server.send_message(message)
