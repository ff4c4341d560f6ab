"""Email service — delivers verification codes via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from otp_gateway.config import Settings, settings
from otp_gateway.errors import DeliveryError

logger = logging.getLogger(__name__)

_CONNECTION_ERRORS = (
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPConnectTimeoutError,
    aiosmtplib.SMTPServerDisconnected,
    aiosmtplib.SMTPTimeoutError,
)


def _delivery_error(to_email: str, exc: Exception) -> DeliveryError:
    """Map an SMTP/socket failure to a :class:`DeliveryError` code."""
    message = f"Failed to send email to {to_email}: {exc}"
    if isinstance(exc, aiosmtplib.SMTPAuthenticationError):
        return DeliveryError(message, code="smtp-auth-failed")
    if isinstance(exc, _CONNECTION_ERRORS + (OSError,)):
        return DeliveryError(message, code="smtp-connection-failed")
    return DeliveryError(message)


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings

    @property
    def is_configured(self) -> bool:
        return bool(self._config.smtp_username and self._config.smtp_password)

    @property
    def _sender(self) -> str:
        return self._config.email_from or self._config.smtp_username

    def build_otp_message(self, to_email: str, code: str, ttl_seconds: int) -> EmailMessage:
        brand = self._config.brand_name
        minutes = max(1, ttl_seconds // 60)

        msg = EmailMessage()
        msg["Subject"] = f"Your {brand} verification code"
        msg["From"] = f'"{brand}" <{self._sender}>'
        msg["To"] = to_email
        msg.set_content(
            "Hello,\n\n"
            f"Your {brand} verification code is: {code}\n\n"
            f"This code will expire in {minutes} minutes.\n"
        )
        msg.add_alternative(
            "<p>Hello,</p>"
            f"<p>Your {brand} verification code is:</p>"
            f'<h2 style="letter-spacing:3px">{code}</h2>'
            f"<p>This code will expire in {minutes} minutes.</p>",
            subtype="html",
        )
        return msg

    async def send_otp(self, to_email: str, code: str, ttl_seconds: int) -> None:
        """Email *code* to *to_email*.

        Raises
        ------
        DeliveryError
            If the SMTP exchange fails for any reason.  Not retried.
        """
        if not to_email or not code:
            raise ValueError("Email and code are required")

        msg = self.build_otp_message(to_email, code, ttl_seconds)
        logger.info("Sending verification email to %s", to_email)

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._config.smtp_host,
                port=self._config.smtp_port,
                username=self._config.smtp_username or None,
                password=self._config.smtp_password or None,
                use_tls=self._config.smtp_use_tls,
                start_tls=not self._config.smtp_use_tls,
                timeout=self._config.smtp_timeout_seconds,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise _delivery_error(to_email, exc) from exc

        logger.info("Verification email sent to %s", to_email)

    async def verify(self) -> bool:
        """Check that the SMTP server accepts our credentials (startup only)."""
        if not self.is_configured:
            logger.error("SMTP credentials not configured")
            return False

        smtp = aiosmtplib.SMTP(
            hostname=self._config.smtp_host,
            port=self._config.smtp_port,
            use_tls=self._config.smtp_use_tls,
            start_tls=not self._config.smtp_use_tls,
            timeout=self._config.smtp_timeout_seconds,
        )
        try:
            async with smtp:
                await smtp.login(self._config.smtp_username, self._config.smtp_password)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP connection verification failed: %r", exc)
            return False

        logger.info("SMTP connection verified")
        return True
