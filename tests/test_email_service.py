"""Tests for the SMTP EmailService."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from otp_gateway.config import Settings
from otp_gateway.errors import DeliveryError
from otp_gateway.services.email_service import EmailService


@pytest.fixture
def config() -> Settings:
    return Settings(
        smtp_host="smtp.example.com",
        smtp_port=465,
        smtp_username="no-reply@example.com",
        smtp_password="secret",
        brand_name="Vibe",
    )


def test_is_configured(config):
    assert EmailService(config).is_configured
    assert not EmailService(Settings(smtp_username="", smtp_password="")).is_configured


def test_otp_message_contents(config):
    msg = EmailService(config).build_otp_message("alice@example.com", "482913", 600)

    assert msg["Subject"] == "Your Vibe verification code"
    assert msg["To"] == "alice@example.com"
    assert "no-reply@example.com" in msg["From"]

    text = msg.get_body(preferencelist=("plain",)).get_content()
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "482913" in text and "10 minutes" in text
    assert "482913" in html


@pytest.mark.asyncio
async def test_send_otp_uses_implicit_tls(config):
    with patch("otp_gateway.services.email_service.aiosmtplib.send", new=AsyncMock()) as send:
        await EmailService(config).send_otp("alice@example.com", "482913", 600)

    send.assert_awaited_once()
    kwargs = send.call_args.kwargs
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 465
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False


@pytest.mark.asyncio
async def test_send_otp_requires_arguments(config):
    with pytest.raises(ValueError):
        await EmailService(config).send_otp("", "482913", 600)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (aiosmtplib.SMTPAuthenticationError(535, "bad credentials"), "smtp-auth-failed"),
        (aiosmtplib.SMTPConnectError("refused"), "smtp-connection-failed"),
        (ConnectionResetError("reset by peer"), "smtp-connection-failed"),
        (aiosmtplib.SMTPRecipientsRefused([]), "email-send-failed"),
    ],
)
async def test_send_failures_map_to_delivery_errors(config, exc, code):
    with patch(
        "otp_gateway.services.email_service.aiosmtplib.send",
        new=AsyncMock(side_effect=exc),
    ):
        with pytest.raises(DeliveryError) as info:
            await EmailService(config).send_otp("alice@example.com", "482913", 600)

    assert info.value.code == code
    assert "alice@example.com" in str(info.value)


@pytest.mark.asyncio
async def test_verify_without_credentials_returns_false():
    service = EmailService(Settings(smtp_username="", smtp_password=""))
    assert await service.verify() is False
