"""OTP API router — send and verify email codes.

Endpoints
---------
POST /api/send-otp      → generate, store and email a code
POST /api/verify-otp    → redeem a code and mint a sign-in token
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from otp_gateway.api.schemas import (
    ErrorResponse,
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from otp_gateway.config import settings
from otp_gateway.errors import GatewayError
from otp_gateway.otp.service import OtpService
from otp_gateway.services.email_service import EmailService
from otp_gateway.services.identity_provider import FirebaseIdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["otp"])

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


# ── Dependencies (instances live on app.state, set up in the lifespan) ──

def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_identity_provider(request: Request) -> FirebaseIdentityProvider:
    return request.app.state.identity_provider


def _error(status_code: int, error: str, exc: Exception | None = None) -> JSONResponse:
    details = str(exc) if exc is not None and settings.is_development else None
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


# ── Endpoints ────────────────────────────────────────────

@router.post("/send-otp", response_model=SendOtpResponse)
async def send_otp(
    body: SendOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
    email_service: EmailService = Depends(get_email_service),
):
    """Issue a code for the email address and send it."""
    email = body.email
    if not email:
        return _error(400, "email required")
    if not EMAIL_PATTERN.fullmatch(email):
        return _error(400, "invalid-email-format")
    if not email_service.is_configured:
        logger.error("SMTP credentials not configured")
        return _error(500, "smtp-not-configured")

    code = await otp_service.issue(email)
    try:
        await email_service.send_otp(email, code, otp_service.ttl_seconds)
    except GatewayError as exc:
        logger.error("Email send failed for %s: %s (%s)", email, exc, exc.code)
        return _error(500, exc.code, exc)

    logger.info("OTP sent to %s", email)
    return SendOtpResponse(ok=True)


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    response_model_by_alias=True,
)
async def verify_otp(
    body: VerifyOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
    identity_provider: FirebaseIdentityProvider = Depends(get_identity_provider),
):
    """Redeem a code; on success return a Firebase custom token."""
    if not body.email or not body.code:
        return _error(400, "email & code required")

    if not await otp_service.redeem(body.email, body.code):
        logger.info("OTP verification failed for %s", body.email)
        return _error(400, "invalid-or-expired")

    try:
        token = await identity_provider.mint_token(body.email)
    except GatewayError as exc:
        # Verified, but sign-in failed: the client should retry the login step.
        logger.error("Token creation failed for verified %s: %s", body.email, exc)
        return _error(500, exc.code, exc)

    logger.info("OTP verified for %s", body.email)
    return VerifyOtpResponse(verified=True, custom_token=token)
