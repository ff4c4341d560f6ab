"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from otp_gateway.api.router import router as otp_router
from otp_gateway.api.schemas import HealthResponse
from otp_gateway.config import settings
from otp_gateway.otp.service import OtpService
from otp_gateway.services.email_service import EmailService
from otp_gateway.services.identity_provider import FirebaseIdentityProvider
from otp_gateway.storage.handle import StoreHandle
from otp_gateway.storage.remote import RedisCredentialStore

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def build_store_handle() -> StoreHandle:
    if not settings.redis_url:
        logger.info("REDIS_URL not provided → using in-memory store")
        return StoreHandle(remote=None)
    remote = RedisCredentialStore(
        settings.redis_url, connect_timeout=settings.redis_connect_timeout_seconds
    )
    return StoreHandle(remote=remote)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)

    handle = build_store_handle()
    await handle.probe()

    email_service = EmailService()
    await email_service.verify()

    app.state.store_handle = handle
    app.state.otp_service = OtpService(
        handle,
        ttl_seconds=settings.otp_ttl_seconds,
        max_attempts=settings.otp_max_attempts,
    )
    app.state.email_service = email_service
    app.state.identity_provider = FirebaseIdentityProvider.from_settings()

    reprobe_task = None
    if settings.redis_url and settings.store_reprobe_interval_seconds > 0:
        reprobe_task = asyncio.create_task(
            handle.run_reprobe_loop(settings.store_reprobe_interval_seconds)
        )

    logger.info(
        "Environment: env=%s smtp_configured=%s firebase_configured=%s store=%s",
        settings.environment,
        email_service.is_configured,
        app.state.identity_provider.is_available,
        handle.status.value,
    )
    yield

    logger.info("Shutting down %s …", settings.app_name)
    if reprobe_task is not None:
        reprobe_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await reprobe_task
    await handle.close()


app = FastAPI(
    title=settings.app_name,
    description="One-time-passcode email verification gateway",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(otp_router)


@app.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Liveness probe, including which OTP store is in use."""
    handle = getattr(request.app.state, "store_handle", None)
    store = handle.status.value if handle is not None else "unprobed"
    return HealthResponse(status="healthy", app=settings.app_name, store=store)
