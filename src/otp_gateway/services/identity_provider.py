"""Identity provider — mints Firebase custom tokens for verified emails."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from google.auth.exceptions import GoogleAuthError

from otp_gateway.config import Settings, settings
from otp_gateway.errors import ProviderError

logger = logging.getLogger(__name__)

APP_NAME = "otp-gateway"
REQUIRED_FIELDS = ("project_id", "private_key", "client_email")


def load_service_account(config: Settings) -> dict[str, Any] | None:
    """Read the service-account JSON from the environment or a file.

    Returns ``None`` when neither source is configured.  Escaped ``\\n``
    sequences in the private key are restored so keys pasted into a single
    environment variable still parse.
    """
    if config.firebase_service_account:
        raw = config.firebase_service_account
    elif config.firebase_service_account_path:
        raw = Path(config.firebase_service_account_path).read_text(encoding="utf-8")
    else:
        return None

    account = json.loads(raw)
    if isinstance(account.get("private_key"), str):
        account["private_key"] = account["private_key"].replace("\\n", "\n")

    missing = [field for field in REQUIRED_FIELDS if not account.get(field)]
    if missing:
        raise ValueError(f"Invalid service account JSON: missing {', '.join(missing)}")
    return account


class FirebaseIdentityProvider:
    """Wraps a ``firebase_admin`` app; disabled if credentials are unusable."""

    def __init__(self, app: firebase_admin.App | None = None) -> None:
        self._app = app

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> FirebaseIdentityProvider:
        """Initialise Firebase, logging (not raising) on bad configuration."""
        config = config or settings
        try:
            account = load_service_account(config)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load Firebase credentials: %s", exc)
            return cls()

        if account is None:
            logger.warning(
                "FIREBASE_SERVICE_ACCOUNT not set; Firebase features will be disabled"
            )
            return cls()

        try:
            app = firebase_admin.get_app(APP_NAME)
        except ValueError:
            try:
                app = firebase_admin.initialize_app(
                    credentials.Certificate(account), name=APP_NAME
                )
            except ValueError as exc:
                logger.error("Firebase initialization failed: %s", exc)
                return cls()

        logger.info("Firebase initialized for project %s", account["project_id"])
        return cls(app)

    @property
    def is_available(self) -> bool:
        return self._app is not None

    async def mint_token(self, identity: str) -> str:
        """Create a custom sign-in token whose uid is *identity*.

        Raises
        ------
        ProviderError
            ``firebase-not-configured`` or ``token-creation-failed``.
        """
        if self._app is None:
            raise ProviderError("Firebase is not configured", code="firebase-not-configured")

        try:
            token = await asyncio.to_thread(auth.create_custom_token, identity, app=self._app)
        except (FirebaseError, GoogleAuthError, ValueError) as exc:
            logger.error("Firebase token creation failed for %s: %s", identity, exc)
            raise ProviderError(str(exc)) from exc

        return token.decode("utf-8") if isinstance(token, bytes) else token
