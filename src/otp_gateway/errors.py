"""Error types surfaced by the gateway's collaborators."""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for errors the HTTP layer reports to the client.

    ``code`` is a stable, machine-readable identifier that ends up verbatim
    in the ``error`` field of the JSON response.
    """

    code = "internal-error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class DeliveryError(GatewayError):
    """The mailer could not deliver a verification code."""

    code = "email-send-failed"


class ProviderError(GatewayError):
    """The identity provider failed to mint a sign-in token."""

    code = "token-creation-failed"
