"""OTP entry value object."""

from __future__ import annotations

import hmac
from dataclasses import dataclass, replace


def codes_match(stored: str, submitted: str) -> bool:
    """Exact, constant-time comparison of two codes."""
    return hmac.compare_digest(stored.encode("utf-8"), submitted.encode("utf-8"))


@dataclass(frozen=True)
class OtpEntry:
    """A pending verification code for one identity.

    Timestamps are seconds since the epoch, as returned by the store's clock.
    ``attempts`` counts wrong guesses made against this code.
    """

    identity: str
    code: str
    issued_at: float
    expires_at: float
    attempts: int = 0

    @classmethod
    def issue(cls, identity: str, code: str, ttl_seconds: float, now: float) -> OtpEntry:
        return cls(
            identity=identity,
            code=code,
            issued_at=now,
            expires_at=now + ttl_seconds,
        )

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def matches(self, submitted: str) -> bool:
        return codes_match(self.code, submitted)

    def with_failed_attempt(self) -> OtpEntry:
        return replace(self, attempts=self.attempts + 1)

    def __repr__(self) -> str:
        return (
            f"<OtpEntry identity={self.identity!r} expires_at={self.expires_at} "
            f"attempts={self.attempts}>"
        )
