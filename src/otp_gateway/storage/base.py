"""Base store — outcome type and the interface every OTP store implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a single store operation.

    ``ok`` is ``False`` only when the store itself failed (network error,
    timeout); ``error`` then says why.  ``found`` reports whether a live
    entry existed for the key, and ``value`` carries what the operation
    read (for :meth:`BaseStore.consume`, the code only if it matched).
    """

    ok: bool
    value: str | None = None
    found: bool = False
    error: str | None = None

    @classmethod
    def success(cls, value: str | None = None, found: bool | None = None) -> StoreResult:
        if found is None:
            found = value is not None
        return cls(ok=True, value=value, found=found)

    @classmethod
    def failure(cls, error: str) -> StoreResult:
        return cls(ok=False, error=error)


class BaseStore(ABC):
    """Abstract key/value store with per-key expiry."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short store name (used in logs)."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> StoreResult:
        """Set *key* to *value*, expiring after *ttl_seconds*.

        Overwrites any existing value for *key* and resets its attempt count.
        """

    @abstractmethod
    async def take(self, key: str) -> StoreResult:
        """Atomically read and delete *key*.

        A value returned here is never returned to any other caller.
        """

    @abstractmethod
    async def consume(self, key: str, submitted: str, max_attempts: int) -> StoreResult:
        """Atomically delete *key* if its value equals *submitted*.

        On a mismatch the entry stays, but its wrong-attempt counter goes
        up; once it reaches *max_attempts* the entry is deleted.  Only one
        of any number of concurrent matching calls gets the value back.
        """
