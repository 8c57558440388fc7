"""Backend protocol — the remote key-value store the policy store talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class Backend(ABC):
    """Abstract base for key-value backends.

    Covers plain keys and hash collections, with atomic insert-if-absent for
    both and cursor-based scans so large collections are never loaded at
    once.  Values are opaque bytes.

    Scans are async generators; callers that may stop early should close
    them (``contextlib.aclosing``) so the cursor is released.
    """

    # ── plain keys ───────────────────────────────────────────

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the value stored at *key*, or ``None`` if absent."""
        ...

    @abstractmethod
    async def set_if_absent(self, key: str, value: bytes) -> bool:
        """Atomically store *value* unless *key* exists.  ``True`` if written."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete *key*.  No-op if it does not exist."""
        ...

    @abstractmethod
    def scan_keys(self, match: str, count: int) -> AsyncIterator[str]:
        """Iterate keys matching the glob *match*, *count* per cursor step."""
        ...

    # ── hash collections ─────────────────────────────────────

    @abstractmethod
    async def hget(self, name: str, field: str) -> bytes | None:
        """Return *field* of hash *name*, or ``None`` if absent."""
        ...

    @abstractmethod
    async def hset_if_absent(self, name: str, field: str, value: bytes) -> bool:
        """Atomically set *field* unless it exists.  ``True`` if written."""
        ...

    @abstractmethod
    async def hdel(self, name: str, field: str) -> None:
        """Delete *field* from hash *name*.  No-op if it does not exist."""
        ...

    @abstractmethod
    def scan_hash(self, name: str, count: int) -> AsyncIterator[tuple[str, bytes]]:
        """Iterate ``(field, value)`` pairs of hash *name*, *count* per step."""
        ...

    # ── lifecycle ────────────────────────────────────────────

    async def close(self) -> None:
        """Release resources owned by the backend.  Default: nothing."""
        return None
