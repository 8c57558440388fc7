"""Key layouts — where a policy's bytes live in the key-value store.

Two layouts are supported, one per store instance:

* :class:`HashLayout` (default): every policy is a field of a single hash
  named ``<prefix>policies``, keyed by policy id.
* :class:`KeyPerPolicyLayout`: every policy is its own key,
  ``<namespace>:policy:<id>``.

Both insert with an atomic set-if-absent, so concurrent creates of the same
id cannot both succeed.  Never point both layouts at the same data.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policy_store.backends.base import Backend

_HASH_SUFFIX = "policies"
_KEY_TEMPLATE = "{namespace}:policy:{id}"
_KEY_MARKER = ":policy"


class KeyLayout(ABC):
    """Strategy mapping policy ids onto backend keys."""

    @abstractmethod
    async def read(self, backend: Backend, policy_id: str) -> bytes | None: ...

    @abstractmethod
    async def insert(self, backend: Backend, policy_id: str, payload: bytes) -> bool:
        """Store *payload* only if *policy_id* is absent.  ``True`` if written."""
        ...

    @abstractmethod
    async def remove(self, backend: Backend, policy_id: str) -> None: ...

    @abstractmethod
    def scan(self, backend: Backend, batch_size: int) -> AsyncIterator[tuple[str, bytes]]:
        """Iterate ``(policy_id, payload)`` over every stored policy."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Short description used in log records."""
        ...


class HashLayout(KeyLayout):
    """All policies as fields of one hash collection.

    Parameters:
        prefix: Prepended to the collection name so several logical stores
                can share one server (e.g. ``"tenant-a:"``).
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    @property
    def collection(self) -> str:
        return f"{self.prefix}{_HASH_SUFFIX}"

    def describe(self) -> str:
        return f"hash '{self.collection}'"

    async def read(self, backend: Backend, policy_id: str) -> bytes | None:
        return await backend.hget(self.collection, policy_id)

    async def insert(self, backend: Backend, policy_id: str, payload: bytes) -> bool:
        return await backend.hset_if_absent(self.collection, policy_id, payload)

    async def remove(self, backend: Backend, policy_id: str) -> None:
        await backend.hdel(self.collection, policy_id)

    async def scan(self, backend: Backend, batch_size: int) -> AsyncIterator[tuple[str, bytes]]:
        async with aclosing(backend.scan_hash(self.collection, batch_size)) as pairs:
            async for policy_id, payload in pairs:
                yield policy_id, payload


class KeyPerPolicyLayout(KeyLayout):
    """One key per policy under ``<namespace>:policy:``.

    Enumeration is a key-pattern scan followed by one read per key; a key
    deleted between the two is skipped.

    A namespace may not contain ``:policy:`` or end in ``:policy``, otherwise
    its keys would fall inside another namespace's key range.

    Raises:
        ValueError: If *namespace* is empty or could overlap another namespace.
    """

    def __init__(self, namespace: str = "policy_store") -> None:
        self.namespace = validate_namespace(namespace)

    def key(self, policy_id: str) -> str:
        return _KEY_TEMPLATE.format(namespace=self.namespace, id=policy_id)

    @property
    def key_prefix(self) -> str:
        return self.key("")

    def describe(self) -> str:
        return f"keys '{self.key('*')}'"

    async def read(self, backend: Backend, policy_id: str) -> bytes | None:
        return await backend.get(self.key(policy_id))

    async def insert(self, backend: Backend, policy_id: str, payload: bytes) -> bool:
        return await backend.set_if_absent(self.key(policy_id), payload)

    async def remove(self, backend: Backend, policy_id: str) -> None:
        await backend.delete(self.key(policy_id))

    async def scan(self, backend: Backend, batch_size: int) -> AsyncIterator[tuple[str, bytes]]:
        prefix = self.key_prefix
        async with aclosing(backend.scan_keys(_escape_glob(prefix) + "*", batch_size)) as keys:
            async for key in keys:
                payload = await backend.get(key)
                if payload is None:
                    continue
                yield key[len(prefix) :], payload


def _escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so *value* matches literally."""
    return "".join("\\" + ch if ch in "*?[]\\" else ch for ch in value)


def validate_namespace(namespace: str) -> str:
    """Return *namespace* if its keys cannot overlap another namespace's."""
    if not namespace:
        raise ValueError("namespace must not be empty")
    if f"{_KEY_MARKER}:" in namespace or namespace.endswith(_KEY_MARKER):
        raise ValueError(
            f"namespace '{namespace}' must not contain '{_KEY_MARKER}:' "
            f"or end with '{_KEY_MARKER}'"
        )
    return namespace
