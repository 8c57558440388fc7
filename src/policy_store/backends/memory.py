"""InMemoryBackend — zero-config, dict-backed backend for development and testing."""

from __future__ import annotations

import asyncio
import re
from collections import defaultdict
from collections.abc import AsyncIterator

from policy_store.backends.base import Backend


class InMemoryBackend(Backend):
    """In-memory backend using plain dicts.  Data is lost on process exit.

    Scans walk a snapshot of the key/field names in ``count``-sized steps and
    read values lazily, so entries deleted mid-scan are skipped and entries
    added mid-scan are not seen, much like a server-side cursor.
    """

    def __init__(self) -> None:
        self._keys: dict[str, bytes] = {}
        self._hashes: dict[str, dict[str, bytes]] = defaultdict(dict)

    async def get(self, key: str) -> bytes | None:
        return self._keys.get(key)

    async def set_if_absent(self, key: str, value: bytes) -> bool:
        if key in self._keys:
            return False
        self._keys[key] = value
        return True

    async def delete(self, key: str) -> None:
        self._keys.pop(key, None)

    async def scan_keys(self, match: str, count: int) -> AsyncIterator[str]:
        pattern = _compile_glob(match)
        names = [k for k in self._keys if pattern.fullmatch(k)]
        for start in range(0, len(names), count):
            for key in names[start : start + count]:
                if key in self._keys:
                    yield key
            # Yield control between cursor steps like a round trip would
            await asyncio.sleep(0)

    async def hget(self, name: str, field: str) -> bytes | None:
        return self._hashes.get(name, {}).get(field)

    async def hset_if_absent(self, name: str, field: str, value: bytes) -> bool:
        collection = self._hashes[name]
        if field in collection:
            return False
        collection[field] = value
        return True

    async def hdel(self, name: str, field: str) -> None:
        collection = self._hashes.get(name)
        if collection is None:
            return
        collection.pop(field, None)
        # Redis drops a hash once its last field is gone
        if not collection:
            del self._hashes[name]

    async def scan_hash(self, name: str, count: int) -> AsyncIterator[tuple[str, bytes]]:
        collection = self._hashes.get(name, {})
        fields = list(collection)
        for start in range(0, len(fields), count):
            for field in fields[start : start + count]:
                value = collection.get(field)
                if value is not None:
                    yield field, value
            await asyncio.sleep(0)


def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a Redis-style glob (``*``, ``?``, ``[...]``, ``\\`` escapes)."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                parts.append(re.escape(ch))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("^"):
                    body = "^" + re.escape(body[1:]).replace("\\-", "-")
                else:
                    body = re.escape(body).replace("\\-", "-")
                parts.append(f"[{body}]")
                i = end
        else:
            parts.append(re.escape(ch))
        i += 1
    return re.compile("".join(parts), re.DOTALL)
