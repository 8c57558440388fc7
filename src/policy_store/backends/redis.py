"""RedisBackend — policy storage on a Redis server via ``redis.asyncio``."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing, contextmanager

try:
    from redis.asyncio import Redis
    from redis.exceptions import RedisError
except ImportError as exc:
    raise ImportError(
        "RedisBackend requires the 'redis' package. "
        "Install it with: pip install policy-store[redis]"
    ) from exc

from policy_store.backends.base import Backend
from policy_store.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


def _text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


@contextmanager
def _translate_errors(operation: str, target: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        raise StoreUnavailableError(operation, detail=f"{target}: {e}") from e


class RedisBackend(Backend):
    """Backend over an async Redis client.

    The client is injected and normally owned by the caller, who connects it
    at startup and closes it at shutdown.  Pass ``owns_client=True`` to have
    :meth:`close` close it (used by :func:`policy_store.config.create_backend`).

    Parameters:
        client:      A ``redis.asyncio.Redis`` instance.
        owns_client: Whether :meth:`close` should close *client*.
    """

    def __init__(self, client: Redis, *, owns_client: bool = False) -> None:
        self._client = client
        self._owns_client = owns_client

    @property
    def client(self) -> Redis:
        return self._client

    async def close(self) -> None:
        if self._owns_client:
            logger.debug("Closing owned Redis client")
            await self._client.aclose()

    # ── plain keys ───────────────────────────────────────────

    async def get(self, key: str) -> bytes | None:
        with _translate_errors("GET", key):
            return await self._client.get(key)

    async def set_if_absent(self, key: str, value: bytes) -> bool:
        with _translate_errors("SET NX", key):
            return bool(await self._client.set(key, value, nx=True))

    async def delete(self, key: str) -> None:
        with _translate_errors("DEL", key):
            await self._client.delete(key)

    async def scan_keys(self, match: str, count: int) -> AsyncIterator[str]:
        logger.debug("SCAN match=%s count=%d", match, count)
        with _translate_errors("SCAN", match):
            async with aclosing(self._client.scan_iter(match=match, count=count)) as keys:
                async for key in keys:
                    yield _text(key)

    # ── hash collections ─────────────────────────────────────

    async def hget(self, name: str, field: str) -> bytes | None:
        with _translate_errors("HGET", name):
            return await self._client.hget(name, field)

    async def hset_if_absent(self, name: str, field: str, value: bytes) -> bool:
        with _translate_errors("HSETNX", name):
            return bool(await self._client.hsetnx(name, field, value))

    async def hdel(self, name: str, field: str) -> None:
        with _translate_errors("HDEL", name):
            await self._client.hdel(name, field)

    async def scan_hash(self, name: str, count: int) -> AsyncIterator[tuple[str, bytes]]:
        logger.debug("HSCAN %s count=%d", name, count)
        with _translate_errors("HSCAN", name):
            async with aclosing(self._client.hscan_iter(name, count=count)) as pairs:
                async for field, value in pairs:
                    yield _text(field), value
