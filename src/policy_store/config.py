"""Store configuration and wiring helpers.

Example:
    config = StoreConfig.model_validate(
        {"backend": "redis", "url": "redis://cache:6379/2", "prefix": "tenant-a:"}
    )
    backend = create_backend(config)
    store = build_store(config, backend, matcher=my_matcher)
    ...
    await backend.close()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, field_validator

from policy_store.backends.memory import InMemoryBackend
from policy_store.layouts import HashLayout, KeyPerPolicyLayout, validate_namespace
from policy_store.store import PolicyStore

if TYPE_CHECKING:
    from policy_store.backends.base import Backend
    from policy_store.layouts import KeyLayout
    from policy_store.matcher import Matcher


class StoreConfig(BaseModel):
    """Configuration for a policy store instance.

    Attributes:
        backend:         Backend type ("memory" or "redis")
        url:             Redis connection URL (for redis type)
        layout:          Key layout ("hash" for one hash collection, "key" for
                         one key per policy)
        prefix:          Collection-name prefix for the hash layout
        namespace:       Key namespace for the key-per-policy layout
        scan_batch_size: Entries requested per cursor step
    """

    backend: Literal["memory", "redis"] = "memory"
    url: str = "redis://localhost:6379/0"
    layout: Literal["hash", "key"] = "hash"
    prefix: str = ""
    namespace: str = Field(default="policy_store", min_length=1)
    scan_batch_size: int = Field(default=100, gt=0)

    @field_validator("namespace")
    @classmethod
    def _isolated_namespace(cls, value: str) -> str:
        return validate_namespace(value)


def create_backend(config: StoreConfig) -> Backend:
    """Create a backend from configuration.

    The returned backend owns its connection; close it with ``await backend.close()``.
    """
    if config.backend == "redis":
        from redis.asyncio import from_url

        from policy_store.backends.redis import RedisBackend

        return RedisBackend(from_url(config.url), owns_client=True)
    return InMemoryBackend()


def build_layout(config: StoreConfig) -> KeyLayout:
    if config.layout == "key":
        return KeyPerPolicyLayout(namespace=config.namespace)
    return HashLayout(prefix=config.prefix)


def build_store(config: StoreConfig, backend: Backend, *, matcher: Matcher) -> PolicyStore:
    """Wire a :class:`PolicyStore` over *backend* as described by *config*."""
    return PolicyStore(
        backend,
        matcher=matcher,
        layout=build_layout(config),
        scan_batch_size=config.scan_batch_size,
    )
