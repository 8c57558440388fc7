"""Key-value backends the policy store persists through.

``RedisBackend`` lives in :mod:`policy_store.backends.redis` and needs the
``redis`` extra, so it is not imported here.
"""

from policy_store.backends.base import Backend
from policy_store.backends.memory import InMemoryBackend

__all__ = ["Backend", "InMemoryBackend"]
