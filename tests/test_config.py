"""Tests for StoreConfig and the wiring helpers."""

import pytest
from pydantic import ValidationError

from policy_store import HashLayout, KeyPerPolicyLayout, Policy, StoreConfig, build_store
from policy_store.backends import InMemoryBackend
from policy_store.config import build_layout, create_backend


class TestStoreConfig:
    """Tests for StoreConfig validation."""

    def test_defaults(self):
        config = StoreConfig()
        assert config.backend == "memory"
        assert config.layout == "hash"
        assert config.prefix == ""
        assert config.scan_batch_size == 100

    def test_from_dict(self):
        config = StoreConfig.model_validate(
            {"backend": "redis", "url": "redis://cache:6379/2", "layout": "key", "namespace": "acme"}
        )
        assert config.backend == "redis"
        assert config.namespace == "acme"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            StoreConfig(backend="postgres")

    def test_rejects_unknown_layout(self):
        with pytest.raises(ValidationError):
            StoreConfig(layout="table")

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValidationError):
            StoreConfig(scan_batch_size=0)

    def test_rejects_overlapping_namespace(self):
        with pytest.raises(ValidationError):
            StoreConfig(layout="key", namespace="acme:policy:eu")


class TestBuilders:
    """Tests for create_backend / build_layout / build_store."""

    def test_memory_backend(self):
        assert isinstance(create_backend(StoreConfig()), InMemoryBackend)

    async def test_redis_backend_owns_its_client(self):
        pytest.importorskip("redis")
        from policy_store.backends.redis import RedisBackend

        backend = create_backend(StoreConfig(backend="redis", url="redis://localhost:6390/0"))
        try:
            assert isinstance(backend, RedisBackend)
        finally:
            await backend.close()

    def test_hash_layout(self):
        layout = build_layout(StoreConfig(prefix="tenant-a:"))
        assert isinstance(layout, HashLayout)
        assert layout.collection == "tenant-a:policies"

    def test_key_layout(self):
        layout = build_layout(StoreConfig(layout="key", namespace="acme"))
        assert isinstance(layout, KeyPerPolicyLayout)
        assert layout.key("p") == "acme:policy:p"

    async def test_build_store(self, matcher, alice_policy):
        config = StoreConfig(layout="key", namespace="acme", scan_batch_size=5)
        backend = create_backend(config)
        store = build_store(config, backend, matcher=matcher)

        await store.create(alice_policy)

        assert await backend.get("acme:policy:p1") is not None
        assert await store.find_policies_for_subject("alice") == [alice_policy]
        assert isinstance(store.layout, KeyPerPolicyLayout)

    async def test_two_prefixes_share_one_backend(self, matcher):
        backend = InMemoryBackend()
        a = build_store(StoreConfig(prefix="a:"), backend, matcher=matcher)
        b = build_store(StoreConfig(prefix="b:"), backend, matcher=matcher)

        await a.create(Policy(id="p", subjects=["*"], effect="allow"))

        assert await b.find_policies_for_subject("anyone") == []
