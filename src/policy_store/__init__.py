"""policy_store — persistence for access-control policies on a key-value store.

Policies are stored by id with atomic create-if-absent semantics, read back
through a two-step codec, and looked up by subject with a full cursor scan
filtered by an injected matcher.
"""

from policy_store.conditions import Condition, ConditionRegistry, Conditions
from policy_store.config import StoreConfig, build_store, create_backend
from policy_store.exceptions import (
    AlreadyExistsError,
    DeserializationError,
    LookupAbortedError,
    MatcherError,
    NotFoundError,
    PolicyStoreError,
    SerializationError,
    StoreUnavailableError,
)
from policy_store.layouts import HashLayout, KeyLayout, KeyPerPolicyLayout
from policy_store.matcher import Matcher
from policy_store.policy import Effect, Policy
from policy_store.serializer import PolicySerializer
from policy_store.store import PolicyStore

__all__ = [
    "AlreadyExistsError",
    "Condition",
    "ConditionRegistry",
    "Conditions",
    "DeserializationError",
    "Effect",
    "HashLayout",
    "KeyLayout",
    "KeyPerPolicyLayout",
    "LookupAbortedError",
    "Matcher",
    "MatcherError",
    "NotFoundError",
    "Policy",
    "PolicySerializer",
    "PolicyStore",
    "PolicyStoreError",
    "SerializationError",
    "StoreConfig",
    "StoreUnavailableError",
    "build_store",
    "create_backend",
]
