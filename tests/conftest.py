"""Shared test fixtures."""

import fnmatch

import pytest

from policy_store import Conditions, Policy, PolicyStore
from policy_store.backends import InMemoryBackend
from policy_store.conditions import StringEqualCondition


def glob_matcher(policy, patterns, subject):
    """Literal/wildcard subject matching, standing in for the real matcher."""
    return any(fnmatch.fnmatchcase(subject, pattern) for pattern in patterns)


@pytest.fixture
def matcher():
    return glob_matcher


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend, matcher):
    return PolicyStore(backend, matcher=matcher, scan_batch_size=2)


@pytest.fixture
def alice_policy():
    return Policy(
        id="p1",
        subjects=["alice"],
        effect="allow",
        resources=["doc:1"],
        actions=["read"],
    )


@pytest.fixture
def conditional_policy():
    return Policy(
        id="p2",
        description="Engineers may edit design docs from the office",
        subjects=["eng:*", "bob"],
        effect="deny",
        resources=["doc:design:*"],
        actions=["write", "delete"],
        conditions=Conditions({"owner": StringEqualCondition(equals="bob")}),
    )
