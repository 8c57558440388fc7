"""Tests for PolicySerializer."""

import json

import pytest

from policy_store import DeserializationError, Policy, PolicySerializer, SerializationError
from policy_store.conditions import Conditions, StringMatchCondition


@pytest.fixture
def serializer():
    return PolicySerializer()


def test_encode_is_flat_json_record(serializer, conditional_policy):
    record = json.loads(serializer.encode(conditional_policy))

    assert record == {
        "id": "p2",
        "description": "Engineers may edit design docs from the office",
        "subjects": ["eng:*", "bob"],
        "effect": "deny",
        "resources": ["doc:design:*"],
        "actions": ["write", "delete"],
        "conditions": {"owner": {"type": "StringEqualCondition", "options": {"equals": "bob"}}},
    }


def test_decode_preserves_sequence_order(serializer):
    policy = Policy(id="o", subjects=["z", "a", "m"], effect="allow", actions=["b", "a"])
    decoded = serializer.decode(serializer.encode(policy))
    assert decoded.subjects == ["z", "a", "m"]
    assert decoded.actions == ["b", "a"]


def test_encode_accepts_plain_dict_conditions(serializer):
    policy = Policy(id="d", effect="allow")
    policy.conditions = {"path": StringMatchCondition(matches="^/docs/.*")}

    decoded = serializer.decode(serializer.encode(policy))
    assert decoded.conditions == Conditions({"path": StringMatchCondition(matches="^/docs/.*")})


def test_encode_rejects_unknown_effect(serializer):
    with pytest.raises(SerializationError) as exc_info:
        serializer.encode(Policy(id="x", effect="permit"))
    assert exc_info.value.policy_id == "x"


def test_encode_rejects_non_mapping_conditions(serializer):
    policy = Policy(id="x", effect="allow")
    policy.conditions = ["not", "a", "mapping"]
    with pytest.raises(SerializationError):
        serializer.encode(policy)


def test_decode_null_conditions(serializer):
    payload = b'{"id": "n", "effect": "allow", "conditions": null}'
    assert serializer.decode(payload).conditions == Conditions()


def test_decode_missing_optional_fields(serializer):
    policy = serializer.decode(b'{"id": "m", "effect": "deny"}')
    assert policy == Policy(id="m", effect="deny")


def test_decode_accepts_text_payload(serializer):
    assert serializer.decode('{"id": "t", "effect": "allow"}').id == "t"


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"not json",
        b"[1, 2, 3]",
        b'{"effect": "allow"}',
        b'{"id": "x", "effect": "sometimes"}',
        b'{"id": "x", "effect": "allow", "subjects": "alice"}',
        b'{"id": "x", "effect": "allow", "conditions": {"c": {"type": "NoSuchCondition"}}}',
        b'{"id": "x", "effect": "allow", "conditions": {"c": {"options": {}}}}',
        b'{"id": "x", "effect": "allow", "conditions": "nope"}',
    ],
)
def test_decode_rejects_malformed_payloads(serializer, payload):
    with pytest.raises(DeserializationError):
        serializer.decode(payload, "x")


def test_decode_error_carries_id(serializer):
    with pytest.raises(DeserializationError) as exc_info:
        serializer.decode(b"garbage", "stored-id")
    assert exc_info.value.policy_id == "stored-id"
    assert exc_info.value.operation == "decode"
