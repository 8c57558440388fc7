"""PolicySerializer — converts policies to and from their stored bytes.

Stored form is a UTF-8 JSON object with one key per :class:`Policy` field.
``conditions`` is polymorphic per condition type, so the outer record is
validated with the conditions value kept raw and the mapping is rebuilt in a
second step by :meth:`Conditions.from_wire`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from policy_store.conditions import ConditionDecodeError, Conditions
from policy_store.exceptions import DeserializationError, SerializationError
from policy_store.policy import Effect, Policy


class PolicyRecord(BaseModel):
    """Schema of the outer stored record.

    Attributes:
        conditions: Raw wire value, decoded separately.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    description: str = ""
    subjects: list[str] = Field(default_factory=list)
    effect: str
    resources: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    conditions: Any = None

    @field_validator("effect")
    @classmethod
    def _known_effect(cls, value: str) -> str:
        if value not in Effect.ALL:
            raise ValueError(f"effect must be one of {sorted(Effect.ALL)}, got '{value}'")
        return value


class PolicySerializer:
    """Encodes :class:`Policy` objects to bytes and back."""

    def encode(self, policy: Policy) -> bytes:
        """Return the stored representation of *policy*.

        Raises:
            SerializationError: If the policy cannot be represented.
        """
        policy_id = getattr(policy, "id", "")
        try:
            conditions = policy.conditions
            if not isinstance(conditions, Conditions):
                if not isinstance(conditions, Mapping):
                    raise TypeError(
                        f"conditions must be a mapping, got {type(conditions).__name__}"
                    )
                conditions = Conditions(conditions)

            record = PolicyRecord(
                id=policy.id,
                description=policy.description,
                subjects=list(policy.subjects),
                effect=policy.effect,
                resources=list(policy.resources),
                actions=list(policy.actions),
                conditions=conditions.to_wire(),
            )
            return json.dumps(record.model_dump(mode="json"), separators=(",", ":")).encode()
        except (ValidationError, TypeError, ValueError, AttributeError) as e:
            raise SerializationError("encode", policy_id, str(e)) from e

    def decode(self, payload: bytes | str, policy_id: str = "") -> Policy:
        """Rebuild a :class:`Policy` from its stored representation.

        Args:
            payload:   Raw stored value.
            policy_id: Id the payload was read under, for error context.

        Raises:
            DeserializationError: If the payload doesn't match the schema.
        """
        try:
            record = PolicyRecord.model_validate_json(payload)
        except ValidationError as e:
            raise DeserializationError("decode", policy_id, str(e)) from e

        try:
            conditions = Conditions.from_wire(record.conditions)
        except ConditionDecodeError as e:
            raise DeserializationError("decode", policy_id or record.id, str(e)) from e

        return Policy(
            id=record.id,
            description=record.description,
            subjects=record.subjects,
            effect=record.effect,
            resources=record.resources,
            actions=record.actions,
            conditions=conditions,
        )
