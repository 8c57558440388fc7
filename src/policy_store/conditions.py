"""Condition descriptors attached to policies.

A policy's ``conditions`` maps a name (usually a request-context key) to a
descriptor whose shape depends on its type.  The store never evaluates
conditions; it only needs to persist them and rebuild the right descriptor
class on the way back, so each type is registered under a wire name.

Wire format::

    {"<name>": {"type": "<type_name>", "options": {...}}}
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ConditionDecodeError(ValueError):
    """Raised when a raw conditions value cannot be decoded."""


class Condition(BaseModel):
    """Base class for every condition descriptor.

    Subclasses set ``type_name`` and declare their options as fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    type_name: ClassVar[str] = "base"

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.type_name,
            "options": self.model_dump(mode="json", by_alias=True),
        }


class StringEqualCondition(Condition):
    """Fulfilled when the context value equals ``equals``."""

    type_name: ClassVar[str] = "StringEqualCondition"

    equals: str


class StringMatchCondition(Condition):
    """Fulfilled when the context value matches the ``matches`` regex."""

    type_name: ClassVar[str] = "StringMatchCondition"

    matches: str


class StringPairsEqualCondition(Condition):
    type_name: ClassVar[str] = "StringPairsEqualCondition"


class CIDRCondition(Condition):
    """Fulfilled when the context value is an IP inside ``cidr``."""

    type_name: ClassVar[str] = "CIDRCondition"

    cidr: str


class EqualsSubjectCondition(Condition):
    type_name: ClassVar[str] = "EqualsSubjectCondition"


class BooleanCondition(Condition):
    type_name: ClassVar[str] = "BooleanCondition"

    boolean_value: bool = Field(alias="value")


class ConditionRegistry:
    """Maps wire type names to condition classes.

    Uses the Registry pattern so applications can add their own condition
    types without touching the decoder::

        ConditionRegistry.register("TimeWindowCondition", TimeWindowCondition)
    """

    _registry: ClassVar[dict[str, type[Condition]]] = {
        cls.type_name: cls
        for cls in (
            StringEqualCondition,
            StringMatchCondition,
            StringPairsEqualCondition,
            CIDRCondition,
            EqualsSubjectCondition,
            BooleanCondition,
        )
    }

    @classmethod
    def register(cls, type_name: str, condition_class: type[Condition]) -> None:
        """Register a custom condition type.

        Raises:
            ValueError: If ``condition_class.type_name`` is unset or doesn't match
                ``type_name``
        """
        declared = condition_class.type_name
        if declared == "base":
            raise ValueError(
                f"Condition {condition_class.__name__} must set type_name "
                f"(expected '{type_name}')"
            )
        if declared != type_name:
            raise ValueError(
                f"Condition {condition_class.__name__} has type_name='{declared}' "
                f"but is being registered as '{type_name}'"
            )
        cls._registry[type_name] = condition_class

    @classmethod
    def unregister(cls, type_name: str) -> None:
        cls._registry.pop(type_name, None)

    @classmethod
    def registered_types(cls) -> list[str]:
        return list(cls._registry.keys())

    @classmethod
    def lookup(cls, type_name: str) -> type[Condition] | None:
        return cls._registry.get(type_name)


class Conditions(MutableMapping[str, Condition]):
    """Mapping of condition name to descriptor with a custom wire codec."""

    def __init__(self, items: Mapping[str, Condition] | None = None) -> None:
        self._items: dict[str, Condition] = dict(items or {})

    def __getitem__(self, key: str) -> Condition:
        return self._items[key]

    def __setitem__(self, key: str, value: Condition) -> None:
        if not isinstance(value, Condition):
            raise TypeError(f"Condition '{key}' must be a Condition, got {type(value).__name__}")
        self._items[key] = value

    def __delitem__(self, key: str) -> None:
        del self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Conditions):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Conditions({self._items!r})"

    # ── wire codec ───────────────────────────────────────────

    def to_wire(self) -> dict[str, Any]:
        return {name: condition.to_wire() for name, condition in self._items.items()}

    @classmethod
    def from_wire(cls, raw: Any) -> Conditions:
        """Rebuild descriptors from their wire form.

        ``None`` decodes to an empty mapping.

        Raises:
            ConditionDecodeError: On a malformed entry, an unknown type or
                options the type's schema rejects.
        """
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConditionDecodeError(
                f"conditions must be an object, got {type(raw).__name__}"
            )

        conditions = cls()
        for name, entry in raw.items():
            if not isinstance(entry, Mapping) or "type" not in entry:
                raise ConditionDecodeError(f"condition '{name}' is missing its 'type'")

            type_name = entry["type"]
            condition_class = ConditionRegistry.lookup(type_name)
            if condition_class is None:
                available = ", ".join(sorted(ConditionRegistry.registered_types()))
                raise ConditionDecodeError(
                    f"condition '{name}' has unknown type '{type_name}'. "
                    f"Available types: {available}"
                )

            try:
                conditions[name] = condition_class.model_validate(entry.get("options") or {})
            except ValidationError as e:
                raise ConditionDecodeError(
                    f"condition '{name}' of type '{type_name}' has invalid options: {e}"
                ) from e

        return conditions
