"""Policy — the access-control rule persisted by the store."""

from __future__ import annotations

from dataclasses import dataclass, field

from policy_store.conditions import Conditions


class Effect:
    """Allowed values for :attr:`Policy.effect`."""

    ALLOW = "allow"
    DENY = "deny"

    ALL = frozenset({ALLOW, DENY})


@dataclass
class Policy:
    """An access-control rule.

    Attributes:
        id:          Unique identifier.  Immutable once the policy is stored.
        description: Free-text description.
        subjects:    Principal patterns this policy applies to.
        effect:      ``"allow"`` or ``"deny"``.
        resources:   Resource patterns.
        actions:     Action patterns.
        conditions:  Named condition descriptors (see :mod:`policy_store.conditions`).

    The store treats a policy as opaque beyond its serialized form; matching
    against ``subjects`` is done by the injected matcher.
    """

    id: str
    description: str = ""
    subjects: list[str] = field(default_factory=list)
    effect: str = Effect.DENY
    resources: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    conditions: Conditions = field(default_factory=Conditions)

    @property
    def allows(self) -> bool:
        return self.effect == Effect.ALLOW
