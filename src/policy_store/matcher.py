"""Matcher protocol — decides whether a subject is covered by a policy.

The matching algorithm (wildcards, regex delimiters, ...) lives outside this
package.  The store only needs a predicate with this shape, sync or async.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from policy_store.policy import Policy


class Matcher(Protocol):
    """Called as ``matcher(policy, patterns, subject)``.

    Must be free of side effects.  Any exception it raises aborts the lookup
    and is surfaced as the cause of a :class:`~policy_store.exceptions.MatcherError`.
    """

    def __call__(
        self,
        policy: Policy,
        patterns: Sequence[str],
        subject: str,
    ) -> bool | Awaitable[bool]: ...
