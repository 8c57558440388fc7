"""PolicyStore — durable policy storage over a key-value backend."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import TYPE_CHECKING

from policy_store.exceptions import (
    AlreadyExistsError,
    LookupAbortedError,
    MatcherError,
    NotFoundError,
    StoreUnavailableError,
)
from policy_store.layouts import HashLayout
from policy_store.serializer import PolicySerializer

if TYPE_CHECKING:
    from policy_store.backends.base import Backend
    from policy_store.layouts import KeyLayout
    from policy_store.matcher import Matcher
    from policy_store.policy import Policy

logger = logging.getLogger(__name__)

_FIND = "find_policies_for_subject"


class PolicyStore:
    """Identifier-addressed policy storage with scan-based subject lookup.

    The store keeps no state of its own: every operation is a round trip to
    the backend, and correctness of concurrent ``create`` calls rests on the
    layout's atomic insert-if-absent.  The backend (and its connection) is
    owned by the caller, who closes it at shutdown.

    Parameters:
        backend:         Key-value backend holding the policies.
        matcher:         Predicate deciding whether a subject is covered by a
                         policy's subject patterns.  Sync or async.
        layout:          Key layout.  Defaults to :class:`HashLayout` with no prefix.
        serializer:      Policy codec.  Defaults to :class:`PolicySerializer`.
        scan_batch_size: Entries requested per cursor step during scans.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        matcher: Matcher,
        layout: KeyLayout | None = None,
        serializer: PolicySerializer | None = None,
        scan_batch_size: int = 100,
    ) -> None:
        if scan_batch_size < 1:
            raise ValueError("scan_batch_size must be at least 1")
        self._backend = backend
        self._matcher = matcher
        self._layout: KeyLayout = layout or HashLayout()
        self._serializer = serializer or PolicySerializer()
        self._scan_batch_size = scan_batch_size

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def layout(self) -> KeyLayout:
        return self._layout

    # ── CRUD ─────────────────────────────────────────────────

    async def create(self, policy: Policy) -> None:
        """Store *policy* unless a policy with the same id exists.

        Raises:
            AlreadyExistsError:    If the id is taken.  The stored policy is untouched.
            SerializationError:    If the policy cannot be encoded.  Nothing is written.
            StoreUnavailableError: On backend failure.
        """
        payload = self._serializer.encode(policy)
        try:
            written = await self._layout.insert(self._backend, policy.id, payload)
        except (StoreUnavailableError, OSError) as e:
            raise _unavailable("create", policy.id, e) from e

        if not written:
            raise AlreadyExistsError("create", policy.id)
        logger.debug("Created policy %s in %s", policy.id, self._layout.describe())

    async def get(self, policy_id: str) -> Policy:
        """Return the policy stored under *policy_id*.

        Raises:
            NotFoundError:         If no such policy exists.
            DeserializationError:  If the stored bytes are not a valid policy.
            StoreUnavailableError: On backend failure.
        """
        try:
            payload = await self._layout.read(self._backend, policy_id)
        except (StoreUnavailableError, OSError) as e:
            raise _unavailable("get", policy_id, e) from e

        if payload is None:
            raise NotFoundError("get", policy_id)
        return self._serializer.decode(payload, policy_id)

    async def delete(self, policy_id: str) -> None:
        """Remove *policy_id*.  Deleting an absent policy is not an error."""
        try:
            await self._layout.remove(self._backend, policy_id)
        except (StoreUnavailableError, OSError) as e:
            raise _unavailable("delete", policy_id, e) from e
        logger.debug("Deleted policy %s from %s", policy_id, self._layout.describe())

    # ── scanning ─────────────────────────────────────────────

    async def iter_policies(
        self,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[Policy]:
        """Yield every stored policy in cursor order.

        Entries are fetched ``scan_batch_size`` at a time, never all at once.
        Policies created or deleted while the scan runs may or may not be
        seen.  Close the iterator when stopping early so the cursor is
        released::

            async with aclosing(store.iter_policies()) as policies:
                async for policy in policies:
                    ...

        Raises:
            DeserializationError:  On the first entry that fails to decode.
            LookupAbortedError:    When *cancel* is set mid-scan.
            StoreUnavailableError: On backend failure.
        """
        scan = self._layout.scan(self._backend, self._scan_batch_size)
        async with aclosing(scan) as entries:
            while True:
                if cancel is not None and cancel.is_set():
                    raise LookupAbortedError("scan", detail="cancelled by caller")
                try:
                    policy_id, payload = await anext(entries)
                except StopAsyncIteration:
                    return
                except (StoreUnavailableError, OSError) as e:
                    raise _unavailable("scan", "", e) from e

                yield self._serializer.decode(payload, policy_id)

    async def find_policies_for_subject(
        self,
        subject: str,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Policy]:
        """Return every policy whose subject patterns cover *subject*.

        Scans the whole collection, so cost grows with the number of stored
        policies, not the number of matches.  Results come back in scan
        order.  The lookup is all-or-nothing: the first decode, matcher or
        backend error aborts it and no partial list is returned.

        Args:
            subject: Principal to look up.
            timeout: Seconds after which the scan is abandoned.
            cancel:  Event the caller sets to abandon the scan.

        Raises:
            MatcherError:          If the matcher raises; the original is the cause.
            DeserializationError:  If a stored entry fails to decode.
            LookupAbortedError:    On *timeout* or *cancel*.
            StoreUnavailableError: On backend failure.
        """
        try:
            async with asyncio.timeout(timeout):
                matches = await self._collect_matches(subject, cancel)
        except TimeoutError as e:
            raise LookupAbortedError(_FIND, detail=f"timed out after {timeout}s") from e

        logger.debug("Subject %r matched %d policies", subject, len(matches))
        return matches

    async def _collect_matches(
        self,
        subject: str,
        cancel: asyncio.Event | None,
    ) -> list[Policy]:
        matches: list[Policy] = []
        async with aclosing(self.iter_policies(cancel=cancel)) as policies:
            async for policy in policies:
                if await self._matches(policy, subject):
                    matches.append(policy)
        return matches

    async def _matches(self, policy: Policy, subject: str) -> bool:
        try:
            result = self._matcher(policy, policy.subjects, subject)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise MatcherError(_FIND, policy.id, f"{type(e).__name__}: {e}") from e
        return bool(result)


def _unavailable(operation: str, policy_id: str, cause: Exception) -> StoreUnavailableError:
    detail = cause.detail if isinstance(cause, StoreUnavailableError) else str(cause)
    return StoreUnavailableError(operation, policy_id, detail)
