"""Custom exceptions for the policy_store package."""

from __future__ import annotations


class PolicyStoreError(Exception):
    """Base exception for all policy store errors.

    Every error carries the ``operation`` that failed and, where one applies,
    the ``policy_id`` it was working on.
    """

    def __init__(self, operation: str, policy_id: str = "", detail: str = "") -> None:
        self.operation = operation
        self.policy_id = policy_id
        self.detail = detail
        msg = f"Policy store error during '{operation}'"
        if policy_id:
            msg += f" for policy '{policy_id}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class AlreadyExistsError(PolicyStoreError):
    """Raised when ``create`` finds a policy with the same id already stored."""

    def __init__(self, operation: str, policy_id: str) -> None:
        super().__init__(operation, policy_id, "policy already exists")


class NotFoundError(PolicyStoreError):
    """Raised when no policy is stored under the requested id."""

    def __init__(self, operation: str, policy_id: str) -> None:
        super().__init__(operation, policy_id, "policy not found")


class SerializationError(PolicyStoreError):
    """Raised when a policy cannot be encoded for storage."""


class DeserializationError(PolicyStoreError):
    """Raised when stored bytes do not decode into a valid policy."""


class StoreUnavailableError(PolicyStoreError):
    """Raised on connection or transport failures of the underlying store."""


class MatcherError(PolicyStoreError):
    """Raised when the subject matcher fails during a lookup.

    The matcher's own exception is available as ``__cause__``.
    """


class LookupAbortedError(PolicyStoreError):
    """Raised when a lookup is cut short by its timeout or cancel signal."""
