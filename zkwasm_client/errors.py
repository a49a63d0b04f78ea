"""
errors.py
Exception hierarchy for the player client.

  EncodingError            -- local, fatal, never retried
  TransportError           -- service unreachable, safe to retry with backoff
    SubmissionOutcomeUnknown -- request may have reached the service
  TransactionRejected      -- service refused the transaction (see RejectReason)
  NotFoundError            -- state fetch for a never-registered account
  StateSyncTimeout         -- poll-until-reflected gave up
"""

from enum import Enum
from typing import Optional


class RejectReason(str, Enum):
    INVALID_NONCE = "InvalidNonce"
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    ALREADY_REGISTERED = "AlreadyRegistered"
    UNAUTHORIZED = "Unauthorized"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    TOKEN_EXISTS = "TokenExists"
    TOKEN_NOT_FOUND = "TokenNotFound"
    MARKET_EXISTS = "MarketExists"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "RejectReason":
        try:
            return cls(raw)
        except ValueError:
            return cls.UNKNOWN


class ZkwasmClientError(Exception):
    """Base exception for all player client errors."""
    pass


class EncodingError(ZkwasmClientError):
    """Raised when a command field violates its domain or bytes are malformed."""
    pass


class TransportError(ZkwasmClientError):
    """Raised when the service cannot be reached."""
    pass


class SubmissionOutcomeUnknown(TransportError):
    """
    The transaction may or may not have been admitted.

    Callers must resolve it with a nonce check (Player.resolve) instead of
    resubmitting the same command.
    """

    def __init__(self, nonce: int, cause: str):
        self.nonce = nonce
        self.cause = cause
        super().__init__(f"outcome of transaction nonce={nonce} unknown: {cause}")


class TransactionRejected(ZkwasmClientError):
    """Raised when the service acknowledges a transaction with Rejected."""

    def __init__(self, reason: RejectReason, nonce: int, detail: Optional[str] = None):
        self.reason = reason
        self.nonce = nonce
        self.detail = detail
        text = f"transaction nonce={nonce} rejected: {reason.value}"
        if detail and detail != reason.value:
            text += f" ({detail})"
        super().__init__(text)


class NotFoundError(ZkwasmClientError):
    """Raised when the service has no record of the requested account."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"account {account_id} is not registered")


class StateSyncTimeout(ZkwasmClientError):
    def __init__(self, account_id: str, timeout_seconds: float):
        self.account_id = account_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"state for {account_id} did not reach the expected value "
            f"within {timeout_seconds} seconds"
        )
