"""
Exceptions for the Solana Actions SDK.
"""
from enum import Enum
from typing import Optional, Any


class RejectReason(str, Enum):
    """
    Reasons a returned transaction is refused by the trust classifier.

    MALICIOUS is kept distinct from MALFORMED so audit trails can tell a
    broken payload from one that asks for a foreign signature.
    """
    MALFORMED = "malformed"
    MALICIOUS = "malicious"


class ActionsError(Exception):
    """Base exception for Solana Actions errors."""
    pass


class ValidationError(ActionsError):
    """Raised when an Action payload fails validation."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class InvalidPatternError(ActionsError):
    """Raised when a rule table contains an unusable path pattern."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class TransactionDecodeError(ActionsError):
    """Raised when transaction bytes cannot be decoded."""
    pass


class TransactionRejectedError(ActionsError):
    """Raised when a transaction is refused for signing."""

    reason: RejectReason = RejectReason.MALFORMED

    def __init__(self, message: str, rejection: Optional[Any] = None):
        self.rejection = rejection
        super().__init__(message)


class MalformedTransactionError(TransactionRejectedError):
    """Raised for bad encodings, invalid signatures or broken structure."""
    reason = RejectReason.MALFORMED


class MaliciousTransactionError(TransactionRejectedError):
    """Raised when a transaction requires a signature the client must not give."""
    reason = RejectReason.MALICIOUS


class ConfirmationError(ActionsError):
    """Raised when a transaction fails to land or confirm on-chain."""

    def __init__(self, message: str, signature: Optional[str] = None):
        self.signature = signature
        super().__init__(message)


class UserRejectedError(ActionsError):
    """Raised by a signer when the user declines to sign."""
    pass


class CrossOriginCallbackRejected(ActionsError):
    """Raised when a chained callback href points at a different origin."""

    def __init__(self, href: str, expected_origin: str, signature: Optional[str] = None):
        self.href = href
        self.expected_origin = expected_origin
        self.signature = signature
        super().__init__(
            f"Callback {href} is not on the action origin {expected_origin}; request not sent"
        )


class TransportError(ActionsError):
    """Raised when an Action API request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class BlockchainError(ActionsError):
    """Raised when the blockchain RPC endpoint fails."""
    pass


class ChainStateError(ActionsError):
    """Raised when a chain operation is requested in the wrong state."""
    pass


class ChainCancelledError(ActionsError):
    """Raised by a pending submit when the chain was cancelled."""
    pass
