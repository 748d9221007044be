from __future__ import annotations


class LedgerError(Exception):
    """Base class for every rule violation raised by the ledger core."""


class Unauthenticated(LedgerError):
    """Raised when no caller identity could be resolved."""


class Unauthorized(LedgerError):
    """Raised when the caller lacks the required relationship to an account or request."""


class InvalidOwnerSet(LedgerError):
    """Raised when an owner list has duplicates or too many entries."""


class OwnerLimitExceeded(LedgerError):
    """Raised when an owner would exceed the per-principal account cap."""


class UnknownAccount(LedgerError):
    """Raised when an account id is missing from the registry."""


class UnknownRequest(LedgerError):
    """Raised when a withdrawal request id is missing from its account."""


class InvalidAmount(LedgerError):
    """Raised when an amount is non-positive or exceeds the current balance."""


class AlreadyApproved(LedgerError):
    """Raised when an owner approves the same request twice."""


class AlreadyExecuted(LedgerError):
    """Raised when a request has already been paid out."""


class NotApproved(LedgerError):
    """Raised when a request is withdrawn before every co-owner approved it."""


class InsufficientBalance(LedgerError):
    """Raised when the balance no longer covers an approved request."""


class PayoutFailed(LedgerError):
    """Raised when the value sink could not pay out a withdrawal."""
