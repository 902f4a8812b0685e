"""Typed domain exceptions for the scorekeeping rules.

Every rule violation raised by ledger.logic and ledger.session is a
ValidationError. Callers catch it at their boundary and show the reason
to the user; it is never retried or silently recovered from.
"""


class LedgerError(Exception):
    """Base exception for all rummy ledger errors."""


class ValidationError(LedgerError):
    """An operation was rejected because it would violate a game rule.

    Attributes:
        reason: Human-readable explanation of the violated rule.

    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
