"""Errors raised by the game storage layer."""

from ledger.logic.exceptions import LedgerError


class StorageError(LedgerError):
    """A storage operation failed.

    Attributes:
        operation: Name of the store method that failed (e.g. "save_game").

    """

    def __init__(self, message: str, operation: str) -> None:
        self.operation = operation
        super().__init__(message)


class DataCorruptionError(StorageError):
    """Stored data could not be decoded into valid game records."""

    def __init__(self, key: str, detail: str = "") -> None:
        self.key = key
        message = f"Data corruption detected for key: {key}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, operation="decode")
