"""Custom exception classes for the apartment ledger.

Provides domain-specific exceptions for clear error handling and reporting.
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""

    pass


class DataNotReadyError(LedgerError):
    """Apartment roster is not loaded yet.

    Recoverable: the caller should retry once apartment data is available.
    """

    def __init__(self, message: str = "Apartment data is still loading. Please try again."):
        super().__init__(message)


class NotFoundError(LedgerError):
    """Requested record does not exist."""

    pass


class InvalidStatusError(LedgerError, ValueError):
    """Payment status is not one of the known statuses."""

    pass
