"""Custom exceptions for pagekit."""


class PaginatorError(Exception):
    """Base exception for all paginator errors."""


class PaginatorConfigError(PaginatorError, ValueError):
    """Raised when a paginator or the process settings are misconfigured."""


class InvalidCursorError(PaginatorError, ValueError):
    """Raised when a strategy receives a cursor it cannot interpret."""

    def __init__(self, cursor: str, reason: str = "unrecognised cursor"):
        self.cursor = cursor
        super().__init__(f"{reason}: {cursor!r}")
