"""Errors raised by store implementations."""


class StoreError(Exception):
    """Any failure talking to the backing store."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class DuplicateRecordError(StoreError):
    """Insert rejected by a uniqueness constraint."""
