from __future__ import annotations


class MarkGroveError(Exception):
    """Base class for errors raised by markgrove services."""


class ValidationError(MarkGroveError):
    pass


class ImportFormatError(ValidationError):
    """The export could not be decoded at all."""


class NotFoundError(MarkGroveError):
    def __init__(self, bookmark_id: int):
        super().__init__(f"bookmark {bookmark_id} not found")
        self.bookmark_id = bookmark_id


class StorageError(MarkGroveError):
    pass


class PartialDeleteError(StorageError):
    """A subtree delete failed part way; ``removed`` holds what was committed."""

    def __init__(self, message: str, removed: set[int]):
        super().__init__(message)
        self.removed = removed
