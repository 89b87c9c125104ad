from __future__ import annotations


class DirectoryError(Exception):
    """Base class for errors raised by the company directory."""


class ValidationError(DirectoryError):
    """A record was rejected before any state changed."""


class DuplicateNameError(ValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"A company named '{name}' already exists")
        self.name = name


class StoreNotReadyError(DirectoryError):
    def __init__(self, state: str) -> None:
        super().__init__(f"Company store is not ready (state: {state})")
        self.state = state


class PersistenceUnavailable(DirectoryError):
    """The snapshot could not be read from or written to remote storage."""
