"""Subscriber loading errors."""

from __future__ import annotations

from pathlib import Path


class SubscriberLoadError(RuntimeError):
    """Raised when a subscriber module cannot be loaded."""

    def __init__(self, message: str, *, path: Path) -> None:
        """Initialise with a message and the offending module path."""
        self.path = path
        super().__init__(message)

    @classmethod
    def missing_directory(cls, path: Path) -> SubscriberLoadError:
        """Return an error for a subscriber directory that does not exist."""
        return cls(f"subscriber directory {path} does not exist", path=path)

    @classmethod
    def not_importable(cls, path: Path) -> SubscriberLoadError:
        """Return an error for a file Python cannot load as a module."""
        return cls(f"could not load subscriber module {path}", path=path)

    @classmethod
    def missing_entrypoint(cls, path: Path) -> SubscriberLoadError:
        """Return an error for a module without a ``subscribe`` callable."""
        return cls(f"subscriber module {path} does not define subscribe()", path=path)
