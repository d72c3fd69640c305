"""Script execution errors."""

from __future__ import annotations


class InvalidJobIdentifierError(ValueError):
    """Raised when a job identifier is not a lowercase hex string."""

    def __init__(self, identifier: object) -> None:
        """Initialise with the rejected identifier."""
        self.identifier = identifier
        super().__init__(f"Invalid job identifier: {identifier!r}")


class ExternalProcessError(RuntimeError):
    """Raised when a subscriber script cannot be spawned or fails."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        """Initialise with a message and optional exit code."""
        self.exit_code = exit_code
        super().__init__(message)

    @classmethod
    def spawn_failed(cls, script: str, error: OSError) -> ExternalProcessError:
        """Return an error for a script that could not be started."""
        return cls(f"Could not spawn {script}: {error}")

    @classmethod
    def non_zero_exit(cls, script: str, exit_code: int) -> ExternalProcessError:
        """Return an error for a script that exited unsuccessfully."""
        return cls(f"{script} exited with code {exit_code}", exit_code=exit_code)

    @classmethod
    def crashed(cls, script: str, error: Exception) -> ExternalProcessError:
        """Return an error for a run that failed inside the queue itself."""
        return cls(f"Run of {script} failed: {error}")
