"""
Error taxonomy for autosshfs.

Fatal errors are raised as exceptions and abort the invocation. Per-target
failures are never raised out of a batch; they are reported through
TargetStatus entries (see orchestrator.py).

Error hierarchy:
- AutoSSHFSError (base)
  - FileAccessError (config or events file unusable)
    - ResourceUnavailableError (mount table unreadable)
  - PolicyViolationError (all-targets operation refused by Promptforall)
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ErrorContext:
    """Structured context carried by an error, for event logging."""
    path: str | None = None
    mode: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {key: value for key, value in asdict(self).items() if value is not None}


class AutoSSHFSError(Exception):
    """
    Base exception for all fatal autosshfs errors.
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        assert isinstance(message, str) and message.strip(), (
            f"AutoSSHFSError message must be a non-empty string, "
            f"got {message!r}"
        )
        super().__init__(message)
        self.context = context or ErrorContext()

    @property
    def error_type(self) -> str:
        """Return the error type name for logging."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for JSONL logging."""
        return {
            "error_type": self.error_type,
            "message": str(self),
            **self.context.to_dict(),
        }


class FileAccessError(AutoSSHFSError):
    """
    A required file could not be opened.

    Raised when the SSH config file is missing or unreadable (parsing is
    aborted, no partial model is returned) or the events file cannot be
    opened for writing.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, ErrorContext(path=path))


class ResourceUnavailableError(FileAccessError):
    """The live mount table could not be read."""
    pass


class PolicyViolationError(AutoSSHFSError):
    """
    An all-targets operation was refused.

    Raised when Promptforall is set on the generic host and there is no
    interactive terminal to ask for confirmation.
    """

    def __init__(self, message: str, mode: str | None = None) -> None:
        super().__init__(message, ErrorContext(mode=mode))
