"""
Custom exception hierarchy for the memory coordinator.

All exceptions inherit from MemoryCoordinatorError, which provides optional
context for structured error handling and logging.
"""

from __future__ import annotations

from typing import Any


class MemoryCoordinatorError(Exception):
    """Base exception for all memory coordinator errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(MemoryCoordinatorError):
    """Raised when coordinator configuration is invalid.

    Examples:
        - Duplicate namespace names
        - Namespace names containing ':' or path separators
        - Non-positive max_entries
    """

    pass


class UnknownNamespaceError(MemoryCoordinatorError):
    """Raised when writing to a namespace that is not configured.

    Context should include:
        - namespace: The namespace that failed to resolve
        - known: The configured namespace names
    """

    pass


class CodecError(MemoryCoordinatorError):
    """Raised when a stored payload cannot be decoded.

    Context should include:
        - compressed: Whether the payload was flagged as compressed
        - error: The underlying decoding error
    """

    pass


class CorruptEntryError(MemoryCoordinatorError):
    """Raised when a stored entry violates its expected shape.

    Recovered locally during the startup load pass (the file is skipped).
    Surfaced to callers from retrieve/export, since by then the entry was
    already validated once.

    Context should include:
        - namespace: The namespace of the entry
        - key: The entry key
        - error: The underlying parse/decode error
    """

    pass


class SyncHookError(MemoryCoordinatorError):
    """Raised when the external synchronization hook fails.

    Never propagated to callers; the scheduler logs it and counts it.

    Context should include:
        - target: The configured sync target
        - error: The underlying hook error
    """

    pass


class BackupFormatError(MemoryCoordinatorError):
    """Raised when a backup document does not have the expected shape.

    Context should include:
        - path: The backup file path
        - reason: What was wrong with the document
    """

    pass
