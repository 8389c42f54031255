from __future__ import annotations


class FormEngineError(Exception):
    # Base class for engine failures that callers are expected to handle.
    pass


class UnknownLevelError(FormEngineError):
    # Raised when a level identifier has no configuration.
    pass


class StepValidationError(FormEngineError):
    # Raised when a step cannot be left (missing required fields, no subjects).
    def __init__(self, message: str, step: int = 0) -> None:
        super().__init__(message)
        self.step = step


class DraftCorruptError(FormEngineError):
    # Raised when a persisted draft blob cannot be decoded.
    pass


class AuthenticationMissingError(FormEngineError):
    # Raised when no authenticated respondent is available at submission time.
    def __init__(self, message: str = "No authenticated user found.") -> None:
        super().__init__(message)


class PersistenceError(FormEngineError):
    # Raised when the storage backend rejects a write; message is the backend's own.
    pass


class ConnectivityError(FormEngineError):
    # Raised when the storage backend cannot be reached at all.
    pass
