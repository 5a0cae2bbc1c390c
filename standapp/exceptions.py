"""
Exception hierarchy for StandApp.

All errors carry a machine-readable ``error_code``, a context dictionary for
diagnostics and an optional underlying ``cause``.
"""

from typing import Any, Dict, Optional


def create_error_context(**kwargs: Any) -> Dict[str, Any]:
    """Build an error context dictionary, dropping unset values."""
    return {key: value for key, value in kwargs.items() if value is not None}


class StandAppError(Exception):
    """Base class for all StandApp errors."""

    def __init__(self,
                 message: str,
                 error_code: str = "STANDAPP_ERROR",
                 context: Optional[Dict[str, Any]] = None,
                 retryable: bool = False,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.retryable = retryable
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and reports."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "retryable": self.retryable,
            "cause": str(self.cause) if self.cause else None,
        }


class BackendError(StandAppError):
    """A text-generation backend failed (transport, timeout or inference)."""

    def __init__(self,
                 message: str,
                 backend: str = "",
                 error_code: str = "BACKEND_ERROR",
                 context: Optional[Dict[str, Any]] = None,
                 retryable: bool = True,
                 cause: Optional[BaseException] = None):
        context = dict(context or {})
        if backend:
            context.setdefault("backend", backend)
        super().__init__(message, error_code, context, retryable, cause)
        self.backend = backend


class BackendTimeoutError(BackendError):
    """The backend did not answer within its request timeout."""

    def __init__(self, backend: str, timeout_seconds: float,
                 cause: Optional[BaseException] = None):
        super().__init__(
            message=f"{backend} request timed out after {timeout_seconds}s",
            backend=backend,
            error_code="BACKEND_TIMEOUT",
            context={"timeout_seconds": timeout_seconds},
            cause=cause
        )
        self.timeout_seconds = timeout_seconds


class BackendUnavailableError(BackendError):
    """The backend could not be reached or refused the request."""

    def __init__(self, backend: str, reason: str,
                 status_code: Optional[int] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(
            message=f"{backend} unavailable: {reason}",
            backend=backend,
            error_code="BACKEND_UNAVAILABLE",
            context=create_error_context(status_code=status_code),
            retryable=status_code is None or status_code >= 500,
            cause=cause
        )
        self.status_code = status_code


class ConfigurationError(StandAppError):
    """Configuration is missing or invalid."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, error_code="CONFIGURATION_ERROR",
                         context={"errors": list(errors or [])})
        self.errors = list(errors or [])


class CaseLoadError(StandAppError):
    """A benchmark case file could not be read or validated."""

    def __init__(self, path: str, reason: str,
                 cause: Optional[BaseException] = None):
        super().__init__(
            message=f"Failed to load benchmark case {path}: {reason}",
            error_code="CASE_LOAD_FAILED",
            context={"path": path},
            cause=cause
        )
        self.path = path
