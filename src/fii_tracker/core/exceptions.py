"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ProviderError(AppError):
    """Base class for failures of an external market-data source."""

    def __init__(
        self,
        source: str,
        message: str,
        status: Optional[int] = None,
        code: str = "PROVIDER_ERROR",
    ):
        self.source = source
        self.status = status
        super().__init__(message, code=code)


class AuthError(ProviderError):
    """Invalid credentials or rejected request (4xx). Never retried."""

    def __init__(self, source: str, message: str, status: Optional[int] = None):
        super().__init__(source, message, status=status, code="AUTH_ERROR")


class TransientError(ProviderError):
    """Server-side failure or overload (5xx). Retried with backoff."""

    def __init__(self, source: str, message: str, status: Optional[int] = None):
        super().__init__(source, message, status=status, code="TRANSIENT_ERROR")


class ParseError(ProviderError):
    """Malformed provider response."""

    def __init__(self, source: str, message: str):
        super().__init__(source, message, code="PARSE_ERROR")


def classify_http_status(source: str, status: int, message: str = "") -> ProviderError:
    """
    Map an HTTP status to the matching provider error.

    429 and 5xx are transient; every other 4xx is treated as an auth/validation failure.
    """
    text = message or f"{source} responded with HTTP {status}"
    if status == 429 or 500 <= status < 600:
        return TransientError(source, text, status=status)
    if 400 <= status < 500:
        return AuthError(source, text, status=status)
    return ProviderError(source, text, status=status)
