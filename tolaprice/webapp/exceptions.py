"""
Custom exceptions for the pricing web application.

Provides a hierarchy of exceptions for clean error handling in routes.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AppException):
    """Raised when input validation fails."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class ConfigurationError(AppException):
    """Raised when configuration is missing or invalid."""

    status_code = 500
    error_code = "CONFIGURATION_ERROR"


class RateUnavailableError(AppException):
    """Raised when an endpoint strictly requires a usable market rate."""

    status_code = 503
    error_code = "RATE_UNAVAILABLE"

    def __init__(self, metal: str, reason: Optional[str] = None):
        super().__init__(
            f"{metal} market rate is unavailable",
            details={"metal": metal, "reason": reason},
        )
