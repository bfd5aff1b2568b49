"""
Shared building blocks for the service layer.
Every service logs through a class-named logger and reports outcomes with
ServiceResult instead of raising for expected business failures.
"""
import logging
from typing import Any, Dict, Optional
from django.core.cache import cache
from django.conf import settings


class BaseService:
    """
    Base class for GuraNeza services.
    Provides contextual logging and thin wrappers around the Django cache.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"apps.{self.__class__.__name__}")
        self.cache_timeout = getattr(settings, 'SERVICE_CACHE_TIMEOUT', 3600)

    def log_info(self, message: str, **kwargs) -> None:
        """Log an info message, attaching keyword arguments as context."""
        self.logger.info(message, extra={'context': kwargs})

    def log_warning(self, message: str, **kwargs) -> None:
        """Log a warning message, attaching keyword arguments as context."""
        self.logger.warning(message, extra={'context': kwargs})

    def log_error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """
        Log an error message.

        Args:
            message: The error message to log
            exception: Optional exception whose traceback is attached
            **kwargs: Additional context to include in the log
        """
        self.logger.error(
            message,
            exc_info=exception,
            extra={'context': kwargs}
        )

    def get_from_cache(self, key: str) -> Optional[Any]:
        """Return a cached value or None on a miss or cache failure."""
        try:
            return cache.get(key)
        except Exception as e:
            self.log_error(f"Error reading cache key {key}", exception=e)
            return None

    def set_cache(self, key: str, value: Any, timeout: Optional[int] = None) -> bool:
        """
        Store a value in the cache.

        Args:
            key: The cache key
            value: The value to cache
            timeout: Seconds to keep the value (defaults to self.cache_timeout)

        Returns:
            True if the value was stored
        """
        try:
            cache.set(key, value, timeout or self.cache_timeout)
            return True
        except Exception as e:
            self.log_error(f"Error setting cache key {key}", exception=e)
            return False

    def build_cache_key(self, prefix: str, *args) -> str:
        """Join a prefix and the non-empty arguments with colons."""
        components = [str(arg) for arg in args if arg is not None]
        if components:
            return f"{prefix}:{':'.join(components)}"
        return prefix


class ServiceException(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ExternalServiceError(ServiceException):
    """Raised when a third-party API (MoMo, Google, Stripe) fails."""
    pass


class BusinessRuleViolation(ServiceException):
    """Raised when a marketplace rule is violated."""
    pass


class ServiceResult:
    """
    Outcome of a service call.
    Failures carry a human readable message and an UPPER_SNAKE error code
    that views map onto an HTTP status.
    """

    def __init__(self, success: bool, data: Optional[Any] = None,
                 error: Optional[str] = None, error_code: Optional[str] = None):
        self.success = success
        self.data = data
        self.error = error
        self.error_code = error_code

    @classmethod
    def ok(cls, data: Any = None) -> 'ServiceResult':
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_code: Optional[str] = None,
             data: Any = None) -> 'ServiceResult':
        """
        Build a failed result.

        Args:
            error: Error message
            error_code: Error code used for status mapping
            data: Optional payload returned alongside the error
        """
        return cls(success=False, data=data, error=error, error_code=error_code)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"<ServiceResult: Success, data={self.data}>"
        return f"<ServiceResult: Failure, error={self.error}, code={self.error_code}>"
