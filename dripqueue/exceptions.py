"""
Custom exceptions for dripqueue.

Queue operations themselves never raise for malformed input: admission and
configuration either succeed or silently no-op. The exceptions here cover
the caller-facing setup paths, where failing loudly is useful.
"""

from __future__ import annotations

from typing import Any


class DripQueueError(Exception):
    """
    Base exception for all dripqueue errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     scheduler = MessageScheduler(SchedulerConfig(polling_delay_ms=0))
        ... except DripQueueError as e:
        ...     logger.error(f"dripqueue error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DripQueueError):
    """
    Raised when a scheduler is configured with unusable values.

    Attributes:
        parameter: Name of the offending configuration field.
        value: The rejected value.
        reason: Why the value was rejected.

    Example:
        >>> raise ConfigurationError(
        ...     parameter="polling_delay_ms",
        ...     value=0,
        ...     reason="must be a positive number of milliseconds",
        ... )
    """

    def __init__(self, parameter: str, value: Any, reason: str) -> None:
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid value for '{parameter}': {value!r} ({reason})",
            {"parameter": parameter, "value": value, "reason": reason},
        )
