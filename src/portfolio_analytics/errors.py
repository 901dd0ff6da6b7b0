from __future__ import annotations


class AnalyticsError(RuntimeError):
    """Base class for portfolio analytics errors."""

    code = "ANALYTICS_ERROR"

    def __init__(self, message: str, *, user_message: str | None = None) -> None:
        super().__init__(message)
        self.user_message = user_message or message


class InsufficientDataError(AnalyticsError):
    code = "INSUFFICIENT_DATA"


class ConfigurationError(AnalyticsError, ValueError):
    code = "CONFIGURATION_ERROR"
