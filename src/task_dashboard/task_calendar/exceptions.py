"""Custom exceptions for the task calendar."""


class TaskCalendarError(Exception):
    """Base exception for task calendar errors."""

    pass


class ConfigurationError(TaskCalendarError):
    """Exception raised for invalid calendar configuration."""

    pass


class BackendError(TaskCalendarError):
    """Exception raised when the spreadsheet backend cannot be read."""

    def __init__(self, message: str, sheet: str | None = None) -> None:
        super().__init__(message)
        self.sheet = sheet


class SheetFetchError(BackendError):
    """Exception raised for transport or HTTP status failures."""

    pass


class BackendTimeoutError(BackendError):
    """Exception raised when a backend request exceeds its timeout."""

    pass


class PayloadShapeError(BackendError):
    """Exception raised when a backend payload is not a readable table."""

    pass
