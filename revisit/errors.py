"""
Error taxonomy shared by the scheduling service, the due-reminder processor
and the HTTP layer. Each error carries the message shown to the caller and
the HTTP status it maps to.
"""
from typing import Optional


class ReminderError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ReminderError):
    """Missing or malformed input. Raised before any durable write."""

    status_code = 400
    default_message = "Invalid request"


class InvalidDurationError(ValidationError):
    default_message = "Invalid reminder time. Please provide a positive whole number"


class PersistenceError(ReminderError):
    """Storage failure. The message is generic; details only go to the log."""

    status_code = 500
    default_message = "Internal server error"


class AuthorizationError(ReminderError):
    status_code = 401
    default_message = "Unauthorized"
