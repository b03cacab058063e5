"""
Validation errors raised by the development core.

Every error names the offending field and value so callers can decide
whether to retry with corrected input or surface a message.
"""


class DevelopmentError(ValueError):
    """Base class for malformed-input failures."""

    def __init__(self, field: str, value, message: str = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid {field}: {value!r}")

    def to_dict(self) -> dict:
        return {
            'error': type(self).__name__,
            'field': self.field,
            'value': self.value if isinstance(self.value, (int, float, str))
            else str(self.value),
            'message': str(self),
        }


class InvalidDateRange(DevelopmentError):
    pass


class InvalidGestationalAge(DevelopmentError):
    pass


class InvalidMilestoneRange(DevelopmentError):
    pass


class InvalidMilestoneCategory(DevelopmentError):
    pass


class InvalidWindow(DevelopmentError):
    pass


class InvalidPeriod(DevelopmentError):
    pass


class InvalidTimezone(DevelopmentError):
    pass
