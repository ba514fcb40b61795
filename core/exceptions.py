"""
Domain errors raised by the habit mutation helpers and the store.

Each kind carries a stable `code` so callers can tell them apart without
matching on messages.
"""


class HabitError(Exception):
    code = "habit_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self)


class ValidationError(HabitError):
    """Malformed input."""
    code = "validation_error"


class FrozenDayError(HabitError):
    """Progress cannot be logged on a frozen day."""
    code = "frozen_day"


class ConflictError(HabitError):
    """The day already has qualifying progress or a freeze."""
    code = "conflict"


class QuotaExceededError(HabitError):
    """Monthly freeze quota already used."""
    code = "quota_exceeded"


class UnsupportedOperationError(HabitError):
    """Operation not supported for this habit."""
    code = "unsupported_operation"


class ConcurrentUpdateError(HabitError):
    """Habit kept changing underneath the update; try again."""
    code = "concurrent_update"
