"""Error taxonomy shared by the scheduling services.

Services raise these; the HTTP layer turns them into ``HTTPException``s.
"""

from fastapi import HTTPException, status


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(BookingError):
    """Malformed input such as a bad time string or an out-of-range weekday."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookingError):
    """Unknown id, or an id the caller does not own."""
    status_code = status.HTTP_404_NOT_FOUND


class ScheduleError(BookingError):
    """Requested time falls outside the doctor's weekly availability."""
    status_code = 422


class ConflictError(BookingError):
    """Slot already held by another active appointment."""
    status_code = status.HTTP_409_CONFLICT


class StateError(BookingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, current: str | None = None, required: tuple[str, ...] = ()):
        super().__init__(message)
        self.current = current
        self.required = required
