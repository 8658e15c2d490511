"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    kind = "Internal"

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    kind = "NotFound"

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    kind = "Unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ConflictException(AppException):
    """Conflict exception."""

    kind = "Conflict"

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidInputException(AppException):
    """Malformed or missing request fields."""

    kind = "InvalidInput"

    def __init__(self, message: str = "Invalid input"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class DoctorNotFoundException(NotFoundException):
    """Referenced doctor does not exist in the directory."""

    kind = "DoctorNotFound"

    def __init__(self, message: str = "Doctor not found"):
        """Initialize with 404 status code."""
        super().__init__(message)


class SlotUnavailableException(ConflictException):
    """Requested slot overlaps a live appointment of the same doctor."""

    kind = "SlotUnavailable"

    def __init__(self, message: str = "Appointment slot is already booked"):
        """Initialize with 409 status code."""
        super().__init__(message)


class NotFoundOrAlreadyFinalException(NotFoundException):
    """
    Target appointment is missing, owned by someone else, or no longer scheduled.

    The three cases are reported identically so that callers cannot probe for
    other patients' appointments.
    """

    kind = "NotFoundOrAlreadyFinal"

    def __init__(self, message: str = "Appointment not found or already cancelled"):
        """Initialize with 404 status code."""
        super().__init__(message)


class StaleStateException(AppException):
    """Conditional update matched no row in the expected state."""

    kind = "StaleState"

    def __init__(self, message: str = "Record is not in the expected state"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class UnavailableException(AppException):
    """Transient storage failure; the whole request may be retried."""

    kind = "Unavailable"

    def __init__(self, message: str = "Service temporarily unavailable, please retry"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)
