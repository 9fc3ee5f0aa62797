# =======================================================================================
# valtrack/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class ValTrackError(Exception):
    """Base exception for the tracking system."""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

class InvalidRequestError(ValTrackError):
    """Raised when required input is missing or malformed."""
    status_code = 400

class AuthenticationError(ValTrackError):
    """Raised when login credentials are invalid."""
    status_code = 401

class AccessDeniedError(ValTrackError):
    """Raised when a patron or profile is not allowed to proceed."""
    status_code = 403

class NotFoundError(ValTrackError):
    """Raised when a row is not found."""
    status_code = 404

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found" if identifier is None else f"{resource} {identifier} not found"
        super().__init__(message)

class PatronNotFoundError(NotFoundError):
    def __init__(self, identifier=None):
        ValTrackError.__init__(self, "Patron not found")
        self.identifier = identifier

class ConflictError(ValTrackError):
    """Raised when a write would violate a uniqueness or state rule."""
    status_code = 409

class CapacityReachedError(ConflictError):
    """Raised when an area is full."""

class AlreadyCheckedInError(ConflictError):
    """Raised when a patron is active in a different area."""

class NoLockerAvailableError(ConflictError):
    """Raised when every locker of an area is occupied."""

class LockersOccupiedError(ConflictError):
    """Raised when a locker reconfiguration would drop occupied lockers."""

class DocumentRejectedError(ValTrackError):
    """Raised when an uploaded ID or selfie fails validation."""
    status_code = 422

class ExternalServiceError(ValTrackError):
    """Raised when the OCR or address service fails."""
    status_code = 502
