# =======================================================================================
# valtrack/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "ValTrackError", "InvalidRequestError", "AuthenticationError", "AccessDeniedError",
    "NotFoundError", "PatronNotFoundError", "ConflictError", "CapacityReachedError",
    "AlreadyCheckedInError", "NoLockerAvailableError", "LockersOccupiedError",
    "DocumentRejectedError", "ExternalServiceError", "TopologyValidator", "require_text",
]
