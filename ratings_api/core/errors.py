"""
Domain errors raised by the rating services.

Routers never catch these; ``main.py`` maps each one to a structured JSON
response so the client can tell "not a member" apart from a generic failure.
"""
from enum import Enum
from typing import Optional


class RatingsError(Exception):
    """Base class for all domain errors."""
    code = "ratings_error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class NotAMember(RatingsError):
    """The user does not hold a membership in the group."""
    code = "not_a_member"
    status_code = 403


class AlreadyExists(RatingsError):
    code = "already_exists"
    status_code = 409


class NotFound(RatingsError):
    """No row matched a scoped select, update or delete."""
    code = "not_found"
    status_code = 404


class InvalidDate(RatingsError):
    code = "invalid_date"
    status_code = 400


class StoreError(RatingsError):
    """Wraps failures of the underlying database or transaction."""
    code = "store_error"
    status_code = 503


class DeliveryFailure(str, Enum):
    PERMANENTLY_INVALID = "permanently_invalid"
    TRANSIENT = "transient"


class DeliveryError(RatingsError):
    """Outcome of a failed push send."""
    code = "delivery_error"
    status_code = 502

    def __init__(self, kind: DeliveryFailure, message: str = "", status: Optional[int] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status = status

    @property
    def permanently_invalid(self) -> bool:
        return self.kind == DeliveryFailure.PERMANENTLY_INVALID
