"""Card lifecycle errors"""

from cardvault.errors.base import ApplicationError
from cardvault.errors.common import NotFoundError


class CardNotFound(NotFoundError):
    error_code = 5001
    error = "Card not found"


class InvalidCredentials(ApplicationError):
    http_code = 401
    error_code = 5002
    error = "Card credentials are invalid"


class InvalidStateError(ApplicationError):
    http_code = 409
    error_code = 5003
    error = "Operation is not allowed in the current card state"


class ConflictError(ApplicationError):
    http_code = 500
    error_code = 5004
    error = "Could not allocate a unique card token"
    alert = True


class NotCardOwner(ApplicationError):
    http_code = 403
    error_code = 5005
    error = "Only the profile owner can manage its cards"


class PinAttemptsThrottled(ApplicationError):
    http_code = 429
    error_code = 5006
    error = "Too many failed attempts, try again later"
