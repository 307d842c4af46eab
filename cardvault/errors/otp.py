"""One-time code request and verification errors"""

from cardvault.errors.base import ApplicationError


class NoDestination(ApplicationError):
    http_code = 400
    error_code = 6001
    error = "No address available for the selected channel"


class DeliveryError(ApplicationError):
    http_code = 502
    error_code = 6002
    error = "Code could not be delivered, request a new one"


class NoChallenge(ApplicationError):
    http_code = 400
    error_code = 6003
    error = "No valid code for this card, request a new one"


class AttemptsExhausted(ApplicationError):
    http_code = 429
    error_code = 6004
    error = "Too many wrong codes, request a new one"


class WrongCode(ApplicationError):
    http_code = 400
    error_code = 6005
    error = "Code is incorrect"
