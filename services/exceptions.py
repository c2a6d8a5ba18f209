"""
services/exceptions.py

Domain errors raised by services and mapped to HTTP responses in middlewares/error_handler.py.
"""


class ServiceError(Exception):
    """Base class; `code` ends up in the JSON error body."""
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationFailed(ServiceError):
    status_code = 400
    code = "VALIDATION_FAILED"


class EntityNotFound(ServiceError):
    status_code = 404
    code = "NOT_FOUND"


class DeleteNotAllowed(ServiceError):
    status_code = 405
    code = "DELETE_NOT_ALLOWED"


class Conflict(ServiceError):
    status_code = 409
    code = "CONFLICT"


class InvalidTransition(Conflict):
    code = "INVALID_TRANSITION"


class FileTooLarge(ServiceError):
    status_code = 413
    code = "FILE_TOO_LARGE"


class UnsupportedFileType(ServiceError):
    status_code = 415
    code = "UNSUPPORTED_FILE_TYPE"


class FileStoreError(ServiceError):
    status_code = 502
    code = "FILE_STORE_ERROR"


class AIServiceError(ServiceError):
    """Generative text service failure (missing key, timeout, upstream error)."""
    status_code = 502
    code = "AI_SERVICE_ERROR"


class Unauthorized(ServiceError):
    """No usable session; `redirect` tells the client where to go next."""
    status_code = 401
    code = "LOGIN_REQUIRED"
    redirect = "/login"

    def __init__(self, message: str = "", code: str = None, redirect: str = None):
        super().__init__(message)
        if code:
            self.code = code
        if redirect:
            self.redirect = redirect


class Forbidden(ServiceError):
    status_code = 403
    code = "FORBIDDEN"
