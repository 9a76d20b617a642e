"""Application error taxonomy.

Services raise these; the handlers registered in ``app.main`` render them
into the ``{"success": false, "message": ...}`` envelope.
"""


class AppError(Exception):
    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class UnsupportedType(ValidationError):
    message = "File type is not allowed"


class FileTooLarge(ValidationError):
    message = "File is too large"


class TooManyFiles(ValidationError):
    message = "Too many files in upload"


class Unauthorized(AppError):
    status_code = 401
    message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    message = "You do not have permission to do this"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class Conflict(AppError):
    status_code = 409
    message = "Conflicts with existing data"


class TooManyRequests(AppError):
    status_code = 429
    message = "Too many requests"


class InternalError(AppError):
    status_code = 500
    message = "Something went wrong, please try again"
