class ApiError(Exception):
    """Base error rendered as a ``{statusCode, message, success}`` envelope."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class UploadError(ApiError):
    status_code = 500
    default_message = "Error while uploading file"
