# errors.py
"""
Error taxonomy for the API.

Handlers raise these; app.py renders any ApiError as {"error": message}
with the class status code.
"""


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(ApiError):
    """Missing or malformed request fields."""
    status_code = 400
    message = "Bad request"


class ConflictError(ApiError):
    """A unique key (username, email, like or follow edge) already exists."""
    status_code = 400
    message = "Already exists"


class NotFoundError(ApiError):
    status_code = 404
    message = "Not found"


class AuthError(ApiError):
    status_code = 401
    message = "Invalid credentials"


class UpstreamError(ApiError):
    """The image host failed or rejected the upload."""
    status_code = 500
    message = "Image upload failed"


class InternalError(ApiError):
    status_code = 500
