"""
Typed application errors.

Services raise these instead of HTTPException so that the same code can be
called outside a request (engine tests, background tasks). The handlers in
`app.main` turn them into `{"detail": ...}` responses.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    """Malformed interval, interval outside working hours or missing field."""
    status_code = 422


class ConflictError(AppError):
    """Request collides with existing state (bookings, resolved vacations, concurrent writes)."""
    status_code = 409


class AuthenticationError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403
