"""Application error taxonomy.

Handlers raise these; ``app.main`` renders every one of them as
``{"error": message}`` with the class status code.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing/empty required field or out-of-range value."""

    status_code = 400


class ConflictError(AppError):
    """Request is well formed but clashes with stored state."""

    status_code = 400


class DuplicateError(ConflictError):
    """Unique value (e.g. client email) already taken."""


class NotFoundError(AppError):
    status_code = 404


class StoreError(AppError):
    """Underlying database failure."""

    status_code = 500
