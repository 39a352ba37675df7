from typing import List, Optional


class AppError(Exception):
    """Base error carrying the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = list(errors or [])


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ValidationFailed(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class PermissionDenied(AppError):
    status_code = 403
