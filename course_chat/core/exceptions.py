# course_chat/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    def __init__(self, message: str = "Invalid input") -> None:
        super().__init__(message, status_code=422)


class UnauthenticatedError(AppError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, status_code=401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class PermissionDeniedError(ForbiddenError):
    """Raised when someone other than the sender edits or deletes a message."""

    def __init__(self, message: str = "Only the sender can change this message") -> None:
        super().__init__(message)


class TransientStoreError(AppError):
    def __init__(self, message: str = "Store temporarily unavailable") -> None:
        super().__init__(message, status_code=503)
