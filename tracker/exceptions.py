from fastapi import status


class AppError(Exception):
    """Base class for errors rendered by the top-level handler in main.py."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class DependencyError(AppError):
    """An external collaborator (object storage, mail transport) failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "External service failure"


class EmailDeliveryError(DependencyError):
    default_message = "Email could not be sent"


class StorageError(DependencyError):
    default_message = "Object storage request failed"
