from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFound(ServiceError):
    """Unknown id, or a row the caller is not allowed to see."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class Forbidden(ServiceError):
    """Caller's role or ownership does not permit the requested action."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class InvalidTransition(ServiceError):
    """No workflow row exists for the current status and requested event."""

    def __init__(self, message: str = "Invalid status transition") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class Conflict(ServiceError):
    """Row changed underneath the request, or a uniqueness rule was violated."""

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class ValidationError(ServiceError):
    """Missing or malformed input detected by the service layer."""

    def __init__(self, message: str = "Invalid input") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


DATABASE_UNAVAILABLE_MESSAGE = "Database unavailable. Please try again later."


class DatabaseUnavailable(ServiceError):
    def __init__(self, message: str = DATABASE_UNAVAILABLE_MESSAGE) -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
