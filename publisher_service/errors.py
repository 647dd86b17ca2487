"""
Domain errors raised by the service layer.

Each error carries the HTTP status it is rendered with; the app registers a
single exception handler for ServiceError.
"""

from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Forbidden"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InvalidCursorError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid cursor"
