# Domain errors raised below the HTTP layer (storage / conversation engine).
# main.py maps each class to a status code and a uniform {"detail", "field"} body.
from typing import Optional

from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"detail": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
