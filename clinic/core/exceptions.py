"""Domain errors raised by services and mapped to HTTP responses in main.py."""
from fastapi import status


class ClinicError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"
    default_message = "Invalid request"


class NotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class Forbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Operation not allowed"


class TransferFailed(ClinicError):
    """One of the two writes of a superadmin role transfer failed.

    ``compensated`` tells whether the acting superadmin's role was restored.
    """
    status_code = status.HTTP_409_CONFLICT
    code = "transfer_failed"
    default_message = "Role transfer failed"

    def __init__(self, message: str = None, compensated: bool = True):
        super().__init__(message)
        self.compensated = compensated


class StoreError(ClinicError):
    code = "store_error"
    default_message = "Storage operation failed"
