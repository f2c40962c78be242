# backend/core/exceptions.py
"""
Error taxonomy shared by the managers and the API layer

Each error carries the HTTP status and error code the API translates it to.
"""

from typing import Optional


class IPAdminError(Exception):
    """Base class for all domain errors"""
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class ValidationError(IPAdminError):
    """Malformed or inconsistent request; nothing was written"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundError(IPAdminError):
    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(IPAdminError):
    """Address (or name) already taken"""
    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, message: str, address: Optional[str] = None, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code or ("ADDRESS_CONFLICT" if address else None))
        self.address = address


class StorageError(IPAdminError):
    """Database unreachable or rejected a query; caller may retry"""
    status_code = 503
    error_code = "STORAGE_ERROR"
