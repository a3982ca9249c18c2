"""
Custom exceptions for the Institute CRM API.
Services raise these; main.py maps them onto HTTP responses.
"""
from fastapi import HTTPException, status


class CRMException(Exception):
    """Base exception for the CRM"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(CRMException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AlreadyExistsError(CRMException):
    """Resource already exists"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class UnauthorizedError(CRMException):
    """Authentication failed"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ForbiddenError(CRMException):
    """Access denied"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(CRMException):
    """Validation failed"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class StoreFailureError(CRMException):
    """Database unreachable or constraint violated; message is kept generic"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Something went wrong, please try again"):
        super().__init__(message)


# HTTP Exception helpers
def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )
