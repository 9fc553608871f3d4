"""
Domain error taxonomy.

Services raise these; app.py turns them into JSON error responses. Conflict and
invalid-state failures both surface as 400, matching the public API contract.
"""
from typing import List, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto a client-facing response."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(AppError):
    """Entity identifier does not resolve."""
    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedError(AppError):
    """Missing or invalid credential."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    """Authenticated, but wrong role or not the owner."""
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(AppError):
    """Capacity full, duplicate key, existing membership, blocking dependents."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(AppError):
    """Entity is not in a state that allows the operation."""
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(AppError):
    """Field-level validation failure; `errors` lists one message per field."""
    status_code = status.HTTP_400_BAD_REQUEST
