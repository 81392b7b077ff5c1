from typing import Optional, Dict, Any


class MoneyNotesException(Exception):
    """Base exception for the Money Notes backend."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(MoneyNotesException):
    """Raised when a request parameter is malformed or fails a business rule."""

    pass


class ResourceNotFoundError(MoneyNotesException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedError(MoneyNotesException):
    """Raised when user doesn't have permission for an action."""

    pass


class ConflictError(MoneyNotesException):
    """Raised when an action conflicts with existing state (e.g. joining a group twice)."""

    pass


class StorageError(MoneyNotesException):
    """Raised when the backing store fails while serving a request."""

    pass
