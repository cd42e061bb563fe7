"""Database-specific exceptions for the aremxyplug project."""

from sqlalchemy.exc import IntegrityError

from aremxyplug.exceptions import AremxyDBException


class AremxyDBOperationError(AremxyDBException):
    """Base exception for database operation errors."""

    pass


class AremxyDBQueryError(AremxyDBOperationError):
    """Exception raised when a SELECT query fails to execute properly."""

    pass


class AremxyDBTransactionError(AremxyDBOperationError):
    """Exception raised when a write (insert, update, commit) fails."""

    pass


class AremxyDBIntegrityError(AremxyDBOperationError):
    """Exception raised when a database integrity constraint is violated.

    Wraps SQLAlchemy's IntegrityError so callers do not depend on SQLAlchemy types.
    """

    def __init__(self, message: str, original_error: IntegrityError | None = None):
        """Initialize the exception.

        Args:
            message: A descriptive error message
            original_error: The original IntegrityError that was raised
        """
        super().__init__(message)
        self.original_error = original_error
