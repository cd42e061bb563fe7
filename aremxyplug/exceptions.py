class AremxyDBException(Exception):
    """Base exception for all aremxyplug DB related errors."""

    pass


class AremxyDBConfigurationError(AremxyDBException):
    """Exception raised when a database configuration is invalid or missing required variables."""

    pass


class AremxyDBConnectionError(AremxyDBException):
    """Exception raised when a connection to the database fails."""

    pass
