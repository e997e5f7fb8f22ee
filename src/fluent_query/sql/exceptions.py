"""Query builder exceptions.

Only caller misuse raises. Execution failures reported by the database
executor surface as sentinel return values (``False`` / ``None``) from the
execution helpers on ``Query``.
"""

from typing import Any, Dict, Optional


class QueryError(Exception):
    """Base exception for all query builder errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to structured dict for logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            **self.details,
        }


class ConfigurationError(QueryError):
    """Raised when the builder is used in a way that can never succeed.

    Examples: executing without a database executor, calling ``returns()``
    with no columns, rendering a statement without a target table.
    """

    pass
