"""Exception hierarchy for the query console."""

from typing import Optional


class QueryDeckError(Exception):
    """Base class for all console errors."""
    pass


class ValidationError(QueryDeckError):
    """A user action was rejected before any network call (e.g. empty query)."""
    pass


class EndpointError(QueryDeckError):
    """The remote endpoint could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(EndpointError):
    """The endpoint rejected the session token."""
    pass


class ExecutionError(QueryDeckError):
    """The endpoint rejected or failed the SQL statement."""
    pass


class SchemaFetchError(QueryDeckError):
    """Table or column listing failed."""
    pass


class NavigationError(QueryDeckError):
    """A paginated fetch returned a non-tabular response."""
    pass


class CursorStateError(QueryDeckError):
    """A page move was requested while its precondition does not hold."""
    pass


class ExportError(QueryDeckError):
    """The current page cannot be exported."""
    pass
