"""Core modules for QueryDeck."""

from querydeck.core.console import QueryConsole
from querydeck.core.cursor import PageRequest, PaginationCursor
from querydeck.core.endpoint import QueryEndpoint, QueryEndpointClient
from querydeck.core.connection import LocalDatabaseEndpoint
from querydeck.core.executor import LookaheadExecutor
from querydeck.core.exporter import ResultExporter
from querydeck.core.session import PageResult, SessionState

__all__ = [
    "QueryConsole",
    "PageRequest",
    "PaginationCursor",
    "QueryEndpoint",
    "QueryEndpointClient",
    "LocalDatabaseEndpoint",
    "LookaheadExecutor",
    "ResultExporter",
    "PageResult",
    "SessionState",
]
