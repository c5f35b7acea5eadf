"""
QueryDeck - Ad-hoc Query Console Engine

Query rewriting and lookahead pagination for the ad-hoc SQL console of a
reporting dashboard: bounded result pages, next/previous navigation
without COUNT queries, and CSV export of the page on screen.
"""

__version__ = "1.0.0"
__author__ = "QueryDeck Team"

from querydeck.config import QueryDeckConfig
from querydeck.core.console import QueryConsole

__all__ = ["QueryDeckConfig", "QueryConsole", "__version__"]
