"""
Session State

Holds everything one console instance knows about its current view:
the table list, the selected table, the editor text, the page cursor,
the last materialized page and pending notifications. A session lives
exactly as long as its console and is never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from querydeck.core.cursor import PaginationCursor


class NotificationLevel(Enum):
    """Severity of a user-facing notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A dismissible message for the user."""
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class PageResult:
    """
    One materialized page of query results.

    Invariants:
    - ``len(rows) <= page_size``; the lookahead row is never exposed
    - ``columns`` is empty only when ``rows`` is empty
    """
    rows: Tuple[Dict[str, Any], ...] = ()
    columns: Tuple[str, ...] = ()
    has_more: bool = False
    page_index: int = 0
    page_size: int = 10

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def first_item(self) -> int:
        """1-based position of the first row across all pages."""
        return self.page_index * self.page_size + 1

    @property
    def last_item(self) -> int:
        return self.page_index * self.page_size + self.row_count

    def column_values(self, row: Dict[str, Any]) -> List[Any]:
        return [row.get(column) for column in self.columns]


@dataclass
class SessionState:
    """Mutable state owned by a single console instance."""
    cursor: PaginationCursor
    tables: List[str] = field(default_factory=list)
    table_columns: List[str] = field(default_factory=list)
    selected_table: Optional[str] = None
    query_text: str = ""
    last_result: Optional[PageResult] = None
    notifications: List[Notification] = field(default_factory=list)

    # Bumped whenever earlier responses must no longer be applied
    generation: int = 0
    pending: int = 0
    mounted: bool = False

    @property
    def busy(self) -> bool:
        return self.pending > 0

    def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(level=level, message=message)
        self.notifications.append(notification)
        return notification

    def dismiss(self, index: int) -> Notification:
        return self.notifications.pop(index)

    def drain_notifications(self) -> List[Notification]:
        drained, self.notifications = self.notifications, []
        return drained

    def summary(self) -> str:
        """Describe the displayed page, e.g. ``Displaying 10 records from tickets``."""
        result = self.last_result
        if result is None or result.is_empty:
            return "No data returned"
        text = f"Displaying {result.row_count} records"
        if self.selected_table:
            text += f" from {self.selected_table}"
        return text

    def page_label(self) -> str:
        return f"PAGE {self.cursor.page_index + 1}"

    def range_label(self) -> str:
        result = self.last_result
        if result is None or result.is_empty:
            return ""
        return f"Showing items {result.first_item} - {result.last_item}"
