"""
Pagination Cursor

Tracks the page position of the console over a base query and plans the
request for every run, next, previous and refresh transition. Planning
never mutates the cursor: the console executes a planned request and
commits it only once the execution succeeded.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple
import logging

from querydeck.core import rewriter
from querydeck.core.exceptions import CursorStateError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageRequest:
    """
    One page of a base query.

    ``base_query`` carries no LIMIT or OFFSET clause; build instances with
    :meth:`for_query` so the clauses are stripped before storage.
    """
    base_query: str
    page_index: int = 0
    page_size: int = 10

    def __post_init__(self):
        if self.page_index < 0:
            raise ValueError(f"page_index must not be negative, got {self.page_index}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    @classmethod
    def for_query(cls, query_text: str, page_size: int) -> "PageRequest":
        return cls(base_query=rewriter.strip_paging(query_text), page_index=0, page_size=page_size)

    @property
    def offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def lookahead_statement(self) -> str:
        """Executable statement: one row more than the page holds, offset past earlier pages."""
        return rewriter.paginate(self.base_query, self.page_size + 1, self.offset)

    @property
    def display_statement(self) -> str:
        """Statement as shown in the editor, capped at the page size."""
        return rewriter.apply_limit(self.base_query, self.page_size)

    @property
    def is_pageable(self) -> bool:
        """Only SELECT statements get LIMIT/OFFSET clauses, so only they can be paged."""
        return rewriter.is_select(self.base_query)

    def at(self, page_index: int) -> "PageRequest":
        return replace(self, page_index=page_index)


class PaginationCursor:
    """
    Page position of a console over the query it last ran.

    State:
    - ``request``: the committed page request, None before the first run
    - ``has_more``: whether the endpoint returned a lookahead row
    - ``source_text``: the editor text the current base query came from
    """

    def __init__(self, page_size: int):
        """
        Initialize the cursor.

        Args:
            page_size: Default rows per page for statements without an explicit LIMIT
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.request: Optional[PageRequest] = None
        self.has_more = False
        self.source_text: Optional[str] = None

    @property
    def page_index(self) -> int:
        return self.request.page_index if self.request else 0

    @property
    def active_page_size(self) -> int:
        return self.request.page_size if self.request else self.page_size

    @property
    def can_go_next(self) -> bool:
        return self.request is not None and self.request.is_pageable and self.has_more

    @property
    def can_go_previous(self) -> bool:
        return self.request is not None and self.request.is_pageable and self.request.page_index > 0

    def is_current_for(self, query_text: str) -> bool:
        """Check whether the editor text is still the text this cursor was run from."""
        return self.request is not None and self.source_text == query_text

    def plan_run(self, query_text: str) -> Tuple[PageRequest, str]:
        """
        Plan the first page of a new query.

        A SELECT with an explicit ``LIMIT k`` pages by ``k``; any other
        SELECT pages by the console page size. A typed OFFSET is dropped
        from the editor text as well, since every run starts at page 0.

        Args:
            query_text: Statement typed by the user

        Returns:
            The page-0 request and the statement text to show in the editor
        """
        text = query_text.strip()
        if not text:
            raise ValidationError("SQL query cannot be empty")

        info = rewriter.analyze(text)
        page_size = self.page_size
        if info.has_explicit_limit:
            if info.explicit_limit < 1:
                raise ValidationError("LIMIT must be a positive integer")
            page_size = info.explicit_limit

        request = PageRequest.for_query(text, page_size)
        editor_text = rewriter.apply_offset(rewriter.apply_limit(text, page_size), 0)
        return request, editor_text

    def plan_next(self) -> PageRequest:
        if not self.can_go_next:
            raise CursorStateError("No more records found")
        return self.request.at(self.request.page_index + 1)

    def plan_previous(self) -> PageRequest:
        if not self.can_go_previous:
            raise CursorStateError("Already on the first page")
        return self.request.at(max(0, self.request.page_index - 1))

    def plan_current(self) -> PageRequest:
        if self.request is None:
            raise CursorStateError("No query has been run yet")
        return self.request

    def commit(self, request: PageRequest, has_more: bool, source_text: Optional[str] = None):
        """Adopt an executed request as the current page."""
        self.request = request
        self.has_more = has_more
        if source_text is not None:
            self.source_text = source_text
        logger.debug(
            f"Cursor at page {request.page_index} (size {request.page_size}, has_more={has_more})"
        )

    def mark_exhausted(self):
        """Record that no further pages exist without moving the cursor."""
        self.has_more = False

    def reset(self):
        self.request = None
        self.has_more = False
        self.source_text = None
