"""
Lookahead Executor

Executes one page request with a single round trip. The statement sent
to the endpoint asks for one row more than the page holds; receiving
that extra row is how the executor knows another page exists, so no
separate COUNT query is ever issued.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional
import logging
import time

from querydeck.core.cursor import PageRequest
from querydeck.core.endpoint import QueryEndpoint, QueryResponse
from querydeck.core.exceptions import (
    EndpointError,
    ExecutionError,
    NavigationError,
)
from querydeck.core.session import PageResult

logger = logging.getLogger(__name__)

GENERIC_EXECUTION_ERROR = "Error executing query."


@dataclass(frozen=True)
class Execution:
    """Outcome of executing one page request."""
    request: PageRequest
    statement: str
    page: PageResult
    affected_rows: Optional[int] = None
    elapsed_ms: float = 0.0

    @property
    def is_mutation(self) -> bool:
        return self.affected_rows is not None


class LookaheadExecutor:
    """Runs page requests against an endpoint using the over-fetch-by-one technique."""

    def __init__(self, endpoint: QueryEndpoint):
        self.endpoint = endpoint

    async def execute(self, request: PageRequest, table_name: Optional[str] = None) -> Execution:
        """
        Execute a page request.

        Args:
            request: Page to fetch
            table_name: Selected table, used for header columns of an empty page

        Returns:
            Execution with at most ``request.page_size`` rows

        Raises:
            ExecutionError: The endpoint failed or rejected the statement
            NavigationError: The endpoint answered with something other than rows
                or an affected-row count
        """
        statement = request.lookahead_statement
        logger.debug(f"Executing SQL (lookahead {request.page_size}+1): {statement}")

        start_time = time.time()
        try:
            response = await self.endpoint.execute(statement)
        except EndpointError as e:
            logger.error(f"SQL execution error: {e}")
            raise ExecutionError(str(e) or GENERIC_EXECUTION_ERROR) from e
        elapsed_ms = (time.time() - start_time) * 1000

        affected = self._affected_rows(response)
        if affected is not None:
            logger.info(f"Statement affected {affected} rows in {elapsed_ms:.0f}ms")
            page = PageResult(page_index=request.page_index, page_size=request.page_size)
            return Execution(request, statement, page, affected_rows=affected, elapsed_ms=elapsed_ms)

        if not isinstance(response, list) or not all(isinstance(row, Mapping) for row in response):
            raise NavigationError("Endpoint response is not tabular")

        page = await self._build_page(request, response, table_name)
        logger.info(
            f"Page {request.page_index} returned {page.row_count} rows "
            f"(has_more={page.has_more}) in {elapsed_ms:.0f}ms"
        )
        return Execution(request, statement, page, elapsed_ms=elapsed_ms)

    @staticmethod
    def _affected_rows(response: QueryResponse) -> Optional[int]:
        if not isinstance(response, Mapping):
            return None
        for key in ("affectedRows", "affected_rows"):
            value = response.get(key)
            if isinstance(value, int) and not isinstance(value, bool):
                return value
        return None

    async def _build_page(self, request: PageRequest, rows: list, table_name: Optional[str]) -> PageResult:
        # Statements that are not SELECT run unmodified and have no next page
        has_more = request.is_pageable and len(rows) > request.page_size
        visible = tuple(dict(row) for row in rows[:request.page_size])

        if visible:
            columns = tuple(visible[0].keys())
        else:
            columns = tuple(await self._fallback_columns(table_name))

        return PageResult(
            rows=visible,
            columns=columns,
            has_more=has_more,
            page_index=request.page_index,
            page_size=request.page_size,
        )

    async def _fallback_columns(self, table_name: Optional[str]):
        """Schema columns so an empty grid still shows headers."""
        if not table_name:
            return []
        try:
            return await self.endpoint.get_columns(table_name)
        except EndpointError as e:
            logger.warning(f"Could not load columns for {table_name}: {e}")
            return []
