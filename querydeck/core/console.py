"""
Query Console

Orchestrates the query console of the reporting dashboard: table
selection, running queries, page navigation, refresh and export. Every
user action is handled here end to end; failures are turned into
notifications on the session instead of propagating to the view.
"""

from dataclasses import replace
from pathlib import Path
from typing import Optional, List
import logging

from querydeck.config import ConsoleSettings
from querydeck.core import rewriter
from querydeck.core.cursor import PageRequest, PaginationCursor
from querydeck.core.endpoint import QueryEndpoint
from querydeck.core.exceptions import (
    EndpointError,
    ExecutionError,
    ExportError,
    NavigationError,
    SchemaFetchError,
    ValidationError,
)
from querydeck.core.executor import Execution, LookaheadExecutor
from querydeck.core.exporter import ExportArtifact, ResultExporter
from querydeck.core.session import NotificationLevel, PageResult, SessionState

logger = logging.getLogger(__name__)

SCHEMA_ERROR_MESSAGE = (
    "Failed to load database schema. Ensure the backend is running and you are logged in."
)


class QueryConsole:
    """
    One mounted query console.

    The console owns its session state exclusively. Only one execution
    may be outstanding: Run, Next, Previous, Refresh and Export are refused
    while the session is busy. Selecting a table supersedes whatever is in
    flight; responses dispatched under an older session generation are
    discarded on arrival.
    """

    def __init__(
        self,
        endpoint: QueryEndpoint,
        settings: Optional[ConsoleSettings] = None,
        exporter: Optional[ResultExporter] = None,
    ):
        """
        Initialize the console.

        Args:
            endpoint: Endpoint used for schema listing and query execution
            settings: Console preferences (page size, export directory)
            exporter: Exporter for the current page
        """
        self.endpoint = endpoint
        self.settings = settings or ConsoleSettings()
        self.executor = LookaheadExecutor(endpoint)
        self.exporter = exporter or ResultExporter(self.settings.delimiter)
        self.state = self._new_session()

    def _new_session(self) -> SessionState:
        return SessionState(cursor=PaginationCursor(self.settings.page_size))

    @property
    def page_size(self) -> int:
        return self.settings.page_size

    @property
    def busy(self) -> bool:
        return self.state.busy

    # Lifecycle

    async def mount(self) -> None:
        """Load the table list and open the first table if none is selected."""
        self.state.mounted = True
        tables = await self.load_tables()
        if tables and self.settings.auto_select_first_table and not self.state.selected_table:
            await self.select_table(tables[0])

    def unmount(self) -> None:
        """Discard the session; responses still in flight will be ignored."""
        self.state.generation += 1
        self.state.mounted = False
        self.state = self._new_session()
        logger.debug("Console unmounted, session discarded")

    # Editor

    def set_query_text(self, text: str) -> None:
        self.state.query_text = text

    def clear_query(self) -> None:
        self.state.query_text = ""

    # Schema

    async def _fetch_schema(self, fetch, *args) -> List[str]:
        try:
            return await fetch(*args)
        except EndpointError as e:
            raise SchemaFetchError(str(e)) from e

    async def load_tables(self) -> List[str]:
        """Refresh the table list. A failure leaves an empty list and a notification."""
        state = self.state
        generation = state.generation
        try:
            tables = await self._fetch_schema(self.endpoint.get_tables)
        except SchemaFetchError as e:
            logger.error(f"Database viewer error: {e}")
            if self._is_current(state, generation):
                state.tables = []
                state.notify(NotificationLevel.ERROR, SCHEMA_ERROR_MESSAGE)
            return []

        if self._is_current(state, generation):
            state.tables = tables
            logger.info(f"Loaded {len(tables)} tables")
        return tables

    async def _load_table_columns(self, state: SessionState, table_name: str) -> None:
        generation = state.generation
        try:
            columns = await self._fetch_schema(self.endpoint.get_columns, table_name)
        except SchemaFetchError as e:
            logger.error(f"Error fetching table columns for {table_name}: {e}")
            if self._is_current(state, generation):
                state.table_columns = []
                state.notify(NotificationLevel.WARNING, f"Could not load columns for {table_name}")
            return

        if self._is_current(state, generation):
            state.table_columns = columns

    async def select_table(self, table_name: str) -> Optional[PageResult]:
        """
        Switch to a table and show its first page.

        The editor text, selected table and cursor are reset together.
        Any execution still in flight for the previous selection is
        superseded.
        """
        state = self.state
        state.generation += 1
        state.selected_table = table_name
        state.table_columns = []
        state.cursor.reset()
        state.query_text = rewriter.table_query(table_name, self.page_size)

        generation = state.generation
        result = await self._run_text(state, state.query_text)
        if self._is_current(state, generation):
            await self._load_table_columns(state, table_name)
        return result

    # Execution

    def _is_current(self, state: SessionState, generation: int) -> bool:
        return state is self.state and state.generation == generation

    def _refuse_if_busy(self) -> bool:
        if self.state.busy:
            self.state.notify(NotificationLevel.WARNING, "A query is already running")
            return True
        return False

    async def _execute(self, state: SessionState, request: PageRequest) -> Optional[Execution]:
        """Run a request; return None when it failed or went stale."""
        generation = state.generation
        state.pending += 1
        try:
            execution = await self.executor.execute(request, state.selected_table)
        except NavigationError as e:
            logger.warning(f"Endpoint returned a non-tabular response: {e}")
            if self._is_current(state, generation):
                state.cursor.mark_exhausted()
                if state.last_result is not None:
                    state.last_result = replace(state.last_result, has_more=False)
                state.notify(NotificationLevel.INFO, "No more records found")
            return None
        except ExecutionError as e:
            if self._is_current(state, generation):
                state.notify(NotificationLevel.ERROR, str(e))
            return None
        finally:
            state.pending -= 1

        if not self._is_current(state, generation):
            logger.debug(f"Discarding stale response for: {execution.statement}")
            return None
        return execution

    async def _run_text(self, state: SessionState, text: str) -> Optional[PageResult]:
        try:
            request, editor_text = state.cursor.plan_run(text)
        except ValidationError as e:
            state.notify(NotificationLevel.ERROR, str(e))
            return None

        execution = await self._execute(state, request)
        if execution is None:
            return None

        page = execution.page
        state.cursor.commit(request, page.has_more, source_text=editor_text)
        state.query_text = editor_text
        state.last_result = page

        if execution.is_mutation:
            state.notify(
                NotificationLevel.SUCCESS,
                f"Execution successful. {execution.affected_rows} rows affected.",
            )
        elif page.is_empty:
            state.notify(NotificationLevel.INFO, "Query executed successfully but returned 0 rows")
        else:
            state.notify(NotificationLevel.SUCCESS, f"Query returned {page.row_count} rows")
        return page

    def _apply_page(self, state: SessionState, execution: Execution) -> PageResult:
        state.cursor.commit(execution.request, execution.page.has_more)
        state.last_result = execution.page
        return execution.page

    async def run(self, query_text: Optional[str] = None) -> Optional[PageResult]:
        """
        Run a query from page 0.

        Every run starts a fresh cursor, so a hand-edited query never
        continues the paging of the previous one.

        Args:
            query_text: Statement to run; defaults to the editor text

        Returns:
            The first page, or None when the run was refused or failed
        """
        if self._refuse_if_busy():
            return None
        text = self.state.query_text if query_text is None else query_text
        return await self._run_text(self.state, text)

    async def next_page(self) -> Optional[PageResult]:
        """Advance one page. Only possible while the last page reported more rows."""
        if self._refuse_if_busy():
            return None
        state = self.state
        if not state.cursor.can_go_next:
            state.notify(NotificationLevel.INFO, "No more records found")
            return None

        execution = await self._execute(state, state.cursor.plan_next())
        if execution is None:
            return None
        return self._apply_page(state, execution)

    async def previous_page(self) -> Optional[PageResult]:
        if self._refuse_if_busy():
            return None
        state = self.state
        if not state.cursor.can_go_previous:
            state.notify(NotificationLevel.INFO, "Already on the first page")
            return None

        execution = await self._execute(state, state.cursor.plan_previous())
        if execution is None:
            return None
        return self._apply_page(state, execution)

    async def refresh(self) -> Optional[PageResult]:
        """
        Reload the schema and re-execute the current query.

        If the editor text is unchanged since it was run, the current page
        is fetched again at the same page index. An edited text is run as
        a new query from page 0.
        """
        if self._refuse_if_busy():
            return None
        state = self.state
        generation = state.generation
        result = None
        refreshed = True

        state.pending += 1
        try:
            await self.load_tables()
            if not self._is_current(state, generation):
                return None
            if state.selected_table:
                await self._load_table_columns(state, state.selected_table)

            if state.query_text.strip():
                if state.cursor.is_current_for(state.query_text):
                    execution = await self._execute(state, state.cursor.plan_current())
                    if execution is not None:
                        result = self._apply_page(state, execution)
                else:
                    result = await self._run_text(state, state.query_text)
                refreshed = result is not None
        finally:
            state.pending -= 1

        if refreshed and self._is_current(state, generation):
            state.notify(NotificationLevel.SUCCESS, "Data refreshed")
        return result

    # Export

    def build_export(self) -> Optional[ExportArtifact]:
        """Build the CSV download for the current page without writing it anywhere."""
        if self._refuse_if_busy():
            return None
        try:
            return self.exporter.export(self.state.last_result, self.state.selected_table)
        except ExportError as e:
            self.state.notify(NotificationLevel.ERROR, str(e))
            return None

    def export(self, directory: Optional[str] = None) -> Optional[Path]:
        """Write the current page as CSV into ``directory`` (default: the export dir)."""
        artifact = self.build_export()
        if artifact is None:
            return None

        try:
            path = artifact.save(directory or self.settings.export_dir)
        except OSError as e:
            logger.error(f"Export error: {e}")
            self.state.notify(NotificationLevel.ERROR, "Failed to export data")
            return None

        self.state.notify(NotificationLevel.SUCCESS, f"Exported {artifact.row_count} rows to {path}")
        return path
