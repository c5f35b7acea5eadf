"""
QueryDeck - Main Entry Point

Command-line interface for the query console: an interactive terminal
rendering of the console plus one-shot commands for scripting.
"""

import asyncio
import sys
import logging
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from querydeck import __version__
from querydeck.config import QueryDeckConfig, create_default_config
from querydeck.core.console import QueryConsole
from querydeck.core.connection import LocalDatabaseEndpoint
from querydeck.core.endpoint import QueryEndpoint, QueryEndpointClient
from querydeck.core.exceptions import QueryDeckError
from querydeck.core.session import NotificationLevel, SessionState

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()

NOTIFICATION_STYLES = {
    NotificationLevel.INFO: "cyan",
    NotificationLevel.SUCCESS: "bold green",
    NotificationLevel.WARNING: "yellow",
    NotificationLevel.ERROR: "bold red",
}

HELP_TEXT = (
    "Type a SQL statement and press Enter to run it.\n\n"
    "  :next            next page\n"
    "  :prev            previous page\n"
    "  :refresh         reload schema and re-run the current query\n"
    "  :tables          list tables\n"
    "  :table NAME      open a table\n"
    "  :columns         columns of the selected table\n"
    "  :export [DIR]    save the current page as CSV\n"
    "  :clear           clear the editor\n"
    "  :help            show this help\n"
    "  :quit            leave the console"
)


def build_endpoint(config: QueryDeckConfig) -> QueryEndpoint:
    """Create the endpoint the console talks to."""
    if config.uses_local_database:
        return LocalDatabaseEndpoint(config.database)
    return QueryEndpointClient(config.endpoint)


def load_config(
    config_path: Optional[str],
    url: Optional[str],
    token: Optional[str],
    db_path: Optional[str],
    page_size: Optional[int],
    verbose: bool,
) -> QueryDeckConfig:
    """Build configuration from a YAML file and/or command-line options."""
    if config_path:
        config = QueryDeckConfig.from_yaml(config_path)
        if url:
            config.endpoint.base_url = url.rstrip("/")
        if token:
            config.endpoint.token = token
        if db_path:
            config.database = create_default_config(db_path=db_path).database
        if page_size:
            config.console.page_size = page_size
        config.verbose = config.verbose or verbose
        return config

    return create_default_config(
        base_url=url,
        token=token,
        db_path=db_path,
        page_size=page_size or 10,
        verbose=verbose,
    )


def render_page(state: SessionState) -> Table:
    """Render the last result as a rich table."""
    result = state.last_result
    title = state.summary()
    if state.cursor.request is not None:
        title += f"  |  {state.page_label()}"

    table = Table(title=title, show_header=True, header_style="bold cyan")
    columns = result.columns if result is not None else ()
    for column in columns:
        table.add_column(column)

    if result is not None:
        for row in result.rows:
            cells = []
            for value in result.column_values(row):
                if value is None:
                    cells.append(Text("null", style="dim italic"))
                else:
                    cells.append(Text(str(value)))
            table.add_row(*cells)

    caption = state.range_label()
    if state.cursor.can_go_next:
        caption += "  (more: :next)"
    table.caption = caption
    return table


def print_notifications(state: SessionState):
    for notification in state.drain_notifications():
        style = NOTIFICATION_STYLES[notification.level]
        console.print(Text(notification.message, style=style))


class InteractiveConsole:
    """
    Terminal front end for a QueryConsole.

    Reads one line at a time: colon commands drive navigation and export,
    anything else is run as SQL.
    """

    def __init__(self, config: QueryDeckConfig):
        self.config = config
        self.endpoint = build_endpoint(config)
        self.query_console = QueryConsole(self.endpoint, config.console)

    @property
    def state(self) -> SessionState:
        return self.query_console.state

    async def run(self):
        """Mount the console and process input until the user quits."""
        async with self.endpoint:
            await self.query_console.mount()
            self._show()

            while True:
                try:
                    line = await asyncio.to_thread(console.input, "[bold blue]sql>[/bold blue] ")
                except (EOFError, KeyboardInterrupt):
                    break
                if not await self.handle(line.strip()):
                    break

            self.query_console.unmount()

    async def handle(self, line: str) -> bool:
        """
        Handle one line of input.

        Returns:
            False when the user asked to quit
        """
        if not line:
            return True

        if not line.startswith(":"):
            self.query_console.set_query_text(line)
            await self.query_console.run()
            self._show()
            return True

        command, _, argument = line[1:].partition(" ")
        argument = argument.strip()

        if command in ("q", "quit", "exit"):
            return False
        elif command == "next":
            await self.query_console.next_page()
            self._show()
        elif command == "prev":
            await self.query_console.previous_page()
            self._show()
        elif command == "refresh":
            await self.query_console.refresh()
            self._show()
        elif command == "tables":
            self._show_tables()
        elif command == "table":
            if not argument:
                console.print("[yellow]Usage: :table NAME[/yellow]")
            else:
                await self.query_console.select_table(argument)
                self._show()
        elif command == "columns":
            self._show_columns()
        elif command == "export":
            self.query_console.export(argument or None)
            print_notifications(self.state)
        elif command == "clear":
            self.query_console.clear_query()
            console.print("[dim]Editor cleared[/dim]")
        elif command == "help":
            console.print(Panel(HELP_TEXT, title="Commands", border_style="blue"))
        else:
            console.print(f"[yellow]Unknown command :{command} (try :help)[/yellow]")
        return True

    def _show(self):
        if self.state.query_text:
            console.print(Text(self.state.query_text, style="dim"))
        if self.state.last_result is not None:
            console.print(render_page(self.state))
        print_notifications(self.state)

    def _show_tables(self):
        table = Table(title="System Tables", show_header=False)
        table.add_column("Table", style="cyan")
        for name in self.state.tables:
            marker = " *" if name == self.state.selected_table else ""
            table.add_row(f"{name}{marker}")
        console.print(table)

    def _show_columns(self):
        if not self.state.selected_table:
            console.print("[yellow]No table selected[/yellow]")
            return
        columns = ", ".join(self.state.table_columns) or "(none)"
        console.print(f"[bold]{self.state.selected_table} Columns:[/bold] {columns}")


async def _query_once(config: QueryDeckConfig, sql: str, export_dir: Optional[str]) -> bool:
    endpoint = build_endpoint(config)
    async with endpoint:
        query_console = QueryConsole(endpoint, config.console)
        result = await query_console.run(sql)
        if result is not None:
            console.print(render_page(query_console.state))
            if export_dir:
                query_console.export(export_dir)
        print_notifications(query_console.state)
        return result is not None


async def _list_tables(config: QueryDeckConfig):
    endpoint = build_endpoint(config)
    async with endpoint:
        query_console = QueryConsole(endpoint, config.console)
        tables = await query_console.load_tables()
        print_notifications(query_console.state)
        return tables


def connection_options(func):
    """Shared options selecting the endpoint."""
    func = click.option('--verbose', '-v', is_flag=True, help='Verbose output')(func)
    func = click.option('--page-size', '-n', type=click.IntRange(min=1), help='Rows per page')(func)
    func = click.option('--config', '-c', 'config_path', type=click.Path(exists=True),
                        help='YAML configuration file')(func)
    func = click.option('--db-path', '-p', type=click.Path(), help='Query a local SQLite database')(func)
    func = click.option('--token', envvar='QUERYDECK_TOKEN', help='Bearer token for the endpoint')(func)
    func = click.option('--url', '-u', help='Base URL of the dashboard API')(func)
    return func


def _prepare(config_path, url, token, db_path, page_size, verbose) -> QueryDeckConfig:
    config = load_config(config_path, url, token, db_path, page_size, verbose)
    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.WARNING)
    return config


# CLI Commands
@click.group()
@click.version_option(version=__version__, prog_name="QueryDeck")
def cli():
    """QueryDeck - Ad-hoc SQL console with lookahead pagination"""
    pass


@cli.command(name="console")
@connection_options
def console_command(url, token, db_path, config_path, page_size, verbose):
    """
    Open the interactive query console.

    Examples:

        querydeck console -u http://localhost:5001/api --token $TOKEN

        querydeck console -p ./data/tickets.db
    """
    try:
        config = _prepare(config_path, url, token, db_path, page_size, verbose)
        console.print(Panel(
            "[bold blue]QueryDeck[/bold blue]\n"
            "[dim]Type :help for commands[/dim]",
            border_style="blue"
        ))
        asyncio.run(InteractiveConsole(config).run())
    except (QueryDeckError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('sql')
@connection_options
@click.option('--export', '-e', 'export_dir', type=click.Path(), help='Save the page as CSV into DIR')
def query(sql, url, token, db_path, config_path, page_size, verbose, export_dir):
    """Run one statement and print its first page."""
    try:
        config = _prepare(config_path, url, token, db_path, page_size, verbose)
        ok = asyncio.run(_query_once(config, sql, export_dir))
    except (QueryDeckError, ValueError) as e:
        console.print(f"[bold red]✗ Error: {e}[/bold red]")
        sys.exit(1)
    if not ok:
        sys.exit(1)


@cli.command()
@connection_options
def tables(url, token, db_path, config_path, page_size, verbose):
    """List the tables exposed by the endpoint."""
    try:
        config = _prepare(config_path, url, token, db_path, page_size, verbose)
        names = asyncio.run(_list_tables(config))
    except (QueryDeckError, ValueError) as e:
        console.print(f"[bold red]✗ Error: {e}[/bold red]")
        sys.exit(1)
    for name in names:
        console.print(name)


@cli.command()
@click.option('--db-path', '-p', default='./data/tickets.db', type=click.Path(), help='Where to create the demo database')
@click.option('--page-size', '-n', default=10, type=click.IntRange(min=1), help='Rows per page')
def demo(db_path, page_size):
    """Create a demo ticket database and open the console on it."""
    from querydeck.demo.setup_tickets import setup_tickets_database

    setup_tickets_database(db_path)
    console.print(f"[green]Demo database created at {db_path}[/green]")
    config = _prepare(None, None, None, db_path, page_size, False)
    asyncio.run(InteractiveConsole(config).run())


@cli.command()
def version():
    """Show version information."""
    console.print(Panel(
        f"[bold]QueryDeck[/bold] v{__version__}\n\n"
        "Ad-hoc SQL console engine for reporting dashboards.\n\n"
        "Components:\n"
        "  • Query Rewriter\n"
        "  • Lookahead Executor\n"
        "  • Pagination Cursor\n"
        "  • Result Exporter",
        title="About",
        border_style="blue"
    ))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
