"""Shared fixtures: an in-memory endpoint that honours LIMIT and OFFSET."""

import asyncio
import re
from typing import Dict, List, Optional

import pytest

from querydeck.config import ConsoleSettings
from querydeck.core.console import QueryConsole
from querydeck.core.endpoint import QueryEndpoint
from querydeck.core.exceptions import EndpointError

_FROM = re.compile(r"\bFROM\s+(\w+)", re.IGNORECASE)
_LIMIT = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)
_OFFSET = re.compile(r"\bOFFSET\s+(\d+)", re.IGNORECASE)


class FakeEndpoint(QueryEndpoint):
    """
    Serves rows from dictionaries and records every statement.

    ``script`` holds canned responses (or exceptions) consumed before
    falling back to the table data. ``hold`` pauses the next execute call
    until the event is set.
    """

    def __init__(self, data: Dict[str, List[dict]], columns: Dict[str, List[str]]):
        self.data = data
        self.columns = columns
        self.executed: List[str] = []
        self.script: list = []
        self.hold: Optional[asyncio.Event] = None
        self.fail_tables = False
        self.fail_columns = False

    async def get_tables(self) -> List[str]:
        if self.fail_tables:
            raise EndpointError("connection refused")
        return list(self.data)

    async def get_columns(self, table_name: str) -> List[str]:
        if self.fail_columns:
            raise EndpointError("columns unavailable")
        return list(self.columns.get(table_name, []))

    async def execute(self, sql: str):
        self.executed.append(sql)
        if self.hold is not None:
            hold, self.hold = self.hold, None
            await hold.wait()

        if self.script:
            response = self.script.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        if not sql.strip().upper().startswith("SELECT"):
            return {"affectedRows": 3}

        table = _FROM.search(sql).group(1)
        rows = self.data[table]
        offset_match = _OFFSET.search(sql)
        limit_match = _LIMIT.search(sql)
        offset = int(offset_match.group(1)) if offset_match else 0
        end = offset + int(limit_match.group(1)) if limit_match else None
        return [dict(row) for row in rows[offset:end]]


def make_tickets(count: int) -> List[dict]:
    statuses = ["Open", "Closed", "Blocked"]
    return [
        {"id": i, "title": f"Ticket {i}", "status": statuses[i % 3], "assignee": None if i % 4 == 0 else f"user{i}"}
        for i in range(1, count + 1)
    ]


@pytest.fixture
def endpoint():
    """Endpoint with 25 tickets and an empty teams table."""
    return FakeEndpoint(
        data={"tickets": make_tickets(25), "teams": []},
        columns={
            "tickets": ["id", "title", "status", "assignee"],
            "teams": ["id", "name"],
        },
    )


@pytest.fixture
def settings(tmp_path):
    return ConsoleSettings(page_size=10, export_dir=str(tmp_path / "exports"))


@pytest.fixture
def query_console(endpoint, settings):
    return QueryConsole(endpoint, settings)


def messages(query_console) -> List[str]:
    return [n.message for n in query_console.state.notifications]


@pytest.fixture
def notification_messages():
    return messages
