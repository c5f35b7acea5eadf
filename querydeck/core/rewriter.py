"""
Query Rewriter

Surface-level text rewriting of user SQL for paging. This is not a
parser: it recognises a leading SELECT keyword, the first
``LIMIT <integer>`` clause, the first ``OFFSET <integer>`` clause and a
trailing semicolon. Nested or subquery limits are out of reach; the
first occurrence in the text is the one that gets rewritten. A LIMIT
inside a subquery is therefore stripped by strip_paging, leaving an
unbounded base query that pages by that subquery limit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import re


_SELECT_PATTERN = re.compile(r"^\s*SELECT", re.IGNORECASE)
_LIMIT_PATTERN = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)
_STRIP_LIMIT_PATTERN = re.compile(r"\s+LIMIT\s+\d+", re.IGNORECASE)
_STRIP_OFFSET_PATTERN = re.compile(r"\s+OFFSET\s+\d+", re.IGNORECASE)
_TRAILING_SEMICOLON = re.compile(r";\s*$")


class StatementKind(Enum):
    """Statement classification used for rewriting decisions."""
    SELECT = "select"
    OTHER = "other"


@dataclass(frozen=True)
class QueryInfo:
    """Attributes derived from a single SQL statement."""
    kind: StatementKind
    explicit_limit: Optional[int] = None

    @property
    def is_select(self) -> bool:
        return self.kind == StatementKind.SELECT

    @property
    def has_explicit_limit(self) -> bool:
        return self.explicit_limit is not None


def statement_kind(sql: str) -> StatementKind:
    """Classify a statement by its leading keyword."""
    if _SELECT_PATTERN.match(sql):
        return StatementKind.SELECT
    return StatementKind.OTHER


def is_select(sql: str) -> bool:
    return statement_kind(sql) == StatementKind.SELECT


def find_limit(sql: str) -> Optional[int]:
    """Return the value of the first LIMIT clause, or None."""
    match = _LIMIT_PATTERN.search(sql)
    if match is None:
        return None
    return int(match.group(1))


def analyze(sql: str) -> QueryInfo:
    """Derive the kind and explicit limit of a statement."""
    kind = statement_kind(sql)
    explicit_limit = find_limit(sql) if kind == StatementKind.SELECT else None
    return QueryInfo(kind=kind, explicit_limit=explicit_limit)


def _strip_terminator(sql: str) -> str:
    return _TRAILING_SEMICOLON.sub("", sql).rstrip()


def apply_limit(sql: str, limit: int) -> str:
    """
    Cap a SELECT statement at ``limit`` rows.

    An existing LIMIT has only its numeric literal replaced; every other
    character of the statement is kept as-is. Without one, a single
    trailing semicolon is dropped and `` LIMIT n`` is appended.
    Non-SELECT statements are returned untouched.

    Args:
        sql: Statement to rewrite
        limit: Row cap to apply

    Returns:
        The rewritten statement
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")
    if not is_select(sql):
        return sql

    match = _LIMIT_PATTERN.search(sql)
    if match:
        return f"{sql[:match.start(1)]}{limit}{sql[match.end(1):]}"

    return f"{_strip_terminator(sql)} LIMIT {limit}"


def apply_offset(sql: str, offset: int) -> str:
    """
    Set the OFFSET of a SELECT statement.

    Any existing OFFSET clause is removed first. A new clause is appended
    only for a positive offset, so an offset of zero leaves the statement
    without one. Non-SELECT statements are returned untouched.
    """
    if offset < 0:
        raise ValueError(f"offset must not be negative, got {offset}")
    if not is_select(sql):
        return sql

    sql = _STRIP_OFFSET_PATTERN.sub("", sql, count=1)
    if offset == 0:
        return sql
    return f"{_strip_terminator(sql)} OFFSET {offset}"


def strip_paging(sql: str) -> str:
    """
    Reduce a statement to its base query.

    Removes the first LIMIT and OFFSET clauses and the trailing semicolon.
    Non-SELECT statements are returned untouched.
    """
    if not is_select(sql):
        return sql

    sql = _STRIP_LIMIT_PATTERN.sub("", sql, count=1)
    sql = _STRIP_OFFSET_PATTERN.sub("", sql, count=1)
    return _strip_terminator(sql)


def paginate(sql: str, limit: int, offset: int = 0) -> str:
    """Apply both a row cap and an offset to a statement."""
    return apply_offset(apply_limit(sql, limit), offset)


def table_query(table_name: str, limit: int) -> str:
    """Get a SELECT query with row limit for a table."""
    return f"SELECT * FROM {table_name} LIMIT {limit}"
