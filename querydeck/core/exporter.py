"""
Result Exporter

Serializes the page currently on screen into a spreadsheet-friendly
CSV document. Exporting only reads the page; it never touches the
cursor, the editor text or the stored result.
"""

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Sequence
import json
import logging
import time

from querydeck.core.exceptions import ExportError
from querydeck.core.session import PageResult

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = "text/csv;charset=utf-8"
DEFAULT_EXPORT_NAME = "query_results"


@dataclass(frozen=True)
class ExportArtifact:
    """A generated download: file name, body and MIME type."""
    filename: str
    content: str
    mime_type: str = CSV_MIME_TYPE
    row_count: int = 0

    def save(self, directory: str) -> Path:
        """Write the artifact into ``directory`` and return its path."""
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        target = path / self.filename
        target.write_text(self.content, encoding="utf-8")
        logger.info(f"Exported {self.row_count} rows to {target}")
        return target


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def quote_field(value: Any) -> str:
    """Quote one field; None becomes an empty field."""
    if value is None:
        return ""
    return '"' + _stringify(value).replace('"', '""') + '"'


def export_filename(table_name: Optional[str] = None, timestamp_ms: Optional[int] = None) -> str:
    """Build ``{table|query_results}_{epoch_millis}.csv``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{table_name or DEFAULT_EXPORT_NAME}_{timestamp_ms}.csv"


class ResultExporter:
    """Turns a page of results into a CSV document."""

    def __init__(self, delimiter: str = ","):
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter

    def to_csv(self, columns: Sequence[str], rows: Sequence[dict]) -> str:
        """
        Serialize rows as delimited text.

        The header row is the column names joined by the delimiter. Every
        data field is wrapped in double quotes with embedded quotes doubled.

        Raises:
            ExportError: There are no rows to export
        """
        if not rows:
            raise ExportError("No data available to export")

        lines = [self.delimiter.join(columns)]
        for row in rows:
            lines.append(self.delimiter.join(quote_field(row.get(column)) for column in columns))
        return "\n".join(lines)

    def export(
        self,
        page: Optional[PageResult],
        table_name: Optional[str] = None,
        timestamp_ms: Optional[int] = None,
    ) -> ExportArtifact:
        """Build the download artifact for a page."""
        if page is None or page.is_empty:
            raise ExportError("No data available to export")

        return ExportArtifact(
            filename=export_filename(table_name, timestamp_ms),
            content=self.to_csv(page.columns, page.rows),
            row_count=page.row_count,
        )
