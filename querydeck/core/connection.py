"""
Local Database Endpoint

Serves the query endpoint contract straight from a database through
SQLAlchemy, so the console can run against a local database without the
dashboard backend. Table and column listings come from the inspector;
statements that produce a result set (SELECT, WITH, PRAGMA, EXPLAIN,
VALUES) return row mappings and every other statement returns its
affected-row count.
"""

from typing import Optional, Any, List, Dict, Generator
from contextlib import contextmanager
import asyncio
import logging

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import SQLAlchemyError

from querydeck.config import DatabaseConfig, DatabaseType
from querydeck.core.endpoint import QueryEndpoint, QueryResponse
from querydeck.core.exceptions import EndpointError

logger = logging.getLogger(__name__)

SYSTEM_TABLE_PREFIXES = ('sqlite_', 'pg_', 'sql_', 'sys', 'information_schema')


class LocalDatabaseEndpoint(QueryEndpoint):
    """
    Query endpoint backed by a SQLAlchemy engine.

    Blocking database work runs in a worker thread so the console's
    event loop stays responsive.
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize the endpoint.

        Args:
            config: Database configuration object
        """
        self.config = config
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine with appropriate settings."""
        engine_kwargs = {"pool_pre_ping": True}
        if self.config.db_type == DatabaseType.SQLITE:
            # Statements run on worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs.update({"pool_size": 5, "max_overflow": 10})

        try:
            engine = create_engine(self.config.get_connection_string(), **engine_kwargs)
            logger.info(f"Created database engine for {self.config.db_type.value}")
            return engine
        except Exception as e:
            raise EndpointError(f"Failed to create engine: {e}")

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """
        Get a database connection as a context manager.

        Yields:
            Database connection
        """
        connection = None
        try:
            connection = self.engine.connect()
            yield connection
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            raise EndpointError(str(getattr(e, "orig", None) or e))
        finally:
            if connection:
                connection.close()

    def _list_tables(self) -> List[str]:
        try:
            tables = inspect(self.engine).get_table_names(schema=self.config.schema)
        except SQLAlchemyError as e:
            raise EndpointError(f"Failed to list tables: {e}")
        return sorted(t for t in tables if not t.lower().startswith(SYSTEM_TABLE_PREFIXES))

    def _list_columns(self, table_name: str) -> List[str]:
        try:
            columns = inspect(self.engine).get_columns(table_name, schema=self.config.schema)
        except SQLAlchemyError as e:
            raise EndpointError(f"Failed to list columns for {table_name}: {e}")
        return [column["name"] for column in columns]

    def _run(self, sql: str) -> QueryResponse:
        with self.get_connection() as conn:
            result = conn.execute(text(sql))
            if result.returns_rows:
                columns = list(result.keys())
                rows = [dict(zip(columns, row)) for row in result.fetchall()]
                # Row-returning writes (RETURNING) must not be rolled back on close
                conn.commit()
                return rows

            conn.commit()
            return {"affectedRows": max(result.rowcount, 0)}

    async def get_tables(self) -> List[str]:
        return await asyncio.to_thread(self._list_tables)

    async def get_columns(self, table_name: str) -> List[str]:
        return await asyncio.to_thread(self._list_columns, table_name)

    async def execute(self, sql: str) -> QueryResponse:
        if not sql.strip():
            raise EndpointError("SQL query cannot be empty")
        logger.debug(f"Executing locally: {sql}")
        return await asyncio.to_thread(self._run, sql)

    def get_database_info(self) -> Dict[str, Any]:
        """Get database server information."""
        info = {"type": self.config.db_type.value, "dialect": str(self.engine.dialect.name)}
        try:
            with self.get_connection() as conn:
                if self.config.db_type == DatabaseType.SQLITE:
                    info["version"] = conn.execute(text("SELECT sqlite_version()")).scalar()
                else:
                    info["version"] = conn.execute(text("SELECT version()")).scalar()
        except EndpointError as e:
            logger.warning(f"Could not get database version: {e}")
            info["version"] = "Unknown"
        return info

    async def close(self):
        """Dispose of the engine."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")
