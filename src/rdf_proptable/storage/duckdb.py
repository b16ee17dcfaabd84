"""
DuckDB engine boundary for rdf-proptable.

The property table, the predicate metadata table and the triple relation
all live in DuckDB. This module is the only place that talks to the
database:
- Executing SQL text produced by the translator
- Streaming large scans out as Polars frames (Arrow record batches)
- Writing Polars frames as full-replace tables

Every call runs on a cursor of its own, so one engine can be shared between
threads. DuckDB owns parallelism and memory management; callers submit
declarative work and read results back.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

import duckdb
import polars as pl

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote an identifier for DuckDB (embedded double quotes are doubled)."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a string literal for DuckDB (embedded single quotes are doubled)."""
    return "'" + value.replace("'", "''") + "'"


@dataclass
class SQLQueryResult:
    """Result of a SQL query execution."""
    columns: List[str]
    rows: List[List[Any]]
    row_count: int
    execution_time_ms: float


class DuckDBEngine:
    """
    Relational engine wrapper around a DuckDB database.

    Example:
        with DuckDBEngine() as engine:
            engine.replace_table("tripletable", frame)
            result = engine.execute("SELECT COUNT(*) FROM tripletable")
    """

    def __init__(
        self,
        database: str = ":memory:",
        read_only: bool = False,
        threads: Optional[int] = None,
    ):
        """
        Initialize the engine. The connection is opened lazily.

        Args:
            database: Database file path, or ":memory:"
            read_only: Open the database read-only (file databases only)
            threads: Worker thread count for DuckDB (engine default if None)
        """
        self._database = database
        self._read_only = read_only
        self._threads = threads
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._conn_lock = threading.Lock()

    @property
    def database(self) -> str:
        return self._database

    def _ensure_connection(self) -> duckdb.DuckDBPyConnection:
        """Ensure DuckDB connection is established."""
        with self._conn_lock:
            if self._conn is None:
                self._conn = duckdb.connect(self._database, read_only=self._read_only)
                if self._threads is not None:
                    self._conn.execute(f"SET threads TO {int(self._threads)}")
                logger.debug(f"Opened DuckDB connection to {self._database}")
            return self._conn

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        """A new cursor on the shared database, owned by one call."""
        return self._ensure_connection().cursor()

    def execute(
        self,
        sql: str,
        params: Optional[Union[Dict[str, Any], List[Any]]] = None,
    ) -> SQLQueryResult:
        """
        Execute a SQL statement and fetch all rows.

        Args:
            sql: SQL text
            params: Optional parameters for prepared statements

        Returns:
            SQLQueryResult with columns, rows, and timing

        Raises:
            duckdb.Error: If the SQL is invalid or fails
        """
        logger.debug(f"Executing SQL: {sql}")

        start = time.perf_counter()
        cursor = self._cursor()
        try:
            if params:
                result = cursor.execute(sql, params)
            else:
                result = cursor.execute(sql)

            columns = [desc[0] for desc in result.description] if result.description else []
            rows = [list(row) for row in result.fetchall()]
        except duckdb.Error as e:
            raise type(e)(f"SQL Error: {e}") from e
        finally:
            cursor.close()

        elapsed = (time.perf_counter() - start) * 1000

        return SQLQueryResult(
            columns=columns,
            rows=rows,
            row_count=len(rows),
            execution_time_ms=round(elapsed, 3),
        )

    def query_frame(self, sql: str) -> pl.DataFrame:
        """Execute a query and return the full result as a Polars DataFrame."""
        logger.debug(f"Executing SQL: {sql}")
        cursor = self._cursor()
        try:
            return cursor.execute(sql).pl()
        except duckdb.Error as e:
            raise type(e)(f"SQL Error: {e}") from e
        finally:
            cursor.close()

    def iter_frames(self, sql: str, batch_size: int) -> Iterator[pl.DataFrame]:
        """Stream a query result as Polars frames of at most batch_size rows."""
        logger.debug(f"Streaming SQL in batches of {batch_size}: {sql}")
        cursor = self._cursor()
        try:
            try:
                reader = cursor.execute(sql).to_arrow_reader(batch_size)
            except duckdb.Error as e:
                raise type(e)(f"SQL Error: {e}") from e
            for batch in reader:
                yield pl.from_arrow(batch)
        finally:
            cursor.close()

    def replace_table(self, name: str, frame: pl.DataFrame) -> int:
        """
        Write a frame as table `name`, replacing any previous content.

        Args:
            name: Target table name
            frame: Rows to write; its schema becomes the table schema

        Returns:
            Number of rows written
        """
        staging = f"__staging_{name}"
        cursor = self._cursor()
        try:
            cursor.register(staging, frame.to_arrow())
            cursor.execute(
                f"CREATE OR REPLACE TABLE {quote_identifier(name)} AS "
                f"SELECT * FROM {quote_identifier(staging)}"
            )
            cursor.unregister(staging)
        except duckdb.Error as e:
            raise type(e)(f"SQL Error: {e}") from e
        finally:
            cursor.close()
        logger.debug(f"Replaced table {name} with {len(frame)} rows")
        return len(frame)

    def table_exists(self, name: str) -> bool:
        result = self.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE lower(table_name) = lower(?)",
            [name],
        )
        return result.rows[0][0] > 0

    def get_schema(self, table_name: str) -> Dict[str, str]:
        """
        Get the schema (column types) for a table.

        Returns:
            Dict mapping column name to DuckDB type name
        """
        result = self.execute(f"DESCRIBE {quote_identifier(table_name)}")
        return {row[0]: row[1] for row in result.rows}

    def row_count(self, table_name: str) -> int:
        result = self.execute(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}")
        return result.rows[0][0]

    def close(self) -> None:
        """Close the DuckDB connection."""
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "DuckDBEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
