# ============================================================
# MyBrowse - Terminal MySQL Browser
# core/mysql_manager.py — MySQL Connection & Operations Manager
# ============================================================

import time
from typing import Optional, List, Tuple
import mysql.connector
from mysql.connector import Error as MySQLError
from loguru import logger

from config import MySQLConfig, mysql_config
from core.cell_format import format_row
from utils.helpers import extract_use_database, quote_identifier, sanitize_sql


class QueryError(Exception):
    """A query sent by the browser itself failed."""

    def __init__(self, message: str, errno: Optional[int] = None, query: str = ""):
        super().__init__(message)
        self.message = message
        self.errno = errno
        self.query = query

    def __str__(self):
        if self.errno:
            return f"{self.errno}: {self.message}"
        return self.message


class QueryResult:
    """Structured result from a MySQL query execution."""

    def __init__(
        self,
        success: bool,
        query: str,
        columns: Optional[List[str]] = None,
        rows: Optional[List[Tuple]] = None,
        affected_rows: int = 0,
        last_insert_id: Optional[int] = None,
        error: Optional[str] = None,
        errno: Optional[int] = None,
        execution_ms: int = 0,
        query_type: str = "UNKNOWN",
        has_result_set: bool = False,
    ):
        self.success = success
        self.query = query
        self.columns = columns or []
        self.rows = rows or []
        self.affected_rows = affected_rows
        self.last_insert_id = last_insert_id
        self.error = error
        self.errno = errno
        self.execution_ms = execution_ms
        self.query_type = query_type
        self.has_result_set = has_result_set

    def as_strings(self) -> Tuple[List[str], List[List[str]]]:
        """Headers and rows with every cell already converted to text."""
        return [str(c) for c in self.columns], [format_row(r) for r in self.rows]

    def raise_for_error(self) -> "QueryResult":
        if not self.success:
            raise QueryError(self.error or "Unknown error", errno=self.errno, query=self.query)
        return self

    def __repr__(self):
        if self.success:
            return f"<QueryResult OK rows={len(self.rows)} time={self.execution_ms}ms>"
        return f"<QueryResult ERROR: {self.error}>"


class MySQLManager:
    """
    Owns the single MySQL connection used by the browser and exposes
    the handful of introspection queries the UI needs.
    """

    def __init__(self, config: Optional[MySQLConfig] = None):
        self.config = config or mysql_config
        self._connection = None
        self._cursor = None
        self._current_database: Optional[str] = None
        self._connected: bool = False
        self.last_error: Optional[str] = None

    # ── Connection Management ─────────────────────────────────

    def connect(self, database: Optional[str] = None) -> bool:
        """Establish connection to MySQL server."""
        database = database or self.config.resolved().default_database
        try:
            params = self.config.get_connection_params(database)
            self._connection = mysql.connector.connect(**params)
            self._cursor = self._connection.cursor(buffered=True)
            self._connected = True
            self._current_database = database
            self.last_error = None
            logger.info(f"Connected to MySQL at {params['host']}:{params['port']}")
            return True
        except (MySQLError, ValueError) as e:
            logger.error(f"MySQL connection failed: {e}")
            self.last_error = str(e)
            self._connected = False
            return False

    def disconnect(self):
        """Close the MySQL connection gracefully."""
        try:
            if self._cursor:
                self._cursor.close()
            if self._connection and self._connection.is_connected():
                self._connection.close()
            logger.info("Disconnected from MySQL")
        except MySQLError as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            self._connected = False
            self._connection = None
            self._cursor = None

    def is_connected(self) -> bool:
        """Check if connection is alive. Never reconnects."""
        if not self._connected or self._connection is None:
            return False
        try:
            return bool(self._connection.is_connected())
        except MySQLError:
            return False

    # ── Database Selection ────────────────────────────────────

    def use_database(self, database_name: str) -> QueryResult:
        """Switch to a specific database."""
        result = self.execute_query(f"USE {quote_identifier(database_name)}")
        if result.success:
            self._current_database = database_name
            logger.info(f"Switched to database: {database_name}")
        return result

    def get_current_database(self) -> Optional[str]:
        """Returns name of current database."""
        return self._current_database

    # ── Query Execution ───────────────────────────────────────

    def execute_query(self, query: str) -> QueryResult:
        """
        Execute one SQL statement and return a structured QueryResult.
        Failures are reported in the result, never raised.
        """
        if not self.is_connected():
            return QueryResult(
                success=False,
                query=query,
                error="Not connected to MySQL.",
            )

        query = sanitize_sql(query)
        query_type = self._detect_query_type(query)

        start_time = time.time()
        try:
            self._cursor.execute(query)

            if self._cursor.description:
                columns = [desc[0] for desc in self._cursor.description]
                rows = self._cursor.fetchall()
                elapsed = int((time.time() - start_time) * 1000)
                return QueryResult(
                    success=True,
                    query=query,
                    columns=columns,
                    rows=list(rows),
                    execution_ms=elapsed,
                    query_type=query_type,
                    has_result_set=True,
                )

            if query_type == "USE":
                self._current_database = extract_use_database(query) or self._current_database

            affected = self._cursor.rowcount
            last_id = self._cursor.lastrowid
            elapsed = int((time.time() - start_time) * 1000)
            return QueryResult(
                success=True,
                query=query,
                affected_rows=max(affected, 0),
                last_insert_id=last_id or 0,
                execution_ms=elapsed,
                query_type=query_type,
            )

        except MySQLError as e:
            elapsed = int((time.time() - start_time) * 1000)
            logger.error(f"Query failed: {e}\nQuery: {query}")
            return QueryResult(
                success=False,
                query=query,
                error=getattr(e, "msg", None) or str(e),
                errno=getattr(e, "errno", None),
                execution_ms=elapsed,
                query_type=query_type,
            )

    def _detect_query_type(self, query: str) -> str:
        """Detect the type of SQL query."""
        first_word = query.strip().split()[0].upper() if query.strip() else ""
        type_map = {
            "SELECT": "SELECT",
            "SHOW": "SHOW",
            "DESCRIBE": "DESCRIBE",
            "DESC": "DESCRIBE",
            "EXPLAIN": "EXPLAIN",
            "INSERT": "INSERT",
            "REPLACE": "INSERT",
            "UPDATE": "UPDATE",
            "DELETE": "DELETE",
            "CREATE": "CREATE",
            "DROP": "DROP",
            "ALTER": "ALTER",
            "TRUNCATE": "TRUNCATE",
            "USE": "USE",
            "SET": "SET",
            "BEGIN": "TRANSACTION",
            "COMMIT": "TRANSACTION",
            "ROLLBACK": "TRANSACTION",
        }
        return type_map.get(first_word, "UNKNOWN")

    # ── Database Introspection ────────────────────────────────

    def list_databases(self) -> List[str]:
        """Return list of all MySQL databases."""
        result = self.execute_query("SHOW DATABASES").raise_for_error()
        return [row[0] for row in result.as_strings()[1]]

    def list_tables(self, database: Optional[str] = None) -> List[str]:
        """Return list of tables in current or specified database."""
        db = database or self._current_database
        if not db:
            return []
        result = self.execute_query(f"SHOW TABLES FROM {quote_identifier(db)}").raise_for_error()
        return [row[0] for row in result.as_strings()[1]]

    def get_table_records(self, table_name: str) -> Tuple[List[str], List[List[str]]]:
        """Every row of a table, stringified."""
        result = self.execute_query(f"SELECT * FROM {quote_identifier(table_name)}")
        return result.raise_for_error().as_strings()

    def get_table_columns(self, table_name: str) -> Tuple[List[str], List[List[str]]]:
        """Column metadata (Field, Type, Null, Key, Default, Extra), stringified."""
        result = self.execute_query(f"SHOW COLUMNS FROM {quote_identifier(table_name)}")
        return result.raise_for_error().as_strings()

    def get_server_version(self) -> str:
        result = self.execute_query("SELECT VERSION()").raise_for_error()
        _, rows = result.as_strings()
        return rows[0][0] if rows else ""
