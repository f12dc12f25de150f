# ============================================================
# MyBrowse - Terminal MySQL Browser
# core/session.py — Browser State (databases, tables, tabs, grids)
# ============================================================
#
# The session is the one mutable owner of everything the screen
# shows. Front ends call into it; it calls MySQLManager for data and
# hands stringified result sets to the two TableGrids.
# ============================================================

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from loguru import logger

from core.grid import DataShapeError, Grid, NavigationIntent, SwitchResultSet, TableGrid
from core.mysql_manager import MySQLManager, QueryError, QueryResult
from core.query_executor import QueryExecutor
from utils.helpers import extract_use_database, parse_mysql_version

QUERY_RESULT_NAME = "query"


class TableMode(Enum):
    RECORDS = 0
    COLUMNS = 1


class InputMode(Enum):
    NORMAL = "normal"
    EDITING = "editing"
    CHANGE_DB = "change_db"


@dataclass(frozen=True)
class TableData:
    """Records + column metadata of one table, already validated."""
    records: Grid
    columns: Grid


class BrowserSession:
    """
    Holds the browsing state and applies user actions to it.

    Errors from MySQL are written to `output` (the SQL output panel)
    and logged; the grids keep their previous contents.
    """

    def __init__(self, mysql_manager: MySQLManager, executor: Optional[QueryExecutor] = None):
        self.mysql = mysql_manager
        self.executor = executor or QueryExecutor(mysql_manager)

        self.databases: List[str] = []
        self.server_version: str = ""
        self.current_database: Optional[str] = None
        self.tables: List[str] = []
        self.current_table: Optional[str] = None

        self.records = TableGrid("Records")
        self.columns = TableGrid("Columns")
        self.table_mode = TableMode.RECORDS
        self.input_mode = InputMode.NORMAL

        self.sql_input: str = ""
        self.output: List[str] = [""]

    # ── Loading ───────────────────────────────────────────────

    def load(self, database: Optional[str] = None, table: Optional[str] = None) -> bool:
        """Initial population: databases, tables of one database, one table."""
        try:
            self.databases = self.mysql.list_databases()
            self.server_version = parse_mysql_version(self.mysql.get_server_version())
        except QueryError as e:
            self._fail(e)
            return False

        target = database or self.mysql.get_current_database()
        if not target and self.databases:
            target = self.databases[0]
        if not target:
            return True

        if not self.change_database(target):
            return False
        if table and table != self.current_table:
            return self.select_table(table)
        return True

    def change_database(self, name: str) -> bool:
        result = self.mysql.use_database(name)
        if not result.success:
            self.set_output(self.executor.format_output_lines(result))
            return False
        self.current_database = name
        logger.info(f"Browsing database: {name}")
        return self.reload_tables()

    def reload_tables(self) -> bool:
        try:
            self.tables = self.mysql.list_tables(self.current_database)
        except QueryError as e:
            self._fail(e)
            return False

        if not self.tables:
            self.current_table = None
            self.records.load(Grid(name=""))
            self.columns.load(Grid(name=""))
            return True
        return self.select_table(self.tables[0])

    def fetch_table(self, name: str) -> TableData:
        """
        Query records and columns of `name`.

        Raises:
            QueryError: a query failed.
            DataShapeError: the driver returned ragged rows.
        """
        record_headers, record_rows = self.mysql.get_table_records(name)
        column_headers, column_rows = self.mysql.get_table_columns(name)
        return TableData(
            records=Grid.create(name, record_headers, record_rows),
            columns=Grid.create(name, column_headers, column_rows),
        )

    def show_table(self, name: str, data: TableData) -> None:
        self.records.load(data.records)
        self.columns.load(data.columns)
        self.current_table = name
        logger.info(
            f"Showing table {name}: {data.records.height} rows x {data.records.width} columns"
        )

    def select_table(self, name: str) -> bool:
        try:
            data = self.fetch_table(name)
        except (QueryError, DataShapeError) as e:
            self._fail(e)
            return False
        self.show_table(name, data)
        return True

    # ── Grid navigation ───────────────────────────────────────

    @property
    def active_grid(self) -> TableGrid:
        if self.table_mode == TableMode.COLUMNS:
            return self.columns
        return self.records

    def switch_tab(self, mode: TableMode) -> None:
        self.table_mode = mode

    def move(self, intent: NavigationIntent) -> None:
        self.active_grid.move(intent)

    def apply(self, intent) -> None:
        """Route a navigation intent or a result-set switch to the active grid."""
        if isinstance(intent, SwitchResultSet):
            self.active_grid.replace(intent.name, intent.headers, intent.rows)
        else:
            self.move(intent)

    # ── SQL editor ────────────────────────────────────────────

    def execute_sql(self, sql: Optional[str] = None) -> QueryResult:
        """
        Run the SQL input. Result sets replace the Records grid and
        bring the Records tab forward; other statements only report.
        """
        sql = (sql if sql is not None else self.sql_input).strip()
        result = self.executor.execute(sql)
        self.set_output(self.executor.format_output_lines(result))
        if not result.success:
            return result

        if result.has_result_set:
            headers, rows = result.as_strings()
            try:
                self.records.replace(QUERY_RESULT_NAME, headers, rows)
            except DataShapeError as e:
                self._fail(e)
                return result
            self.table_mode = TableMode.RECORDS
        elif result.query_type == "USE":
            database = extract_use_database(sql)
            if database:
                self.current_database = database
                self.reload_tables()
        return result

    # ── Output panel ──────────────────────────────────────────

    def set_output(self, lines: Sequence[str]) -> None:
        self.output = list(lines)

    def _fail(self, error: Exception) -> None:
        logger.error(f"{type(error).__name__}: {error}")
        self.set_output(["Fail to execute", str(error)])
