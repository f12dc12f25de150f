# ============================================================
# MyBrowse - Terminal MySQL Browser
# core/query_executor.py — Ad-hoc SQL Execution & Output Formatting
# ============================================================

from typing import Optional, List
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich import box
from loguru import logger

from core.mysql_manager import MySQLManager, QueryResult
from core.cell_format import NULL_TEXT


class QueryExecutor:
    """
    Runs SQL typed by the user and turns the QueryResult into
    output for either front end:

    - format_output_lines()  → plain lines for the TUI output panel
    - execute_and_format()   → Rich renderables for the simple shell
    """

    def __init__(self, mysql_manager: MySQLManager, console: Optional[Console] = None):
        self.mysql = mysql_manager
        self.console = console or Console()

    def execute(self, sql: str) -> QueryResult:
        result = self.mysql.execute_query(sql)
        if result.success:
            logger.debug(f"Executed {result.query_type} in {result.execution_ms}ms")
        return result

    def execute_and_format(self, sql: str, print_output: bool = True) -> QueryResult:
        """Execute a SQL query and print MySQL-CLI-style output to the console."""
        result = self.execute(sql)
        if print_output:
            for renderable in self._format_result(result):
                self.console.print(renderable)
        return result

    # ── TUI output panel ──────────────────────────────────────

    def format_output_lines(self, result: QueryResult) -> List[str]:
        if not result.success:
            error = result.error or "Unknown error"
            if result.errno:
                error = f"ERROR {result.errno}: {error}"
            return ["Fail to execute", error]

        if result.has_result_set:
            row_word = "row" if len(result.rows) == 1 else "rows"
            return [
                "Success to execute",
                f"{len(result.rows)} {row_word} in set ({result.execution_ms / 1000:.3f} sec)",
            ]

        if result.query_type == "USE":
            return ["Success to execute", "Database changed"]

        return [
            "Success to execute",
            f"rows_affected: {result.affected_rows}",
            f"last_insert_id: {result.last_insert_id or 0}",
        ]

    # ── Simple shell output ───────────────────────────────────

    def _format_result(self, result: QueryResult) -> List:
        """
        Format QueryResult into Rich renderables that mimic MySQL CLI output.
        """
        output = []

        if not result.success:
            error_text = Text()
            error_text.append("ERROR", style="bold red")
            if result.errno:
                error_text.append(f" {result.errno}", style="bold red")
            error_text.append(f": {result.error}", style="red")
            output.append(error_text)
            return output

        timing = f"({result.execution_ms / 1000:.3f} sec)"

        if result.has_result_set:
            if result.rows:
                output.append(self.build_table(result))
                row_word = "row" if len(result.rows) == 1 else "rows"
                count_text = Text()
                count_text.append(f"{len(result.rows)} {row_word} in set ", style="dim")
                count_text.append(timing, style="dim italic")
                output.append(count_text)
            else:
                empty_text = Text()
                empty_text.append("Empty set ", style="dim")
                empty_text.append(timing, style="dim italic")
                output.append(empty_text)

        elif result.query_type == "USE":
            output.append(Text("Database changed", style="green"))

        else:
            ok_text = Text()
            ok_text.append("Query OK", style="bold green")
            row_word = "row" if result.affected_rows == 1 else "rows"
            ok_text.append(f", {result.affected_rows} {row_word} affected ", style="green")
            ok_text.append(timing, style="dim italic")
            output.append(ok_text)
            if result.last_insert_id and result.query_type == "INSERT":
                output.append(Text(f"  Last INSERT ID: {result.last_insert_id}", style="dim cyan"))

        return output

    def build_table(self, result: QueryResult) -> Table:
        """Build a Rich Table that mimics MySQL CLI table output."""
        table = Table(
            box=box.SIMPLE_HEAVY,
            show_header=True,
            header_style="bold cyan",
            border_style="dim white",
            show_lines=False,
            pad_edge=False,
        )

        headers, rows = result.as_strings()
        for col_name in headers:
            table.add_column(Text(col_name), style="white", no_wrap=False)

        for row in rows:
            table.add_row(*[
                Text(NULL_TEXT, style="dim italic yellow") if cell == NULL_TEXT else Text(cell)
                for cell in row
            ])

        return table
