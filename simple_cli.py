# ============================================================
# MyBrowse - Terminal MySQL Browser
# simple_cli.py — Fallback Simple SQL Shell (no Textual TUI)
# ============================================================
#
# A prompt_toolkit shell for terminals where the full-screen UI
# does not work. SQL is executed directly; slash commands browse
# databases and tables through the same BrowserSession the TUI uses.
# ============================================================

import os
from typing import Optional
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.formatted_text import HTML
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich import box

from config import app_config
from core.grid import NavigationIntent
from core.query_executor import QueryExecutor
from core.session import BrowserSession, TableMode
from utils.helpers import is_destructive_query

HELP_TEXT = """[bold]Commands[/bold]
  /databases            list databases
  /use <db>             switch database
  /tables               list tables of the current database
  /records <table>      show a table's records
  /columns [table]      show a table's columns
  /left [n] /right [n]  move the selected column (window jumps by page)
  /up [n] /down [n]     move the selected row
  /version              show version
  /clear                clear the screen
  /exit                 quit
Anything else is sent to MySQL as SQL."""


class SimpleCLI:
    """Single-window SQL shell around a BrowserSession."""

    def __init__(self, session: BrowserSession, console: Optional[Console] = None):
        self.console = console or Console()
        self.session = session
        self.executor = QueryExecutor(session.mysql, self.console)
        self._running: bool = True

        history_file = os.path.expanduser(app_config.history_file)
        self.prompt = PromptSession(
            history=FileHistory(history_file),
            auto_suggest=AutoSuggestFromHistory(),
        )

    def run(self, database: Optional[str] = None, table: Optional[str] = None) -> int:
        """Main loop. Returns the process exit status."""
        self.console.print(f"[bold #58a6ff]{app_config.name}[/bold #58a6ff] v{app_config.version}")
        if not self._initialize(database, table):
            return 1

        while self._running:
            try:
                user_input = self._get_input()
                if user_input is None:
                    break
                user_input = user_input.strip()
                if not user_input:
                    continue
                self.handle_input(user_input)
            except KeyboardInterrupt:
                self.console.print("\n[dim]Use /exit to quit[/dim]")

        self._shutdown()
        return 0

    def _initialize(self, database: Optional[str], table: Optional[str]) -> bool:
        mysql = self.session.mysql
        self.console.print(f"[dim]Connecting to MySQL at {mysql.config.resolved().host}...[/dim]")
        if not mysql.connect(database):
            self.console.print(f"[red]Failed to connect to MySQL: {mysql.last_error}[/red]")
            return False
        self.console.print("[green]✓ MySQL connected[/green]")

        if not self.session.load(database, table):
            self._print_output()
        if self.session.databases:
            self.console.print(f"[dim]Databases: {', '.join(self.session.databases)}[/dim]")
        self.console.print("[dim]Type [bold]/help[/bold] for commands.[/dim]\n")
        return True

    def _get_input(self) -> Optional[str]:
        db_part = f"[{self.session.current_database}]" if self.session.current_database else ""
        try:
            return self.prompt.prompt(
                HTML(f"<ansigreen><b>mybrowse{db_part}</b></ansigreen><ansicyan> ▶ </ansicyan>")
            )
        except EOFError:
            return None

    # ── Routing ───────────────────────────────────────────────

    def handle_input(self, user_input: str) -> None:
        if user_input.startswith("/"):
            self.handle_command(user_input)
        else:
            self.execute_sql(user_input)

    def execute_sql(self, sql: str) -> None:
        if is_destructive_query(sql) and not self._confirm(sql):
            self.console.print("[dim]Query cancelled.[/dim]")
            return

        db = self.session.current_database
        prompt = f"mysql [{db}]>" if db else "mysql>"
        self.console.print(f"[dim #58a6ff]{prompt}[/dim #58a6ff] ", Text(sql, style="bold"))

        result = self.executor.execute_and_format(sql, print_output=True)
        if result.success and result.query_type == "USE":
            self.session.current_database = self.session.mysql.get_current_database()
            self.session.reload_tables()

    def _confirm(self, sql: str) -> bool:
        self.console.print(f"[yellow]⚠ Destructive query:[/yellow] {sql}")
        try:
            answer = self.prompt.prompt(HTML("<ansiyellow>Execute? (y/n): </ansiyellow>"))
        except (KeyboardInterrupt, EOFError):
            return False
        return answer.strip().lower() == "y"

    def handle_command(self, command: str) -> None:
        parts = command.strip().split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd in ("/exit", "/quit"):
            self._running = False

        elif cmd == "/help":
            self.console.print(HELP_TEXT)

        elif cmd in ("/databases", "/dbs"):
            self._print_list("Databases", self.session.databases, self.session.current_database)

        elif cmd == "/use" and arg:
            if self.session.change_database(arg):
                self.console.print(f"[green]Database changed to[/green] [bold #58a6ff]{arg}[/bold #58a6ff]")
            else:
                self._print_output()

        elif cmd == "/tables":
            self._print_list("Tables", self.session.tables, self.session.current_table)

        elif cmd in ("/records", "/columns"):
            if arg and arg != self.session.current_table and not self.session.select_table(arg):
                self._print_output()
                return
            mode = TableMode.RECORDS if cmd == "/records" else TableMode.COLUMNS
            self.session.switch_tab(mode)
            self.print_grid()

        elif cmd in ("/left", "/right", "/up", "/down"):
            intent = NavigationIntent(cmd[1:])
            steps = int(arg) if arg.isdigit() else 1
            for _ in range(steps):
                self.session.move(intent)
            self.print_grid()

        elif cmd == "/version":
            self.console.print(f"{app_config.name} v{app_config.version}")
            if self.session.server_version:
                self.console.print(f"MySQL server {self.session.server_version}")

        elif cmd == "/clear":
            self.console.clear()

        else:
            self.console.print(f"[yellow]Unknown command: {command}. Type /help[/yellow]")

    # ── Output ────────────────────────────────────────────────

    def print_grid(self) -> None:
        """Print the visible column window of the active grid."""
        grid = self.session.active_grid
        grid.recalculate_window()
        if not grid.visible_headers:
            self.console.print("[dim]Nothing to show.[/dim]")
            return

        table = Table(
            title=f"{grid.title}: {grid.name}",
            box=box.SIMPLE_HEAVY,
            header_style="bold cyan",
            pad_edge=False,
        )
        for header in grid.visible_headers:
            table.add_column(Text(header), no_wrap=True)

        highlighted = grid.highlighted
        for row_index, row in enumerate(grid.visible_rows):
            table.add_row(*[
                Text(value, style="on blue" if highlighted == (row_index, column_index) else "")
                for column_index, value in enumerate(row)
            ])
        self.console.print(table)

        window = grid.window
        last = min(window.end, grid.grid.width - 1)
        self.console.print(
            f"[dim]columns {window.start + 1}-{last + 1} of {grid.grid.width}, "
            f"{grid.grid.height} rows[/dim]"
        )

    def _print_list(self, title: str, names, current: Optional[str]) -> None:
        if not names:
            self.console.print(f"[dim]No {title.lower()}.[/dim]")
            return
        for name in names:
            marker = "[green]●[/green]" if name == current else " "
            self.console.print(f" {marker} ", Text(name))

    def _print_output(self) -> None:
        for line in self.session.output:
            self.console.print(Text(line, style="red"))

    def _shutdown(self):
        self.console.print("\n[dim]Shutting down...[/dim]")
        self.session.mysql.disconnect()
        self.console.print("[green]Goodbye![/green]")
