# ============================================================
# MyBrowse - Terminal MySQL Browser
# ui/tui.py — Main Textual TUI Application
# ============================================================
#
# Layout:
#   ┌ DB ──────┐┌ SQL [e: start editing] [esc: stop editing] ┐
#   │ mydb     ││                                            │
#   ├ Tables ──┤├────────────────────────────────────────────┤
#   │ users    ││ Records [0]  Columns [1]                   │
#   │ orders   │├ Records — users ─────────────────────────── ┤
#   │ ...      ││ grid (PAGE_SIZE columns at a time)          │
#   │          │├ Output ───────────────────────────────────── ┤
#   └──────────┘└────────────────────────────────────────────┘
#
# Every MySQL round-trip runs in a thread worker. While one is in
# flight the app is "busy" and grid keys are ignored, so the grids
# only ever change from one place at a time.
# ============================================================

from pathlib import Path
from typing import Optional, List

from rich import box
from rich.table import Table
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widget import Widget
from textual.widgets import Button, Input, Label, ListItem, ListView, Static
from textual import work
from loguru import logger

from config import app_config
from core.grid import NavigationIntent, TableGrid
from core.session import BrowserSession, InputMode, TableMode
from utils.helpers import is_destructive_query, truncate_string

_DIRECTIONS = {
    "up": NavigationIntent.MOVE_UP,
    "down": NavigationIntent.MOVE_DOWN,
    "left": NavigationIntent.MOVE_LEFT,
    "right": NavigationIntent.MOVE_RIGHT,
}


# ── Confirmation Modal ────────────────────────────────────────
class DestructiveConfirmModal(ModalScreen):
    """
    Modal for confirming DELETE / DROP / TRUNCATE.
    Y = confirm. N or Escape = cancel.
    """

    BINDINGS = [
        ("escape", "cancel",  "Cancel"),
        ("y",      "execute", "Yes Execute"),
        ("n",      "cancel",  "No Cancel"),
    ]

    def __init__(self, sql: str, callback):
        self._sql = sql
        self._callback = callback
        super().__init__()

    def compose(self) -> ComposeResult:
        with Container(id="confirm-modal-container"):
            yield Label("DESTRUCTIVE OPERATION", id="modal-title")
            yield Static(Text(truncate_string(self._sql, 300), style="bold #f0883e"), id="modal-query")
            yield Label("Press Y to execute  |  N or Escape to cancel", id="modal-hint")
            with Horizontal(id="modal-buttons"):
                yield Button("No, Cancel", id="btn-cancel")
                yield Button("Yes, Execute", id="btn-execute")

    def on_mount(self) -> None:
        self.query_one("#btn-cancel", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        confirmed = (event.button.id == "btn-execute")
        self.dismiss()
        self._callback(confirmed)

    def action_execute(self) -> None:
        self.dismiss()
        self._callback(True)

    def action_cancel(self) -> None:
        self.dismiss()
        self._callback(False)


# ── Database Picker ───────────────────────────────────────────
class NamedItem(ListItem):
    """List entry that remembers the database/table name it shows."""

    def __init__(self, name: str):
        self.item_name = name
        super().__init__(Label(Text(name)))


class DatabaseSelectModal(ModalScreen):
    """Popup list of databases. Enter switches, Escape closes."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, databases: List[str], current: Optional[str], callback):
        self._databases = databases
        self._current = current
        self._callback = callback
        super().__init__()

    def compose(self) -> ComposeResult:
        with Container(id="database-modal-container"):
            yield Label("Databases", id="modal-title")
            yield ListView(*[NamedItem(db) for db in self._databases], id="database-list")

    def on_mount(self) -> None:
        db_list = self.query_one("#database-list", ListView)
        if self._current in self._databases:
            db_list.index = self._databases.index(self._current)
        db_list.focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        self.dismiss()
        self._callback(event.item.item_name)

    def action_cancel(self) -> None:
        self.dismiss()
        self._callback(None)


# ── Grid Widget ───────────────────────────────────────────────
class GridView(Widget, can_focus=True):
    """
    Renders the session's active TableGrid: only the visible column
    window, with rows scrolled so the selected row stays on screen.
    """

    class Moved(Message):
        """Posted after the selection changed."""

    BINDINGS = [
        Binding("up",    "move('up')",    "Up",    show=False),
        Binding("down",  "move('down')",  "Down",  show=False),
        Binding("left",  "move('left')",  "Left",  show=False),
        Binding("right", "move('right')", "Right", show=False),
        Binding("k",     "move('up')",    "Up",    show=False),
        Binding("j",     "move('down')",  "Down",  show=False),
        Binding("h",     "move('left')",  "Left",  show=False),
        Binding("l",     "move('right')", "Right", show=False),
    ]

    def __init__(self, session: BrowserSession, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self._row_offset = 0

    def action_move(self, direction: str) -> None:
        if getattr(self.app, "is_busy", False):
            return
        self.session.move(_DIRECTIONS[direction])
        self.refresh()
        self.post_message(GridView.Moved())

    def _visible_row_range(self, grid: TableGrid) -> range:
        # border + header + header rule + bottom border
        capacity = max(1, self.size.height - 4)
        selected = grid.selection.row or 0
        if selected < self._row_offset:
            self._row_offset = selected
        elif selected >= self._row_offset + capacity:
            self._row_offset = selected - capacity + 1
        self._row_offset = max(0, min(self._row_offset, max(0, grid.grid.height - capacity)))
        return range(self._row_offset, min(grid.grid.height, self._row_offset + capacity))

    def render(self):
        grid = self.session.active_grid
        grid.recalculate_window()

        headers = grid.visible_headers
        if not headers:
            return Text("No columns", style="dim italic")

        table = Table(
            box=box.SIMPLE_HEAD,
            expand=True,
            show_header=True,
            header_style="bold",
            pad_edge=False,
        )
        for header in headers:
            table.add_column(Text(header), ratio=1, no_wrap=True, overflow="ellipsis")

        row_range = self._visible_row_range(grid)
        rows = grid.row_slice(row_range.start, row_range.stop)
        highlighted = grid.highlighted
        for row_index, row in zip(row_range, rows):
            cells = []
            for column_index, value in enumerate(row):
                style = "on blue" if highlighted == (row_index, column_index) else ""
                cells.append(Text(value, style=style))
            table.add_row(*cells, style="bold" if row_index == grid.selection.row else None)

        if grid.grid.height == 0:
            table.caption = "Empty set"
        return table


# ── Main MyBrowse TUI Application ─────────────────────────────
class BrowserApp(App):
    """
    Main Textual application for MyBrowse.
    Tables list (left) + SQL input, tabs, grid and output (right).
    """

    CSS_PATH = str(Path(__file__).parent / "mybrowse.tcss")
    TITLE = f"{app_config.name} — MySQL Browser"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        ("ctrl+c", "quit",           "Quit"),
        ("q",      "quit",           "Quit"),
        ("e",      "edit_sql",       "Edit SQL"),
        ("escape", "stop_editing",   "Stop Editing"),
        ("c",      "change_database", "Change DB"),
        ("0",      "show_records",   "Records"),
        ("1",      "show_columns",   "Columns"),
    ]

    def __init__(
        self,
        session: BrowserSession,
        database: Optional[str] = None,
        table: Optional[str] = None,
    ):
        super().__init__()
        self.session = session
        self._initial_database = database
        self._initial_table = table
        self.is_busy = False

    # ── App Lifecycle ─────────────────────────────────────────

    def compose(self) -> ComposeResult:
        """Build the UI layout."""
        yield Container(
            Horizontal(
                Vertical(
                    Label("", id="current-db"),
                    ListView(id="table-list"),
                    id="sidebar",
                ),
                Vertical(
                    Input(
                        placeholder="SELECT ... — press Enter to execute",
                        id="sql-input",
                    ),
                    Label("", id="tabs"),
                    GridView(self.session, id="grid"),
                    Static("", id="sql-output"),
                    id="main-panel",
                ),
                id="main-container",
            ),
            Horizontal(
                Label("", id="status-left"),
                Label("", id="status-right"),
                id="status-bar",
            ),
        )

    def on_mount(self) -> None:
        self.query_one("#current-db", Label).border_title = "DB"
        self.query_one("#table-list", ListView).border_title = "Tables"
        self.query_one("#sql-input", Input).border_title = "SQL [e: start editing] [esc: stop editing]"
        self.query_one("#sql-output", Static).border_title = "Output"
        self.query_one("#grid", GridView).focus()
        self._set_busy(True)
        self._initialize()

    @work(thread=True, exclusive=True, group="mysql")
    def _initialize(self):
        """Connect and load databases / tables off the UI thread."""
        mysql = self.session.mysql
        if not mysql.is_connected() and not mysql.connect(self._initial_database):
            self.call_from_thread(
                self.session.set_output,
                ["Fail to connect", mysql.last_error or "unknown error"],
            )
        else:
            self.session.load(self._initial_database, self._initial_table)
        self.call_from_thread(self._after_load, True)

    # ── Grid / tabs ───────────────────────────────────────────

    def on_grid_view_moved(self, _: GridView.Moved) -> None:
        self._update_status_bar()

    def action_show_records(self) -> None:
        self._switch_tab(TableMode.RECORDS)

    def action_show_columns(self) -> None:
        self._switch_tab(TableMode.COLUMNS)

    def _switch_tab(self, mode: TableMode) -> None:
        if self.is_busy:
            return
        self.session.switch_tab(mode)
        self._refresh_grid()

    # ── Tables list ───────────────────────────────────────────

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "table-list" or self.is_busy:
            return
        self._set_busy(True)
        self._load_table(event.item.item_name)

    @work(thread=True, exclusive=True, group="mysql")
    def _load_table(self, name: str):
        self.session.select_table(name)
        self.call_from_thread(self._after_load, False)

    # ── Database switching ────────────────────────────────────

    def action_change_database(self) -> None:
        if self.is_busy or not self.session.databases:
            return
        self.session.input_mode = InputMode.CHANGE_DB
        self._update_status_bar()
        self.push_screen(
            DatabaseSelectModal(
                self.session.databases,
                self.session.current_database,
                callback=self._on_database_chosen,
            )
        )

    def _on_database_chosen(self, name: Optional[str]) -> None:
        self.session.input_mode = InputMode.NORMAL
        if name and name != self.session.current_database:
            self._set_busy(True)
            self._switch_database(name)
        else:
            self._update_status_bar()

    @work(thread=True, exclusive=True, group="mysql")
    def _switch_database(self, name: str):
        self.session.change_database(name)
        self.call_from_thread(self._after_load, True)

    # ── SQL input ─────────────────────────────────────────────

    def action_edit_sql(self) -> None:
        self.session.input_mode = InputMode.EDITING
        self.query_one("#sql-input", Input).focus()
        self._update_status_bar()

    def action_stop_editing(self) -> None:
        self.session.input_mode = InputMode.NORMAL
        self.query_one("#grid", GridView).focus()
        self._update_status_bar()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        sql = event.value.strip()
        if not sql or self.is_busy:
            return
        self.session.sql_input = sql

        if is_destructive_query(sql):
            self.push_screen(
                DestructiveConfirmModal(
                    sql,
                    callback=lambda ok: (
                        self._start_sql(sql) if ok
                        else self._show_output(["Query cancelled."])
                    ),
                )
            )
        else:
            self._start_sql(sql)

    def _start_sql(self, sql: str) -> None:
        self._set_busy(True)
        self._execute_sql(sql)

    @work(thread=True, exclusive=True, group="mysql")
    def _execute_sql(self, sql: str):
        result = self.session.execute_sql(sql)
        self.call_from_thread(self._after_load, result.query_type == "USE")

    # ── UI Helpers ────────────────────────────────────────────

    def _set_busy(self, busy: bool) -> None:
        self.is_busy = busy
        self._update_status_bar()

    def _after_load(self, tables_changed: bool) -> None:
        """Main-thread hook run when a worker finished touching the session."""
        self.is_busy = False
        if tables_changed:
            self._refresh_sidebar()
        self._refresh_grid()
        self._show_output(self.session.output)

    def _refresh_sidebar(self) -> None:
        db_label = self.query_one("#current-db", Label)
        db_label.update(Text(self.session.current_database or "-"))

        table_list = self.query_one("#table-list", ListView)
        table_list.clear()
        table_list.extend([NamedItem(name) for name in self.session.tables])

    def _refresh_grid(self) -> None:
        grid = self.session.active_grid
        mode = self.session.table_mode

        tabs = Text.assemble(
            ("Records [0]", "bold green" if mode == TableMode.RECORDS else ""),
            "  ",
            ("Columns [1]", "bold green" if mode == TableMode.COLUMNS else ""),
        )
        self.query_one("#tabs", Label).update(tabs)

        view = self.query_one("#grid", GridView)
        view.border_title = f"{grid.title} — {grid.name}" if grid.name else grid.title
        view.refresh()
        self._update_status_bar()

    def _show_output(self, lines: List[str]) -> None:
        self.query_one("#sql-output", Static).update(Text("\n".join(lines)))

    def status_text(self) -> str:
        """Left half of the status bar: mode, database, shown grid, cursor."""
        grid = self.session.active_grid
        mode = self.session.input_mode.value.replace("_", " ").upper()
        if self.is_busy:
            mode = "LOADING"
        position = "-"
        if grid.selection.row is not None:
            position = (
                f"row {grid.selection.row + 1}/{grid.grid.height}"
                f"  col {grid.selection.column + 1}/{grid.grid.width}"
            )
        db = self.session.current_database or "-"
        return f"{mode}  │  DB: {db}  │  {grid.name or '-'}  │  {position}"

    def _update_status_bar(self) -> None:
        """Update the bottom status bar."""
        try:
            self.query_one("#status-left", Label).update(Text(self.status_text()))
            self.query_one("#status-right", Label).update(
                Text(f"MySQL {self.session.server_version or '?'}  │  q: quit  c: change DB")
            )
        except Exception as e:
            # Called before compose finished (e.g. from the first _set_busy).
            logger.debug(f"_update_status_bar: {e}")

    def action_quit(self) -> None:
        self.session.mysql.disconnect()
        self.exit()
