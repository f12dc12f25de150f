import pytest

from core.grid import NavigationIntent, Selection, SwitchResultSet
from core.mysql_manager import QueryError
from core.session import QUERY_RESULT_NAME, BrowserSession, TableMode


@pytest.fixture
def session(manager):
    return BrowserSession(manager)


def test_load_picks_first_database_and_table(session):
    assert session.load()
    assert session.databases == ["shop", "empty_db", "analytics"]
    assert session.server_version == "8.0.36"
    assert session.current_database == "shop"
    assert session.tables == ["users", "orders", "wide"]
    assert session.current_table == "users"

    assert session.records.name == "users"
    assert session.records.grid.headers == ("id", "name", "email")
    assert session.records.grid.rows[1] == ("2", "bob", "NULL")
    assert session.columns.grid.height == 3
    assert session.columns.grid.width == 6
    assert session.records.selection == Selection(row=0, column=0)


def test_load_requested_database_and_table(session):
    assert session.load("shop", "orders")
    assert session.current_table == "orders"
    assert session.records.grid.rows == (("10", "1", "9.99"),)


def test_database_without_tables_empties_both_grids(session):
    session.load()
    assert session.change_database("empty_db")
    assert session.tables == []
    assert session.current_table is None
    assert session.records.is_empty()
    assert session.columns.is_empty()
    assert session.records.highlighted is None


def test_table_without_rows(session):
    assert session.load("analytics")
    assert session.current_table == "events"
    assert session.records.grid.width == 2
    assert session.records.selection.row is None
    session.move(NavigationIntent.MOVE_RIGHT)
    assert session.records.selection.column == 0


def test_unknown_database_keeps_state(session):
    session.load()
    assert not session.change_database("missing")
    assert session.current_database == "shop"
    assert session.current_table == "users"
    assert session.output == ["Fail to execute", "ERROR 1049: Unknown database 'missing'"]


def test_failed_table_load_keeps_grids(session):
    session.load()
    session.move(NavigationIntent.MOVE_DOWN)
    before = (session.records.grid, session.records.selection)

    assert not session.select_table("nope")
    assert session.output[0] == "Fail to execute"
    assert "1146" in session.output[1]
    assert (session.records.grid, session.records.selection) == before
    assert session.current_table == "users"


def test_columns_failure_leaves_records_untouched(session, monkeypatch):
    session.load()

    def broken(name):
        raise QueryError("Lost connection", errno=2013)

    monkeypatch.setattr(session.mysql, "get_table_columns", broken)
    assert not session.select_table("orders")
    assert session.records.name == "users"
    assert session.columns.name == "users"


def test_ragged_rows_are_rejected(session, monkeypatch):
    session.load()
    monkeypatch.setattr(
        session.mysql, "get_table_records", lambda name: (["a", "b"], [["1", "2"], ["3"]])
    )
    assert not session.select_table("orders")
    assert session.records.name == "users"
    assert "DataShapeError" not in session.output[1]
    assert "expected 2" in session.output[1]


def test_navigation_goes_to_active_tab(session):
    session.load()
    session.switch_tab(TableMode.COLUMNS)
    session.move(NavigationIntent.MOVE_DOWN)
    assert session.columns.selection.row == 1
    assert session.records.selection.row == 0

    session.switch_tab(TableMode.RECORDS)
    session.move(NavigationIntent.MOVE_RIGHT)
    assert session.records.selection.column == 1
    assert session.columns.selection.column == 0


def test_apply_switch_result_set(session):
    session.load()
    session.apply(SwitchResultSet("other", ["x"], [["1"], ["2"]]))
    assert session.records.name == "other"
    session.apply(NavigationIntent.MOVE_DOWN)
    assert session.records.selection.row == 1


def test_wide_table_window(session):
    session.load("shop", "wide")
    for _ in range(10):
        session.move(NavigationIntent.MOVE_RIGHT)
    assert (session.records.window.start, session.records.window.end) == (1, 10)
    assert session.records.visible_headers[0] == "col1"


def test_select_result_replaces_records(session):
    session.load()
    session.switch_tab(TableMode.COLUMNS)
    session.move(NavigationIntent.MOVE_DOWN)

    result = session.execute_sql("SELECT * FROM `orders`")
    assert result.success
    assert session.table_mode == TableMode.RECORDS
    assert session.records.name == QUERY_RESULT_NAME
    assert session.records.grid.rows == (("10", "1", "9.99"),)
    assert session.output[0] == "Success to execute"
    assert session.output[1].startswith("1 row in set")
    # the columns tab still describes the selected table
    assert session.columns.name == "users"


def test_sql_input_is_used_by_default(session):
    session.load()
    session.sql_input = "INSERT INTO users (name) VALUES ('carol')"
    session.execute_sql()
    assert session.output == ["Success to execute", "rows_affected: 1", "last_insert_id: 42"]
    assert session.records.name == "users"


def test_use_statement_switches_database(session):
    session.load()
    session.execute_sql("USE analytics")
    assert session.output == ["Success to execute", "Database changed"]
    assert session.current_database == "analytics"
    assert session.tables == ["events"]
    assert session.current_table == "events"


def test_failed_sql_reports_error(session):
    session.load()
    result = session.execute_sql("SELEC 1")
    assert not result.success
    assert session.output[0] == "Fail to execute"
    assert session.output[1].startswith("ERROR 1064")
    assert session.records.name == "users"


def test_semicolon_inside_string_literal_is_sent_intact(session, patch_connector):
    session.load()
    result = session.execute_sql("SELECT 'a;b';")
    assert result.success
    assert patch_connector.queries[-1] == "SELECT 'a;b'"
    assert session.records.name == QUERY_RESULT_NAME
    assert session.records.grid.rows == (("a;b",),)


def test_use_quoted_database_with_space(session, patch_connector):
    patch_connector.databases["my db"] = {"notes": (["id", "body"], [(1, "hello")])}
    session.load()

    session.execute_sql("USE `my db`")
    assert session.output == ["Success to execute", "Database changed"]
    assert session.current_database == "my db"
    assert session.mysql.get_current_database() == "my db"
    assert "SHOW TABLES FROM `my db`" in patch_connector.queries
    assert session.tables == ["notes"]
    assert session.current_table == "notes"
