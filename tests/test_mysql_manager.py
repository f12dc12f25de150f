import mysql.connector
import pytest

from config import MySQLConfig
from core.mysql_manager import MySQLManager, QueryError, QueryResult


def test_connect_uses_config(manager, patch_connector):
    params = patch_connector.connect_params
    assert params["host"] == "db.local"
    assert params["user"] == "tester"
    assert params["autocommit"] is True
    assert "database" not in params
    assert manager.is_connected()


def test_connect_failure_is_reported(monkeypatch):
    def refuse(**params):
        raise mysql.connector.Error(msg="Can't connect to MySQL server", errno=2003)

    monkeypatch.setattr(mysql.connector, "connect", refuse)
    mgr = MySQLManager(MySQLConfig(host="nowhere", url=None, default_database=None))
    assert mgr.connect() is False
    assert "Can't connect" in mgr.last_error
    assert not mgr.is_connected()


def test_execute_when_disconnected():
    mgr = MySQLManager(MySQLConfig(url=None, default_database=None))
    result = mgr.execute_query("SHOW DATABASES")
    assert not result.success
    assert "Not connected" in result.error


def test_list_databases_and_tables(manager):
    assert manager.list_databases() == ["shop", "empty_db", "analytics"]
    assert manager.use_database("shop").success
    assert manager.get_current_database() == "shop"
    assert manager.list_tables() == ["users", "orders", "wide"]


def test_list_tables_without_database(manager):
    assert manager.list_tables() == []


def test_records_are_stringified(manager):
    manager.use_database("shop")
    headers, rows = manager.get_table_records("users")
    assert headers == ["id", "name", "email"]
    assert rows == [["1", "alice", "alice@example.com"], ["2", "bob", "NULL"]]


def test_table_columns(manager, patch_connector):
    manager.use_database("shop")
    headers, rows = manager.get_table_columns("orders")
    assert headers == ["Field", "Type", "Null", "Key", "Default", "Extra"]
    assert [r[0] for r in rows] == ["id", "user_id", "total"]
    assert rows[0][4] == "NULL"
    assert patch_connector.queries[-1] == "SHOW COLUMNS FROM `orders`"


def test_missing_table_raises_query_error(manager):
    manager.use_database("shop")
    with pytest.raises(QueryError) as excinfo:
        manager.get_table_records("nope")
    assert excinfo.value.errno == 1146
    assert "doesn't exist" in str(excinfo.value)


def test_failed_statement_returns_result(manager):
    result = manager.execute_query("SELEC 1")
    assert not result.success
    assert result.errno == 1064
    assert "syntax" in result.error


def test_use_unknown_database(manager):
    result = manager.use_database("missing")
    assert not result.success
    assert manager.get_current_database() is None


def test_insert_reports_rows_and_id(manager):
    manager.use_database("shop")
    result = manager.execute_query("INSERT INTO users (name) VALUES ('carol');")
    assert result.success
    assert not result.has_result_set
    assert result.query_type == "INSERT"
    assert result.affected_rows == 1
    assert result.last_insert_id == 42


def test_trailing_statements_are_dropped(manager, patch_connector):
    manager.execute_query("SHOW DATABASES; DROP DATABASE shop")
    assert patch_connector.queries[-1] == "SHOW DATABASES"


def test_server_version(manager):
    assert manager.get_server_version() == "8.0.36"


def test_raise_for_error():
    ok = QueryResult(success=True, query="SELECT 1")
    assert ok.raise_for_error() is ok
    with pytest.raises(QueryError):
        QueryResult(success=False, query="x", error="boom").raise_for_error()


def test_disconnect(manager):
    manager.disconnect()
    assert not manager.is_connected()
