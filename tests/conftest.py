import os
import re
import sys

import pytest
import mysql.connector

# add project root so `core`, `config`, ... import without installing
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config import MySQLConfig
from core.mysql_manager import MySQLManager


def _unquote(name):
    return name.strip().strip("`")


class FakeServer:
    """
    Answers the handful of statements the browser sends.
    databases: {db_name: {table_name: (headers, rows)}}
    """

    def __init__(self, databases):
        self.databases = databases
        self.queries = []
        self.connect_params = None

    def run(self, query, conn):
        self.queries.append(query)
        q = query.strip()
        upper = q.upper()

        if upper == "SHOW DATABASES":
            return ["Database"], [(name,) for name in self.databases], 0, 0

        if upper == "SELECT VERSION()":
            return ["VERSION()"], [("8.0.36",)], 0, 0

        m = re.match(r"USE\s+(.+)$", q, re.IGNORECASE)
        if m:
            name = _unquote(m.group(1))
            if name not in self.databases:
                raise mysql.connector.Error(msg=f"Unknown database '{name}'", errno=1049)
            conn.database = name
            return None, [], 0, 0

        m = re.match(r"SHOW TABLES FROM\s+(.+)$", q, re.IGNORECASE)
        if m:
            name = _unquote(m.group(1))
            return [f"Tables_in_{name}"], [(t,) for t in self.databases[name]], 0, 0

        m = re.match(r"SELECT \* FROM\s+(.+)$", q, re.IGNORECASE)
        if m:
            headers, rows = self._table(conn, _unquote(m.group(1)))
            return list(headers), [tuple(r) for r in rows], 0, 0

        m = re.match(r"SHOW COLUMNS FROM\s+(.+)$", q, re.IGNORECASE)
        if m:
            headers, _ = self._table(conn, _unquote(m.group(1)))
            columns = ["Field", "Type", "Null", "Key", "Default", "Extra"]
            return columns, [(h, "varchar(255)", "YES", "", None, "") for h in headers], 0, 0

        m = re.match(r"SELECT '(.*)'$", q, re.IGNORECASE | re.DOTALL)
        if m:
            return [m.group(1)], [(m.group(1),)], 0, 0

        if upper.startswith("INSERT"):
            return None, [], 1, 42

        if upper.startswith(("UPDATE", "DELETE")):
            return None, [], 3, 0

        raise mysql.connector.Error(msg="You have an error in your SQL syntax", errno=1064)

    def _table(self, conn, name):
        tables = self.databases.get(conn.database) or {}
        if name not in tables:
            raise mysql.connector.Error(
                msg=f"Table '{conn.database}.{name}' doesn't exist", errno=1146
            )
        return tables[name]


class FakeCursor:
    def __init__(self, server, conn):
        self._server = server
        self._conn = conn
        self.description = None
        self._rows = []
        self.rowcount = -1
        self.lastrowid = None

    def execute(self, query):
        columns, rows, rowcount, lastrowid = self._server.run(query, self._conn)
        self.description = [(c,) for c in columns] if columns is not None else None
        self._rows = rows
        self.rowcount = len(rows) if columns is not None else rowcount
        self.lastrowid = lastrowid

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, server, database=None):
        self._server = server
        self.database = database
        self._open = True

    def cursor(self, buffered=False):
        return FakeCursor(self._server, self)

    def is_connected(self):
        return self._open

    def close(self):
        self._open = False


WIDE_HEADERS = [f"col{i}" for i in range(25)]


@pytest.fixture
def fake_server():
    return FakeServer({
        "shop": {
            "users": (
                ["id", "name", "email"],
                [(1, "alice", "alice@example.com"), (2, "bob", None)],
            ),
            "orders": (
                ["id", "user_id", "total"],
                [(10, 1, "9.99")],
            ),
            "wide": (
                WIDE_HEADERS,
                [tuple(f"r{r}c{c}" for c in range(25)) for r in range(3)],
            ),
        },
        "empty_db": {},
        "analytics": {
            "events": (["id", "kind"], []),
        },
    })


@pytest.fixture
def patch_connector(monkeypatch, fake_server):
    def fake_connect(**params):
        fake_server.connect_params = params
        return FakeConnection(fake_server, params.get("database"))

    monkeypatch.setattr(mysql.connector, "connect", fake_connect)
    return fake_server


@pytest.fixture
def manager(patch_connector):
    mgr = MySQLManager(MySQLConfig(
        host="db.local", port=3306, user="tester", password="pw", url=None, default_database=None,
    ))
    assert mgr.connect()
    yield mgr
    mgr.disconnect()
