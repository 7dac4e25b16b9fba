"""Tests for DatabaseService (SQLite backend)."""

import pytest

from csvcheck import create_service
from csvcheck.errors import ConnectionFailure
from csvcheck.postgres_service import PostgresDatabaseService
from csvcheck.service import quote_identifier
from csvcheck.sqlite_service import SQLiteDatabaseService, declared_max_length
from csvcheck.types import ColumnSpec


class TestCreateService:
    def test_sqlite_url(self, tmp_path):
        assert isinstance(create_service(f"sqlite:///{tmp_path / 'x.db'}"), SQLiteDatabaseService)

    def test_postgres_url(self):
        assert isinstance(create_service("postgresql://u:p@localhost/db"), PostgresDatabaseService)

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_service("mysql://localhost/db")

    def test_memory_database(self):
        service = create_service("sqlite:///:memory:")
        service.connect()
        service.execute_ddl("CREATE TABLE t (id INTEGER)")
        with service.transaction():
            service.execute("INSERT INTO t (id) VALUES (?)", (1,))
            rows = service.execute("SELECT id FROM t")
        service.close()
        assert rows == [{"id": 1}]


class TestDatabaseService:
    def test_execute_ddl_and_insert(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        with db_service.transaction():
            db_service.execute("INSERT INTO t (id, name) VALUES (?, ?)", (1, "alice"))
            rows = db_service.execute("SELECT * FROM t")
        assert rows == [{"id": 1, "name": "alice"}]

    def test_batch_insert_quotes_identifiers(self, db_service):
        db_service.execute_ddl('CREATE TABLE "Mixed Case" ("First Name" TEXT, "order" TEXT)')
        with db_service.transaction():
            db_service.batch_insert("Mixed Case", ["First Name", "order"], [("a", "1"), ("b", "2")])
            rows = db_service.execute('SELECT * FROM "Mixed Case" ORDER BY "order"')
        assert rows == [{"First Name": "a", "order": "1"}, {"First Name": "b", "order": "2"}]

    def test_transaction_rollback_on_error(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY, val TEXT)")
        with pytest.raises(ValueError):
            with db_service.transaction():
                db_service.execute("INSERT INTO t (id, val) VALUES (?, ?)", (1, "x"))
                raise ValueError("simulated failure")

        with db_service.transaction():
            rows = db_service.execute("SELECT * FROM t")
        assert rows == []

    def test_requires_transaction(self, db_service):
        db_service.execute_ddl("CREATE TABLE t (id INTEGER PRIMARY KEY)")
        with pytest.raises(RuntimeError, match="No active transaction"):
            db_service.execute("SELECT 1")

    def test_close_twice(self, db_service):
        db_service.close()
        db_service.close()

    def test_connect_failure(self, tmp_path):
        service = create_service(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        with pytest.raises(ConnectionFailure):
            service.connect()


class TestIntrospection:
    def test_fetch_columns_in_declared_order(self, db_service):
        db_service.execute_ddl(
            "CREATE TABLE t (zeta VARCHAR(10), alpha TEXT, mid CHARACTER VARYING(4), n INTEGER)"
        )
        with db_service.transaction():
            columns = db_service.fetch_columns("t")
        assert columns == [
            ColumnSpec("zeta", 10),
            ColumnSpec("alpha", None),
            ColumnSpec("mid", 4),
            ColumnSpec("n", None),
        ]

    def test_fetch_columns_missing_table(self, db_service):
        with db_service.transaction():
            assert db_service.fetch_columns("nope") == []

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("VARCHAR(5)", 5),
            ("varchar( 12 )", 12),
            ("CHAR(1)", 1),
            ("NVARCHAR(30)", 30),
            ("TEXT", None),
            ("INTEGER", None),
            ("DECIMAL(10,2)", None),
            ("", None),
        ],
    )
    def test_declared_max_length(self, declared, expected):
        assert declared_max_length(declared) == expected


class TestCountMatching:
    def test_counts_only_full_matches(self, db_service, people):
        with db_service.transaction():
            db_service.batch_insert(people, ["name", "age"], [("Al", "30"), ("Al", "31")])
        with db_service.transaction():
            assert db_service.count_matching(people, {"name": "Al", "age": "30"}) == 1
            assert db_service.count_matching(people, {"name": "Al"}) == 2
            assert db_service.count_matching(people, {"name": "Bo"}) == 0

    def test_values_are_bound_not_interpolated(self, db_service, people):
        with db_service.transaction():
            db_service.batch_insert(people, ["name", "age"], [("Al", "30")])
        with db_service.transaction():
            assert db_service.count_matching(people, {"name": "x' OR '1'='1"}) == 0

    def test_empty_criteria_rejected(self, db_service, people):
        with db_service.transaction():
            with pytest.raises(ValueError):
                db_service.count_matching(people, {})


def test_quote_identifier():
    assert quote_identifier("name") == '"name"'
    assert quote_identifier('we"ird') == '"we""ird"'
