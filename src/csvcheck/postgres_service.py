"""PostgreSQL implementation of DatabaseService."""

import io
import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

import psycopg2
import psycopg2.extras

from csvcheck.errors import ComparisonFailure, ConnectionFailure
from csvcheck.service import DatabaseService, quote_identifier
from csvcheck.types import ColumnSpec, Params, ParamsList

logger = logging.getLogger(__name__)

COLUMNS_SQL = """
SELECT column_name, character_maximum_length
FROM information_schema.columns
WHERE table_schema = current_schema() AND table_name = %s
ORDER BY ordinal_position
"""


def _copy_field(value: Any) -> str:
    # COPY ... (FORMAT csv): an unquoted empty field is NULL, a quoted one is ''.
    if value is None:
        return ""
    return '"' + str(value).replace('"', '""') + '"'


def encode_copy_rows(rows: Iterable[tuple]) -> io.StringIO:
    """Render rows as a CSV stream for COPY FROM STDIN."""
    buf = io.StringIO()
    for row in rows:
        buf.write(",".join(_copy_field(v) for v in row))
        buf.write("\n")
    buf.seek(0)
    return buf


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2.

    Holds one connection with autocommit off. Every statement runs inside a
    transaction() block.
    """

    placeholder = "%s"

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._conn = None
        self._in_transaction = False

    def connect(self) -> None:
        try:
            conn = psycopg2.connect(self._dsn)
        except psycopg2.Error as e:
            raise ConnectionFailure(f"Cannot connect to PostgreSQL: {e}") from e
        conn.autocommit = False
        self._conn = conn
        logger.debug("Connected to PostgreSQL")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_conn(self):
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        if not self._in_transaction:
            raise RuntimeError(
                "No active transaction. Wrap calls in a `with service.transaction():` block."
            )
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        self._in_transaction = True
        try:
            yield
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        conn = self._get_conn()
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params or ())
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        try:
            with self._conn.cursor() as cur:
                for statement in sql.split(";"):
                    statement = statement.strip()
                    if statement:
                        cur.execute(statement)
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def fetch_columns(self, table: str) -> list[ColumnSpec]:
        rows = self.execute(COLUMNS_SQL, (table,))
        return [
            ColumnSpec(r["column_name"], r["character_maximum_length"]) for r in rows
        ]

    def count_matching(self, table: str, criteria: dict[str, str]) -> int:
        # A value that does not cast to the column type aborts the whole
        # transaction; the savepoint keeps the rest of the pass usable.
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.execute("SAVEPOINT count_matching")
        try:
            count = super().count_matching(table, criteria)
        except psycopg2.DataError as e:
            with conn.cursor() as cur:
                cur.execute("ROLLBACK TO SAVEPOINT count_matching")
            raise ComparisonFailure(str(e).strip()) from e
        with conn.cursor() as cur:
            cur.execute("RELEASE SAVEPOINT count_matching")
        return count

    def bulk_copy(self, table: str, columns: list[str], rows: Iterable[tuple]) -> None:
        cols = ", ".join(quote_identifier(c) for c in columns)
        sql = f"COPY {quote_identifier(table)} ({cols}) FROM STDIN WITH (FORMAT csv)"
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.copy_expert(sql, encode_copy_rows(rows))
