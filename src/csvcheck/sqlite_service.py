"""SQLite implementation of DatabaseService."""

import logging
import re
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from csvcheck.errors import ConnectionFailure
from csvcheck.service import DatabaseService, quote_identifier
from csvcheck.types import ColumnSpec, Params, ParamsList

logger = logging.getLogger(__name__)

# VARCHAR(n), CHAR(n), CHARACTER VARYING(n), NVARCHAR(n), ...
_CHAR_LENGTH_RE = re.compile(r"CHAR[A-Z ]*\(\s*(\d+)\s*\)", re.IGNORECASE)


def declared_max_length(declared_type: str) -> int | None:
    """Extract the character limit from a declared column type, if any.

    SQLite does not enforce it, but the declaration is the schema's intent.
    """
    match = _CHAR_LENGTH_RE.search(declared_type or "")
    return int(match.group(1)) if match else None


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3."""

    placeholder = "?"

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._in_transaction = False

    def connect(self) -> None:
        try:
            conn = sqlite3.connect(self._db_path)
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            raise ConnectionFailure(f"Cannot open SQLite database {self._db_path}: {e}") from e
        self._conn = conn
        logger.debug("Connected to SQLite database %s", self._db_path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _get_conn(self) -> sqlite3.Connection:
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
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        conn.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        if self._conn is None:
            raise RuntimeError("Not connected. Call connect() first.")
        self._conn.executescript(sql)
        self._conn.commit()

    def fetch_columns(self, table: str) -> list[ColumnSpec]:
        rows = self.execute(
            "SELECT name, type FROM pragma_table_info(?) ORDER BY cid",
            (table,),
        )
        return [ColumnSpec(r["name"], declared_max_length(r["type"])) for r in rows]

    def bulk_copy(self, table: str, columns: list[str], rows: Iterable[tuple]) -> None:
        # No COPY protocol in SQLite; a single executemany keeps it in-process.
        cols = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({placeholders})"
        self._get_conn().executemany(sql, rows)
