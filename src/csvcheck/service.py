"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from csvcheck.types import ColumnSpec, Params, ParamsList


def quote_identifier(name: str) -> str:
    """Double-quote a table or column name taken from catalog metadata."""
    return '"' + name.replace('"', '""') + '"'


class DatabaseService(ABC):
    """Database-agnostic interface for all store operations.

    Design principles:
    - One connection per service: schema reads, duplicate counts and loads
      run serially on it
    - Values are always bound as parameters; identifiers are quoted
    - DB-agnostic: the pipeline programs against this ABC, never a concrete backend
    """

    placeholder = "?"

    @abstractmethod
    def connect(self) -> None:
        """Open the connection. Raises ConnectionFailure."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection and release resources."""

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        """Execute a SQL statement for each parameter set."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: commits on success, rolls back on error."""

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, DROP TABLE, etc.)."""

    @abstractmethod
    def fetch_columns(self, table: str) -> list[ColumnSpec]:
        """Return the table's columns in declared order, empty if it does not exist."""

    @abstractmethod
    def bulk_copy(self, table: str, columns: list[str], rows: Iterable[tuple]) -> None:
        """Stream many rows into a table without per-row round trips."""

    def count_matching(self, table: str, criteria: dict[str, str]) -> int:
        """Count rows whose columns equal every value in ``criteria``."""
        if not criteria:
            raise ValueError("count_matching requires at least one column")
        where = " AND ".join(
            f"{quote_identifier(col)} = {self.placeholder}" for col in criteria
        )
        sql = f"SELECT COUNT(*) AS cnt FROM {quote_identifier(table)} WHERE {where}"
        rows = self.execute(sql, tuple(criteria.values()))
        return int(rows[0]["cnt"])

    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> None:
        """Insert rows with a parameterized INSERT."""
        if not rows:
            return
        cols = ", ".join(quote_identifier(c) for c in columns)
        placeholders = ", ".join(self.placeholder for _ in columns)
        sql = f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({placeholders})"
        self.execute_many(sql, rows)
