"""Target-table introspection."""

import logging

from csvcheck.errors import SchemaFailure
from csvcheck.service import DatabaseService
from csvcheck.types import ColumnSpec

logger = logging.getLogger(__name__)


def load_column_specs(service: DatabaseService, table: str) -> list[ColumnSpec]:
    """Fetch the table's columns from the live catalog, in declared order.

    An empty result means the table does not exist (the match on ``table`` is
    exact) and is raised as SchemaFailure rather than treated as "no
    constraints".
    """
    try:
        with service.transaction():
            columns = service.fetch_columns(table)
    except Exception as e:
        raise SchemaFailure(f"Cannot read catalog for table {table!r}: {e}") from e

    if not columns:
        raise SchemaFailure(f"Table {table!r} not found or has no columns")

    logger.info(
        "Table %s: %d columns (%s)",
        table,
        len(columns),
        ", ".join(
            c.name if c.max_length is None else f"{c.name}({c.max_length})" for c in columns
        ),
    )
    return columns
