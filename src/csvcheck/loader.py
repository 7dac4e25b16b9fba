"""Loading eligible rows into the target table."""

import logging
from dataclasses import dataclass
from pathlib import Path

from csvcheck.errors import LoadFailure
from csvcheck.service import DatabaseService
from csvcheck.types import ColumnSpec, Row, RowVerdict
from csvcheck.validation import validate_file

logger = logging.getLogger(__name__)

BULK_THRESHOLD = 100


@dataclass
class LoadResult:
    loaded: int
    method: str | None = None  # "insert", "copy", or None when nothing was written


def select_eligible(verdicts: list[RowVerdict]) -> list[Row]:
    """Rows with no length violation and no duplicate."""
    return [v.row for v in verdicts if v.eligible]


def collect_eligible_rows(
    service: DatabaseService,
    table: str,
    columns: list[ColumnSpec],
    file_path: str | Path,
    separator: str,
) -> list[Row]:
    """Re-read the file and recompute every verdict to pick the rows to load."""
    return select_eligible(validate_file(service, table, columns, file_path, separator))


def row_values(row: Row, columns: list[ColumnSpec]) -> tuple:
    """Map a row onto the table's column order; missing fields become NULL."""
    return tuple(row.get(c.name) for c in columns)


def load_rows(
    service: DatabaseService,
    table: str,
    columns: list[ColumnSpec],
    rows: list[Row],
    bulk_threshold: int = BULK_THRESHOLD,
) -> LoadResult:
    """Write rows to the table, one INSERT each up to the threshold, COPY above it.

    Row-by-row inserts commit individually, so a LoadFailure reports how many
    rows made it in. The bulk path is one transaction: on failure nothing is
    kept.
    """
    if not rows:
        logger.info("No eligible rows; nothing to load")
        return LoadResult(loaded=0)

    names = [c.name for c in columns]
    values = [row_values(row, columns) for row in rows]
    missing = sum(1 for v in values if None in v)
    if missing:
        logger.warning("%d rows lack some table columns; loading NULL for those", missing)

    if len(values) > bulk_threshold:
        try:
            with service.transaction():
                service.bulk_copy(table, names, values)
        except Exception as e:
            raise LoadFailure(f"Bulk copy into {table} failed: {e}", loaded=0) from e
        logger.info("Bulk-copied %d rows into %s", len(values), table)
        return LoadResult(loaded=len(values), method="copy")

    loaded = 0
    for params in values:
        try:
            with service.transaction():
                service.batch_insert(table, names, [params])
        except Exception as e:
            raise LoadFailure(
                f"Insert into {table} failed after {loaded} rows: {e}", loaded=loaded
            ) from e
        loaded += 1
    logger.info("Inserted %d rows into %s", loaded, table)
    return LoadResult(loaded=loaded, method="insert")
