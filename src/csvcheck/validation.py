"""Row classification: length limits and duplicate detection.

Both the reporting pass and the loading pass go through ``classify_row``, so
a row is excluded from the load exactly when an error is reported for it.
"""

import logging
from pathlib import Path

from csvcheck.errors import ComparisonFailure
from csvcheck.service import DatabaseService
from csvcheck.source import read_rows
from csvcheck.types import ColumnSpec, Row, RowVerdict, ValidationError

logger = logging.getLogger(__name__)

RowKey = tuple[tuple[str, str], ...]


def length_errors(
    line_number: int, row: Row, columns: list[ColumnSpec]
) -> list[ValidationError]:
    """One error per field whose value exceeds its column's maximum length."""
    limits = {c.name: c.max_length for c in columns}
    errors = []
    for name, value in row.items():
        limit = limits.get(name)
        if limit is None or len(value) <= limit:
            continue
        errors.append(
            ValidationError(
                line_number,
                f"field '{name}' too long ({len(value)}/{limit}) -> value='{value}'",
            )
        )
    return errors


def match_criteria(row: Row, columns: list[ColumnSpec]) -> dict[str, str]:
    """The row's fields that are table columns, in file order.

    Fields that are not table columns never reach the SQL text.
    """
    known = {c.name for c in columns}
    return {name: value for name, value in row.items() if name in known}


def classify_row(
    service: DatabaseService,
    table: str,
    columns: list[ColumnSpec],
    line_number: int,
    row: Row,
    seen: dict[RowKey, int] | None = None,
) -> RowVerdict:
    """Check one row and return its verdict. Must run inside a transaction.

    ``seen`` maps rows already classified in the current pass to their line
    number; pass the same dict for every row of a pass to catch repeats
    within the file. The store count itself only sees rows committed before
    the run, since loading happens after both passes; a repeat inside the
    file is reported separately as "duplicate of line N in file" so that
    identical records are not loaded twice.

    Values the store cannot compare with a column's type are reported as an
    error on this row; the pass goes on with the next one.
    """
    verdict = RowVerdict(line_number, row, length_errors(line_number, row, columns))

    criteria = match_criteria(row, columns)
    if not criteria:
        # A vacuous predicate would match the whole table.
        return verdict
    key = tuple(criteria.items())

    try:
        count = service.count_matching(table, criteria)
    except ComparisonFailure as e:
        verdict.errors.append(
            ValidationError(
                line_number,
                f"values do not fit the column types ({e}) -> {', '.join(row.values())}",
            )
        )
        count = None

    if count:
        verdict.errors.append(
            ValidationError(
                line_number,
                f"duplicate found in table -> {', '.join(row.values())}",
            )
        )
    elif count == 0 and seen is not None and key in seen:
        verdict.errors.append(
            ValidationError(
                line_number,
                f"duplicate of line {seen[key]} in file -> {', '.join(row.values())}",
            )
        )

    if seen is not None:
        seen.setdefault(key, line_number)
    return verdict


def validate_file(
    service: DatabaseService,
    table: str,
    columns: list[ColumnSpec],
    file_path: str | Path,
    separator: str,
) -> list[RowVerdict]:
    """Classify every record of the file. Never stops on a bad row."""
    seen: dict[RowKey, int] = {}
    verdicts = []
    with service.transaction():
        for line_number, row in read_rows(file_path, separator):
            verdict = classify_row(service, table, columns, line_number, row, seen)
            for error in verdict.errors:
                logger.debug("%s", error)
            verdicts.append(verdict)

    rejected = sum(1 for v in verdicts if not v.eligible)
    logger.info("Validated %d rows: %d rejected", len(verdicts), rejected)
    return verdicts
