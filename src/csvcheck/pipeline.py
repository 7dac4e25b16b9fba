"""Validate-then-load pipeline orchestration."""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from csvcheck import create_service
from csvcheck.errors import CsvCheckError
from csvcheck.loader import BULK_THRESHOLD, collect_eligible_rows, load_rows
from csvcheck.schema import load_column_specs
from csvcheck.source import detect_separator
from csvcheck.types import Row, ValidationError
from csvcheck.validation import validate_file

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    START = "start"
    SEPARATOR_DETECTED = "separator_detected"
    STORE_CONNECTED = "store_connected"
    SCHEMA_LOADED = "schema_loaded"
    VALIDATED = "validated"
    LOADED = "loaded"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PipelineReport:
    state: PipelineState = PipelineState.START
    separator: str | None = None
    errors: list[ValidationError] = field(default_factory=list)
    eligible: list[Row] = field(default_factory=list)
    loaded: int = 0
    method: str | None = None
    failure: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE

    def lines(self) -> list[str]:
        """Human-readable report: errors, the rows to load, then the outcome."""
        out = [str(e) for e in self.errors]
        if self.eligible:
            out.append("Eligible rows (no duplicate, lengths within limits):")
            out.extend(" | ".join(row.values()) for row in self.eligible)
        if self.failure is not None:
            out.append(f"Aborted: {self.failure}")
        out.append(f"{self.loaded} rows loaded")
        return out


def run_pipeline(
    db_url: str,
    file_path: str | Path,
    table: str,
    bulk_threshold: int = BULK_THRESHOLD,
) -> PipelineReport:
    """Detect separator, connect, introspect, validate, report, load.

    Fatal failures end the run in the ABORTED state with ``report.failure``
    set. Rows committed before a load failure are counted in ``report.loaded``.
    """
    report = PipelineReport()

    try:
        report.separator = detect_separator(file_path)
    except CsvCheckError as e:
        return _abort(report, e)
    report.state = PipelineState.SEPARATOR_DETECTED

    try:
        service = create_service(db_url)
        service.connect()
    except (CsvCheckError, ValueError) as e:
        return _abort(report, e)
    report.state = PipelineState.STORE_CONNECTED

    try:
        columns = load_column_specs(service, table)
        report.state = PipelineState.SCHEMA_LOADED

        verdicts = validate_file(service, table, columns, file_path, report.separator)
        report.errors = [err for v in verdicts for err in v.errors]
        report.state = PipelineState.VALIDATED
        logger.info("%d validation errors", len(report.errors))

        rows = collect_eligible_rows(service, table, columns, file_path, report.separator)
        report.eligible = rows
        result = load_rows(service, table, columns, rows, bulk_threshold)
        report.loaded = result.loaded
        report.method = result.method
        report.state = PipelineState.LOADED
    except CsvCheckError as e:
        report.loaded = getattr(e, "loaded", 0)
        return _abort(report, e)
    except Exception as e:
        logger.exception("Unexpected store error")
        return _abort(report, e)
    finally:
        service.close()

    logger.info("%d rows loaded into %s", report.loaded, table)
    report.state = PipelineState.DONE
    return report


def _abort(report: PipelineReport, error: Exception) -> PipelineReport:
    logger.error("Aborted in state %s: %s", report.state.value, error)
    report.failure = error
    report.state = PipelineState.ABORTED
    return report
