"""Reading the delimited source file: separator inference and record parsing."""

import csv
import logging
from pathlib import Path
from typing import Iterator

from csvcheck.errors import DetectionFailure
from csvcheck.types import Row

logger = logging.getLogger(__name__)

SEPARATORS = (",", ";")


def choose_separator(header_line: str) -> str:
    """Return ";" iff it splits the header into strictly more fields than ","."""
    comma_fields = len(header_line.split(","))
    semicolon_fields = len(header_line.split(";"))
    return ";" if semicolon_fields > comma_fields else ","


def detect_separator(file_path: str | Path, encoding: str = "utf-8-sig") -> str:
    """Infer the field separator from the file's first line.

    Raises DetectionFailure if the file is empty, starts with a blank line,
    or cannot be read.
    """
    try:
        with open(file_path, newline="", encoding=encoding) as f:
            header_line = f.readline()
    except (OSError, UnicodeDecodeError) as e:
        raise DetectionFailure(f"Cannot read {file_path}: {e}") from e

    header_line = header_line.rstrip("\r\n")
    if not header_line.strip():
        raise DetectionFailure(f"No header line in {file_path}")

    separator = choose_separator(header_line)
    logger.info("Detected separator %r in %s", separator, file_path)
    return separator


def read_rows(
    file_path: str | Path, separator: str, encoding: str = "utf-8-sig"
) -> Iterator[tuple[int, Row]]:
    """Yield (line_number, row) for every data record after the header.

    Line numbers start at 1 and count records, not physical lines. Empty
    lines are skipped without consuming a number; a record of empty fields
    such as "," is still a record.
    """
    with open(file_path, newline="", encoding=encoding) as f:
        reader = csv.reader(f, delimiter=separator)
        header = next(reader, None)
        if header is None:
            return

        line_number = 0
        for values in reader:
            if not values:
                continue
            line_number += 1
            if len(values) > len(header):
                logger.warning(
                    "Line %d has %d values for %d header fields; extra values ignored",
                    line_number,
                    len(values),
                    len(header),
                )
            # zip stops at the shorter side: missing trailing fields stay absent
            yield line_number, dict(zip(header, values))
