"""Fatal error taxonomy for the validate-and-load pipeline.

Per-row problems are not exceptions: they are collected as
:class:`csvcheck.types.ValidationError` records.
"""


class CsvCheckError(Exception):
    """Base class for every fatal pipeline error."""


class DetectionFailure(CsvCheckError):
    """The field separator could not be inferred (empty or unreadable file)."""


class ConnectionFailure(CsvCheckError):
    """The store is unreachable or rejected the credentials."""


class SchemaFailure(CsvCheckError):
    """The target table was not found or the catalog could not be read."""


class LoadFailure(CsvCheckError):
    """The store rejected an insert or a bulk copy."""

    def __init__(self, message: str, loaded: int = 0):
        super().__init__(message)
        self.loaded = loaded


class ComparisonFailure(CsvCheckError):
    """A row's values cannot be compared with the table's column types.

    Raised by the duplicate count and reported against that row only.
    """
