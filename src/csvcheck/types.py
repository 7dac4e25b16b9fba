"""Shared types for the csvcheck package."""

from dataclasses import dataclass, field

Row = dict[str, str]
Params = tuple | list | dict
ParamsList = list[tuple] | list[list]


@dataclass(frozen=True)
class ColumnSpec:
    """One target-table column. ``max_length`` is None for unbounded columns."""

    name: str
    max_length: int | None = None


@dataclass(frozen=True)
class ValidationError:
    """A single problem found on one line of the source file."""

    line_number: int
    message: str

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.message}"


@dataclass
class RowVerdict:
    line_number: int
    row: Row
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return not self.errors
