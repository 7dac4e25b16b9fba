"""Shared test fixtures."""

from pathlib import Path

import pytest

from csvcheck import create_service

PEOPLE_DDL = "CREATE TABLE people (name VARCHAR(5), age VARCHAR(3))"


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def db_service(db_url):
    """Provide a fresh SQLite DatabaseService for each test."""
    service = create_service(db_url)
    service.connect()
    yield service
    service.close()


@pytest.fixture
def people(db_service):
    """The people(name varchar(5), age varchar(3)) table, empty."""
    db_service.execute_ddl(PEOPLE_DDL)
    return "people"


@pytest.fixture
def write_csv(tmp_path):
    """Write raw lines to a file and return its path."""

    def _write(lines: list[str], name: str = "input.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
