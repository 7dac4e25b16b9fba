"""Tests for the check_csv command line."""

import logging

from scripts.check_csv import main


def test_loads_and_reports(db_url, people, write_csv, caplog):
    path = write_csv(["name;age", "Al;30", "Alexandra;30"])
    with caplog.at_level(logging.INFO):
        code = main(["--db-url", db_url, "--file", str(path), "--table", people])
    assert code == 0
    assert caplog.text.count("Line 2: field 'name' too long (9/5) -> value='Alexandra'") == 1
    assert "Al | 30" in caplog.text
    assert "1 rows loaded" in caplog.text


def test_db_url_from_environment(db_url, people, write_csv, monkeypatch):
    monkeypatch.setenv("CSVCHECK_DB_URL", db_url)
    path = write_csv(["name,age", "Al,30"])
    assert main(["--file", str(path), "--table", people]) == 0


def test_missing_db_url(write_csv, monkeypatch, caplog):
    monkeypatch.delenv("CSVCHECK_DB_URL", raising=False)
    path = write_csv(["name,age", "Al,30"])
    assert main(["--file", str(path), "--table", "people"]) == 1
    assert "No database URL" in caplog.text


def test_unsupported_scheme(write_csv):
    path = write_csv(["name,age", "Al,30"])
    assert main(["--db-url", "mysql://x/y", "--file", str(path), "--table", "people"]) == 1


def test_abort_exit_code(db_url, write_csv):
    path = write_csv(["name,age", "Al,30"])
    assert main(["--db-url", db_url, "--file", str(path), "--table", "absent"]) == 1
