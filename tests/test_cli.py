"""Tests for the sqlq CLI."""

import json
import sqlite3
from datetime import date

import click
import pytest
from click.testing import CliRunner

from sqlquery.cli.sqlq import (
    ResultPrinter,
    build_activity,
    cli,
    parse_param,
    parse_params,
    result_to_document,
)
from sqlquery.executor import LabeledResultSet, PositionalResultSet


@pytest.fixture
def sqlite_config(tmp_path):
    """Config file pointing at a small sqlite database."""
    db_path = tmp_path / "items.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("create table items (id integer, name text)")
    conn.executemany("insert into items values (?, ?)", [(1, "alpha"), (2, "beta")])
    conn.commit()
    conn.close()

    config_path = tmp_path / "sqlq.yaml"
    config_path.write_text(
        f"""
activity:
  dialect: sqlite
  dataSourceName: "{db_path}"
  query: "select id, name from items where id >= :min_id order by id"
logging:
  level: WARNING
"""
    )
    return str(config_path)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("n=42", ("n", 42)),
        ("flag=true", ("flag", True)),
        ("day=2024-01-01", ("day", date(2024, 1, 1))),
        ("name=hello world", ("name", "hello world")),
        ("quoted='007'", ("quoted", "007")),
        ("empty=", ("empty", None)),
        ("items=[1, 2]", ("items", "[1, 2]")),
        ("pair=a: b", ("pair", "a: b")),
        (" spaced =1", ("spaced", 1)),
    ],
)
def test_parse_param(text, expected):
    assert parse_param(text) == expected


@pytest.mark.parametrize("text", ["novalue", "=5"])
def test_parse_param_requires_name_and_equals(text):
    with pytest.raises(click.BadParameter):
        parse_param(text)


def test_parse_params_later_value_wins():
    assert parse_params(["a=1", "b=x", "a=2"]) == {"a": 2, "b": "x"}


def test_result_to_document():
    result = PositionalResultSet(columns=["id"], rows=[[1], [2]])

    assert result_to_document(result) == {"columns": ["id"], "rows": [[1], [2]]}


def test_printer_renders_labeled_rows_by_distinct_keys():
    lines = []
    printer = ResultPrinter(lines.append)
    result = LabeledResultSet(columns=["a", "b", "a"], rows=[{"a": 3, "b": None}])

    printer.display(result, 1.5)

    assert lines[1] == "| a | b    |"
    assert lines[3] == "| 3 | NULL |"
    assert lines[-1] == "1 rows in 1.50 ms"


def test_demo_query_table_output():
    runner = CliRunner()

    result = runner.invoke(cli, ["-p", "min_age=30"])

    assert result.exit_code == 0, result.output
    assert "in-memory DuckDB" in result.output
    assert "Alice" in result.output
    assert "Bob" in result.output
    assert "Diana" in result.output
    assert "Carlos" not in result.output
    assert "3 rows" in result.output


def test_demo_query_json_output():
    runner = CliRunner()

    result = runner.invoke(cli, ["--json", "-p", "min_age=40"])

    assert result.exit_code == 0, result.output
    document = json.loads(result.stdout)
    assert document["columns"] == ["id", "name", "age", "city"]
    assert document["rows"] == [[4, "Diana", 41, "Chicago"]]


def test_demo_query_labeled_json_output():
    runner = CliRunner()

    result = runner.invoke(cli, ["--json", "--labeled", "-p", "min_age=40"])

    assert result.exit_code == 0, result.output
    document = json.loads(result.stdout)
    assert document["rows"] == [{"id": 4, "name": "Diana", "age": 41, "city": "Chicago"}]


def test_config_file_query(sqlite_config):
    runner = CliRunner()

    result = runner.invoke(cli, ["-c", sqlite_config, "--json", "-p", "min_id=2"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["rows"] == [[2, "beta"]]


def test_build_activity_overrides_result_shape(sqlite_config):
    activity, note = build_activity(sqlite_config, labeled=True)

    with activity:
        assert note is None
        assert activity.labeled_results
        assert activity.query({"min_id": 1}).rows == [
            {"id": 1, "name": "alpha"},
            {"id": 2, "name": "beta"},
        ]


def test_failed_query_exits_nonzero(tmp_path):
    config_path = tmp_path / "broken.yaml"
    config_path.write_text(
        f"""
activity:
  dialect: sqlite
  dataSourceName: "{tmp_path / 'empty.db'}"
  query: "select * from missing_table where id = :id"
"""
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["-c", str(config_path), "-p", "id=1"])

    assert result.exit_code == 1
    assert "missing_table" in result.output


def test_malformed_param_is_a_usage_error():
    runner = CliRunner()

    result = runner.invoke(cli, ["-p", "min_age"])

    assert result.exit_code == 2
