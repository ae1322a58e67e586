"""Command-line front end: run the configured query with typed parameters."""

from __future__ import annotations

import json
import shlex
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import click
import yaml
from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory

from ..activity import SQLQueryActivity
from ..config import ActivitySettings, LoggingConfig, load_config
from ..errors import SQLQueryError
from ..executor import LabeledResultSet, ResultSet
from ..utils.logging import setup_logging

DEMO_QUERY = (
    "select id, name, age, city from demo_users "
    "where age >= :min_age order by id"
)


def parse_param(text: str) -> Tuple[str, Any]:
    """Split ``name=value``; the value is read as a YAML scalar.

    ``42`` stays an int, ``true`` a bool, ``null`` None and
    ``2024-01-01`` a date. Anything that is not a scalar stays text.
    """
    name, sep, raw = text.partition("=")
    name = name.strip()
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got {text!r}")
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return name, raw
    if isinstance(value, (dict, list)):
        return name, raw
    return name, value


def parse_params(items: Sequence[str]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for item in items:
        name, value = parse_param(item)
        params[name] = value
    return params


def result_to_document(result: ResultSet) -> Dict[str, Any]:
    """JSON-ready form of a result set."""
    return {"columns": list(result.columns), "rows": result.rows}


class ResultPrinter:
    """Formats result sets for CLI display."""

    def __init__(self, emit):
        self.emit = emit

    def display(self, result: ResultSet, elapsed_ms: float) -> None:
        headers, rows = self._build_rows(result)
        lines = self._format_table(headers, rows)
        for line in lines:
            self.emit(line)
        summary = f"{len(rows)} rows in {elapsed_ms:.2f} ms"
        self.emit(summary)

    def display_json(self, result: ResultSet) -> None:
        document = result_to_document(result)
        self.emit(json.dumps(document, indent=2, default=str))

    def _build_rows(self, result: ResultSet) -> Tuple[List[str], List[List[object]]]:
        if isinstance(result, LabeledResultSet):
            headers = result.keys()
            rows = []
            for mapping in result.rows:
                rows.append([mapping.get(key) for key in headers])
            return headers, rows
        return list(result.columns), [list(row) for row in result.rows]

    def _format_table(self, headers: List[str], rows: List[List[object]]) -> List[str]:
        widths = self._compute_widths(headers, rows)
        border = self._build_border(widths)
        lines: List[str] = []
        lines.append(border)
        lines.append(self._format_row(headers, widths))
        lines.append(border)
        for row in rows:
            string_values = self._stringify_row(row)
            lines.append(self._format_row(string_values, widths))
        lines.append(border)
        return lines

    def _compute_widths(self, headers: List[str], rows: List[List[object]]) -> List[int]:
        widths = [len(header) for header in headers]
        for row in rows:
            for index, value in enumerate(row):
                text = self._stringify_cell(value)
                if len(text) > widths[index]:
                    widths[index] = len(text)
        return widths

    def _build_border(self, widths: List[int]) -> str:
        parts: List[str] = ["+"]
        for width in widths:
            parts.append("-" * (width + 2))
            parts.append("+")
        return "".join(parts)

    def _format_row(self, values: List[str], widths: List[int]) -> str:
        parts: List[str] = ["|"]
        for value, width in zip(values, widths):
            parts.append(f" {value.ljust(width)} ")
            parts.append("|")
        return "".join(parts)

    def _stringify_row(self, row: List[object]) -> List[str]:
        return [self._stringify_cell(value) for value in row]

    def _stringify_cell(self, value: object) -> str:
        if value is None:
            return "NULL"
        return str(value)


class QueryRunnerCLI:
    """Runs the activity for one parameter set and prints the outcome."""

    def __init__(self, activity: SQLQueryActivity, printer: ResultPrinter, as_json: bool):
        self.activity = activity
        self.printer = printer
        self.as_json = as_json

    def run(self, params: Dict[str, Any]) -> bool:
        """Execute once; returns False if the invocation failed."""
        try:
            start = time.time()
            result = self.activity.query(params)
            elapsed = (time.time() - start) * 1000
        except SQLQueryError as exc:
            click.echo(f"error: {exc}", err=True)
            return False
        if self.as_json:
            self.printer.display_json(result)
        else:
            self.printer.display(result, elapsed)
        return True


class SQLQueryRepl:
    """Interactive loop: each line is a set of NAME=VALUE parameters."""

    def __init__(self, runner: QueryRunnerCLI, activity: SQLQueryActivity):
        self.runner = runner
        self.activity = activity
        self.session = self._create_session()

    def _create_session(self) -> PromptSession:
        """Create prompt session backed by persistent history."""
        history_file = self._history_path()
        history = FileHistory(str(history_file))
        auto_suggest = AutoSuggestFromHistory()
        return PromptSession(history=history, auto_suggest=auto_suggest)

    def _history_path(self) -> Path:
        history_path = Path(".sqlq_history")
        if not history_path.exists():
            history_path.touch()
        return history_path

    def run(self) -> None:
        while True:
            line = self._read_line()
            if line is None:
                break
            if not line.strip():
                continue
            if self._is_exit_command(line):
                break
            if line.strip().startswith("."):
                self._execute_shortcut(line)
                continue
            self._execute_line(line)

    def _read_line(self) -> Optional[str]:
        try:
            return self.session.prompt("sqlq> ")
        except EOFError:
            click.echo("")
            return None
        except KeyboardInterrupt:
            click.echo("")
            return ""

    def _is_exit_command(self, line: str) -> bool:
        return line.strip().lower() in ("\\q", "quit", "exit")

    def _execute_shortcut(self, line: str) -> None:
        trimmed = line.strip().lower()
        if trimmed == ".query":
            statement = self.activity.statement
            click.echo(statement.template)
            click.echo(f"prepared: {statement.prepared_sql}")
            click.echo(f"parameters: {', '.join(statement.placeholder_names) or '-'}")
        else:
            click.echo(f"Unknown shortcut: {line.strip()}")
            click.echo("Available shortcuts: .query")

    def _execute_line(self, line: str) -> None:
        try:
            params = parse_params(shlex.split(line))
        except (click.BadParameter, ValueError) as exc:
            click.echo(f"error: {exc}", err=True)
            return
        self.runner.run(params)


def _load_settings(config_path: Optional[str]) -> Tuple[ActivitySettings, Optional[str]]:
    if config_path:
        config = load_config(config_path)
        setup_logging(config.logging)
        return config.activity, None
    setup_logging(LoggingConfig(level="WARNING"))
    settings = ActivitySettings(dialect="duckdb", query=DEMO_QUERY, data_source_name=":memory:")
    return settings, "Using in-memory DuckDB data source with demo tables."


def _seed_demo_data(activity: SQLQueryActivity) -> None:
    with activity.connection_manager.connection() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS demo_users (
                id INTEGER,
                name VARCHAR,
                age INTEGER,
                city VARCHAR
            )
            """
        )
        conn.execute("DELETE FROM demo_users")
        conn.execute(
            """
            INSERT INTO demo_users VALUES
            (1, 'Alice', 30, 'New York'),
            (2, 'Bob', 34, 'Boston'),
            (3, 'Carlos', 28, 'Austin'),
            (4, 'Diana', 41, 'Chicago'),
            (5, 'Eve', 25, 'Seattle')
            """
        )


def build_activity(
    config_path: Optional[str], labeled: Optional[bool] = None
) -> Tuple[SQLQueryActivity, Optional[str]]:
    """Create the activity from a config file, or the DuckDB demo."""
    settings, note = _load_settings(config_path)
    if labeled is not None:
        settings.labeled_results = labeled
    activity = SQLQueryActivity(settings)
    if note:
        _seed_demo_data(activity)
    return activity, note


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="Path to YAML config file. Defaults to an in-memory DuckDB demo.",
)
@click.option(
    "-p",
    "--param",
    "params",
    multiple=True,
    metavar="NAME=VALUE",
    help="Query argument; repeat for several placeholders.",
)
@click.option(
    "--labeled/--positional",
    default=None,
    help="Override the configured result shape.",
)
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON.")
@click.option("-i", "--interactive", is_flag=True, help="Read parameter sets interactively.")
def cli(
    config_path: Optional[str],
    params: Tuple[str, ...],
    labeled: Optional[bool],
    as_json: bool,
    interactive: bool,
) -> None:
    """Run a templated select query against the configured database."""
    arguments = parse_params(params)
    try:
        activity, note = build_activity(config_path, labeled)
    except SQLQueryError as exc:
        raise click.ClickException(str(exc)) from exc

    with activity:
        if note and not as_json:
            click.echo(note)
        runner = QueryRunnerCLI(activity, ResultPrinter(click.echo), as_json)
        if interactive:
            names = ", ".join(dict.fromkeys(activity.statement.placeholder_names))
            click.echo(f"Parameters: {names or '-'}. Enter NAME=VALUE pairs; \\q to exit.")
            SQLQueryRepl(runner, activity).run()
            return
        if not runner.run(arguments):
            raise SystemExit(1)


if __name__ == "__main__":
    cli()
