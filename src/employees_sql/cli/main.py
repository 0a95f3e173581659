"""Command Line Interface for employees-sql."""

import csv
import io
import logging
import sys
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tabulate import tabulate

from ..config.settings import get_settings
from ..database.connection import get_db_connection, ping
from ..database.exceptions import QueryError
from ..database.models import QueryDescriptor
from ..database.runner import QueryRunner, RowStream
from .. import reports as report_catalog
from ..reports import Report

logger = logging.getLogger(__name__)

# Initialize CLI app
app = typer.Typer(
    name="employees-sql",
    help="Run parameterized report queries against the MySQL employees database.",
    add_completion=False
)

# Rich console for table output
console = Console()

OUTPUT_FORMATS = ("table", "json", "csv", "plain", "log")
MAX_TABLE_ROWS = 50

# Global variables
db_connection = None
settings = None
runner = QueryRunner()


def setup_logging(debug: bool = False, echo: bool = False) -> None:
    """Set up logging configuration."""
    current = settings or get_settings()
    debug = debug or current.debug
    level = logging.DEBUG if debug else getattr(logging, current.log_level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if current.log_file:
        handlers.append(logging.FileHandler(current.log_file))
    handlers.append(logging.StreamHandler(sys.stdout) if debug or echo else logging.NullHandler())

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def initialize_components() -> bool:
    """Load settings and the database connection factory."""
    global db_connection, settings

    try:
        settings = get_settings()
        db_connection = get_db_connection()
        return True
    except Exception as e:
        console.print(f"[red]Initialization failed: {escape(str(e))}[/red]")
        return False


def resolve_format(output_format: Optional[str]) -> str:
    """Validate the requested output format, falling back to the configured one."""
    chosen = (output_format or (settings or get_settings()).default_output_format).lower()
    if chosen not in OUTPUT_FORMATS:
        console.print(f"[red]Unknown output format '{chosen}'. Choose one of: {', '.join(OUTPUT_FORMATS)}[/red]")
        raise typer.Exit(2)
    return chosen


def display_rows(rows: RowStream, output_format: str = "table", report: Optional[Report] = None) -> int:
    """Display streamed rows in the given format and return how many were read."""
    output_format = output_format.lower()
    count = 0

    if output_format == "log":
        for row in rows:
            count += 1
            if report is not None and report.line_template:
                logger.info(report.format_row(row))
            else:
                logger.info(", ".join(f"{column}: {value}" for column, value in row.items()))

    elif output_format == "json":
        data = [row.to_dict() for row in rows]
        count = len(data)
        if data:
            console.print_json(data=data, indent=2, default=str)

    elif output_format == "csv":
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(rows.columns)
        for row in rows:
            count += 1
            writer.writerow([row[column] for column in rows.columns])
        if count:
            console.print(output.getvalue(), end="", markup=False, highlight=False, soft_wrap=True)

    elif output_format == "plain":
        data = [[row[column] for column in rows.columns] for row in rows]
        count = len(data)
        if data:
            console.print(tabulate(data, headers=rows.columns, missingval=""), markup=False, highlight=False, soft_wrap=True)

    else:  # table format (default)
        table = Table(show_header=True, header_style="bold magenta")

        for column in rows.columns:
            table.add_column(escape(column))

        for row in rows:
            count += 1
            # Keep reading past the display limit to report the total
            if count <= MAX_TABLE_ROWS:
                table.add_row(*[escape(row[column] or "") for column in rows.columns])

        if count:
            console.print(table)
        if count > MAX_TABLE_ROWS:
            console.print(f"[yellow]Showing first {MAX_TABLE_ROWS} of {count} results[/yellow]")

    if count == 0:
        console.print("[yellow]No results found.[/yellow]")

    return count


def run_report(connection, report: Report, output_format: str = "table") -> int:
    """Execute one report over ``connection`` and display its rows."""
    console.print(f"\n[bold]{escape(report.title)}[/bold]")
    logger.debug(f"Running report '{report.name}'")

    with runner.execute(connection, report.descriptor) as rows:
        return display_rows(rows, output_format, report)


def run_single(report: Report, output_format: Optional[str], debug: bool) -> None:
    """Shared body of the single-report commands."""
    if not initialize_components():
        raise typer.Exit(1)

    output_format = resolve_format(output_format)
    setup_logging(debug, echo=output_format == "log")

    try:
        with db_connection.get_connection() as connection:
            run_report(connection, report, output_format)
    except QueryError as e:
        logger.error(f"Report '{report.name}' failed: {e}")
        console.print(f"[red]✗ {escape(report.title)} failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command()
def report(
    departments: Optional[List[str]] = typer.Option(None, "--department", "-D", help="Department number to count (repeatable)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    keep_going: bool = typer.Option(False, "--keep-going", "-k", help="Run the remaining reports after a failure"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """Run the standard sequence of employee reports over one connection."""
    if not initialize_components():
        raise typer.Exit(1)

    output_format = resolve_format(output_format)
    setup_logging(debug, echo=output_format == "log")

    reports = report_catalog.default_reports(departments or settings.departments)
    failures: List[str] = []
    completed: List[str] = []

    try:
        with db_connection.get_connection() as connection:
            for item in reports:
                try:
                    run_report(connection, item, output_format)
                    completed.append(item.name)
                except QueryError as e:
                    logger.error(f"Report '{item.name}' failed: {e}")
                    console.print(f"[red]✗ {escape(item.title)} failed: {escape(str(e))}[/red]")
                    failures.append(item.name)
                    if not keep_going:
                        break
    except QueryError as e:
        logger.error(f"Error while working with the database: {e}")
        console.print(f"[red]✗ Database error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if failures:
        console.print(f"\n[red]Failed reports: {', '.join(failures)}[/red]")
        console.print(f"[dim]Completed {len(completed)} of {len(reports)} reports[/dim]")
        raise typer.Exit(1)

    console.print(f"\n[green]✓ Completed {len(reports)} reports[/green]")


@app.command()
def department(
    dept_no: str = typer.Argument(..., help="Department number, e.g. d001"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """Count the employees of one department."""
    run_single(report_catalog.employees_in_department(dept_no), output_format, debug)


@app.command()
def by_department(
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """Count the employees of every department."""
    run_single(report_catalog.employees_by_department(), output_format, debug)


@app.command()
def salaries(
    by_gender: bool = typer.Option(False, "--by-gender", "-g", help="Also group by gender"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """Show the average salary per department."""
    if by_gender:
        item = report_catalog.average_salary_by_department_and_gender()
    else:
        item = report_catalog.average_salary_by_department()
    run_single(item, output_format, debug)


@app.command()
def employees(
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Stop after this many employees"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """List employee names."""
    run_single(report_catalog.all_employees(limit), output_format, debug)


@app.command()
def sql(
    statement: str = typer.Argument(..., help="SQL text with ? placeholders"),
    params: Optional[List[str]] = typer.Option(None, "--param", "-p", help="Positional parameter value (repeatable)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: table, json, csv, plain, log"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging")
) -> None:
    """Run an ad-hoc parameterized query."""
    item = Report(
        name="ad-hoc",
        title="Query results",
        descriptor=QueryDescriptor(statement, params or ()),
        line_template="",
    )
    try:
        item.descriptor.validate()
    except QueryError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    run_single(item, output_format, debug)


@app.command()
def test_connection() -> None:
    """Test database connection."""
    if not initialize_components():
        raise typer.Exit(1)
    setup_logging(False)

    console.print("Testing database connection...")

    try:
        with db_connection.get_connection() as connection:
            ping(connection, runner)
    except QueryError as e:
        console.print(f"[red]✗ Database connection failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Database connection successful![/green] ({settings.db_host}:{settings.db_port}/{settings.db_name})")


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"employees-sql v{__version__}")


if __name__ == "__main__":
    app()
