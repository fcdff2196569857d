"""Command-line interface for librarydb.

Built with Typer for commands and Rich for output. Every command works on a
snapshot file: it is loaded if present, the command is applied, and the
snapshot is written back when the catalog changed.
"""

import logging
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .backup.snapshot import SnapshotError
from .catalog import LibraryCatalog
from .config import get_config
from .db.schemas import LoanRecord
from .export.csv_export import CSVExporter
from .imports.csv_import import CSVImportError

# Create the main app
app = typer.Typer(
    name="librarydb",
    help="Manage a small library catalog: books, borrowers and loans.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


class RecordKind(str, Enum):
    """Which records a CSV command works on."""

    BOOKS = "books"
    BORROWERS = "borrowers"


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def configure_logging(level_name: str) -> None:
    """Send library log records through Rich at the configured level."""
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def open_catalog(ctx: typer.Context) -> LibraryCatalog:
    """Load the catalog from the snapshot file, or start an empty one."""
    path: Path = ctx.obj
    catalog = LibraryCatalog()
    if path.exists():
        try:
            catalog.read_from_file(path)
        except (OSError, SnapshotError) as e:
            print_error(f"Cannot read {path}: {e}")
            raise typer.Exit(1)
    return catalog


def save_catalog(ctx: typer.Context, catalog: LibraryCatalog) -> None:
    """Write the catalog back to the snapshot file."""
    path: Path = ctx.obj
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        catalog.write_to_file(path)
    except OSError as e:
        print_error(f"Cannot write {path}: {e}")
        raise typer.Exit(1)


def format_loan_table(loans: list[LoanRecord], title: str = "Loans") -> Table:
    """Create a rich table for displaying loans."""
    today = date.today()
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Call Number", style="cyan")
    table.add_column("Borrower", style="green")
    table.add_column("Loaned")
    table.add_column("Due", style="yellow")
    table.add_column("Renewed", justify="center")

    for loan in loans:
        due = loan.due_date.isoformat()
        if loan.is_overdue(today):
            due = f"[bold red]{due}[/bold red]"
        table.add_row(
            loan.call_number,
            loan.email,
            loan.loan_date.isoformat(),
            due,
            "yes" if loan.renewed else "-",
        )

    return table


# ============================================================================
# Global Options
# ============================================================================


@app.callback()
def main_options(
    ctx: typer.Context,
    db: Optional[Path] = typer.Option(
        None, "--db", "-d", help="Snapshot file (default: LIBRARYDB_PATH)"
    ),
) -> None:
    """Manage a small library catalog: books, borrowers and loans."""
    config = get_config()
    configure_logging(config.log_level)
    ctx.obj = db or config.db_path


# ============================================================================
# Books and Borrowers
# ============================================================================


@app.command("add-book")
def add_book(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Book title"),
    author: str = typer.Argument(..., help="Author"),
    call_number: str = typer.Argument(..., help="Unique call number"),
) -> None:
    """Add a book to the catalog."""
    catalog = open_catalog(ctx)
    try:
        catalog.add_book(title, author, call_number)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    print_success(f"Added: {title} by {author} ({call_number})")


@app.command("add-borrower")
def add_borrower(
    ctx: typer.Context,
    first_name: str = typer.Argument(..., help="First name"),
    last_name: str = typer.Argument(..., help="Last name"),
    email: str = typer.Argument(..., help="Unique email address"),
    phone: str = typer.Argument(..., help="Phone number"),
) -> None:
    """Add a borrower to the catalog."""
    catalog = open_catalog(ctx)
    try:
        catalog.add_borrower(first_name, last_name, email, phone)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    print_success(f"Added borrower: {first_name} {last_name} <{email}>")


@app.command("books")
def list_books(ctx: typer.Context) -> None:
    """List books in call number order."""
    catalog = open_catalog(ctx)
    call_numbers = catalog.get_call_numbers()

    if not call_numbers:
        console.print("[dim]No books found.[/dim]")
        return

    table = Table(title="Books", show_header=True, header_style="bold magenta")
    table.add_column("Call Number", style="cyan")
    table.add_column("Title", max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Due", style="yellow")

    for call_number in call_numbers:
        book = catalog.get_book(call_number)
        due = catalog.get_due_date(call_number)
        table.add_row(
            book.call_number,
            book.title,
            book.author,
            due.isoformat() if due else "-",
        )

    console.print(table)


@app.command("borrowers")
def list_borrowers(ctx: typer.Context) -> None:
    """List borrowers in email order."""
    catalog = open_catalog(ctx)
    emails = catalog.get_emails()

    if not emails:
        console.print("[dim]No borrowers found.[/dim]")
        return

    table = Table(title="Borrowers", show_header=True, header_style="bold magenta")
    table.add_column("Email", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Phone")
    table.add_column("Loans", justify="right")

    for email in emails:
        borrower = catalog.get_borrower(email)
        table.add_row(
            borrower.email,
            f"{borrower.first_name} {borrower.last_name}",
            borrower.phone,
            str(len(catalog.list_loans(email=email))),
        )

    console.print(table)


# ============================================================================
# Loan Commands
# ============================================================================


@app.command()
def checkout(
    ctx: typer.Context,
    call_number: str = typer.Argument(..., help="Book to check out"),
    email: str = typer.Argument(..., help="Borrower email"),
) -> None:
    """Check a book out to a borrower."""
    catalog = open_catalog(ctx)
    if not catalog.checkout(call_number, email):
        if catalog.get_book(call_number) is None:
            print_error(f"No book with call number: {call_number}")
        elif catalog.get_borrower(email) is None:
            print_error(f"No borrower with email: {email}")
        else:
            print_error(f"{call_number} is already checked out")
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    due = catalog.get_due_date(call_number)
    print_success(f"Checked out {call_number} to {email}, due {due.isoformat()}")


@app.command("return")
def return_book(
    ctx: typer.Context,
    call_number: str = typer.Argument(..., help="Book to return"),
) -> None:
    """Return a checked-out book."""
    catalog = open_catalog(ctx)
    if not catalog.return_book(call_number):
        print_error(f"{call_number} is not checked out")
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    print_success(f"Returned {call_number}")


@app.command()
def renew(
    ctx: typer.Context,
    call_number: str = typer.Argument(..., help="Book whose loan to renew"),
) -> None:
    """Renew a loan once, extending it by 28 days."""
    catalog = open_catalog(ctx)
    if not catalog.renew(call_number):
        loan = catalog.get_loan(call_number)
        if loan is None:
            print_error(f"{call_number} is not checked out")
        else:
            print_error(f"The loan of {call_number} has already been renewed")
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    due = catalog.get_due_date(call_number)
    print_success(f"Renewed {call_number}, now due {due.isoformat()}")


@app.command()
def status(
    ctx: typer.Context,
    call_number: str = typer.Argument(..., help="Book to show"),
) -> None:
    """Show a book and its loan, if any."""
    catalog = open_catalog(ctx)
    book = catalog.get_book(call_number)
    if book is None:
        print_error(f"No book with call number: {call_number}")
        raise typer.Exit(1)

    lines = [
        f"[bold]{book.title}[/bold]",
        f"by {book.author}",
        "",
    ]
    loan = catalog.get_loan(call_number)
    if loan is None:
        lines.append("[green]Available[/green]")
    else:
        lines.append(f"Checked out to {loan.email} on {loan.loan_date.isoformat()}")
        lines.append(f"Due: {loan.due_date.isoformat()}")
        lines.append("Renewed" if loan.renewed else "Not yet renewed")
        if loan.is_overdue():
            lines.append(f"[bold red]Overdue by {-loan.days_until_due()} days[/bold red]")

    console.print(Panel("\n".join(lines), title=book.call_number))


@app.command()
def loans(
    ctx: typer.Context,
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Only this borrower"),
) -> None:
    """List active loans."""
    catalog = open_catalog(ctx)
    records = catalog.list_loans(email=email)

    if not records:
        console.print("[dim]No active loans.[/dim]")
        return

    console.print(format_loan_table(records))


@app.command()
def overdue(ctx: typer.Context) -> None:
    """List overdue loans."""
    catalog = open_catalog(ctx)
    records = catalog.get_overdue_loans()

    if not records:
        console.print("[dim]No overdue loans.[/dim]")
        return

    console.print(format_loan_table(records, title="Overdue Loans"))


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show catalog statistics."""
    catalog = open_catalog(ctx)
    s = catalog.get_stats()

    table = Table(title="Catalog", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Books", str(s.total_books))
    table.add_row("Borrowers", str(s.total_borrowers))
    table.add_row("Checked out", str(s.checked_out))
    table.add_row("Available", str(s.available))
    table.add_row("Overdue", str(s.overdue))
    table.add_row("Renewed", str(s.renewed))
    console.print(table)


# ============================================================================
# CSV Commands
# ============================================================================


@app.command("export-csv")
def export_csv(
    ctx: typer.Context,
    kind: RecordKind = typer.Argument(..., help="books or borrowers"),
    output: Path = typer.Argument(..., help="CSV file to write"),
) -> None:
    """Export books or borrowers as quoted CSV."""
    catalog = open_catalog(ctx)
    exporter = CSVExporter(catalog.db)

    if kind == RecordKind.BOOKS:
        result = exporter.export_books(output)
    else:
        result = exporter.export_borrowers(output)

    if not result.success:
        print_error(f"Export failed: {result.error}")
        raise typer.Exit(1)

    print_success(f"Exported {result.records_exported} {kind.value} to {output}")


@app.command("import-csv")
def import_csv(
    ctx: typer.Context,
    kind: RecordKind = typer.Argument(..., help="books or borrowers"),
    source: Path = typer.Argument(..., help="CSV file to read"),
) -> None:
    """Import books or borrowers from quoted CSV."""
    catalog = open_catalog(ctx)
    try:
        text = source.read_text(encoding="utf-8")
        if kind == RecordKind.BOOKS:
            count = catalog.import_book_csv(text)
        else:
            count = catalog.import_borrower_csv(text)
    except (OSError, CSVImportError, ValueError) as e:
        print_error(f"Import failed: {e}")
        raise typer.Exit(1)

    save_catalog(ctx, catalog)
    print_success(f"Imported {count} {kind.value}")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"librarydb version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()
