import codecs
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from extrato.importer import (
    UnsupportedBankError, detect_parser, list_supported_banks, process_file, read_statement, signed_amount,
)
from extrato.logging_config import setup_logging
from extrato.models import AUTO
from extrato.registry import registry
from extrato.settings import get_default_bank, load_settings, update_settings

app = typer.Typer(help="Extrato: import Brazilian bank statements (CSV/OFX).", invoke_without_command=True)

console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log parser activity")):
    """Extrato: import Brazilian bank statements (CSV/OFX)."""
    setup_logging(logging.DEBUG if verbose else load_settings()["log_level"])


@app.command()
def banks():
    """List the banks and formats that can be selected manually."""
    table = Table(title="Supported banks")
    table.add_column("Code", style="dim")
    table.add_column("Bank")
    table.add_column("Formats")
    table.add_column("Description")
    for info in list_supported_banks():
        table.add_row(info.bank_code, info.bank_name, ", ".join(info.supported_formats), info.description)
    console.print(table)


@app.command()
def detect(
    file: Path = typer.Argument(help="Statement file to inspect"),
    encoding: str = typer.Option(None, help="File encoding (default from settings)"),
):
    """Show which bank format a file would be parsed as."""
    content = read_statement(file, encoding or load_settings()["encoding"])
    parser = detect_parser(file.name, content)
    if parser is None:
        typer.echo(f"Could not detect the format of {file.name}")
        raise typer.Exit(1)
    info = parser.get_info()
    typer.echo(f"{info.bank_code}: {info.bank_name}")


@app.command("parse")
def parse_cmd(
    file: Path = typer.Argument(help="CSV or OFX statement to parse"),
    bank: str = typer.Option(None, "--bank", help="Bank code, or AUTO to detect (default from settings)"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    encoding: str = typer.Option(None, help="File encoding (default from settings)"),
):
    """Parse a statement and show its transactions and summary."""
    content = read_statement(file, encoding or load_settings()["encoding"])
    try:
        processed = process_file(file.name, content, bank or get_default_bank())
    except UnsupportedBankError as e:
        typer.echo(str(e))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(processed.to_dict(), indent=2, ensure_ascii=False, default=str))
        if not processed.success:
            raise typer.Exit(1)
        return

    table = Table(title=f"{file.name} ({processed.bank_detected})")
    table.add_column("Date", style="dim")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    table.add_column("FITID", style="dim")
    for t in processed.transactions:
        table.add_row(t.date, t.description, f"{signed_amount(t):,.2f}", t.type, t.fitid or "")
    console.print(table)

    s = processed.summary
    typer.echo(
        f"{s.total} transactions: {s.income} income ({s.total_income:,.2f}), "
        f"{s.expense} expense ({s.total_expense:,.2f})"
    )
    for warning in processed.warnings:
        typer.echo(f"warning: {warning}")
    for error in processed.errors:
        typer.echo(f"error: {error}")
    if not processed.success:
        raise typer.Exit(1)


@app.command()
def config(
    default_bank: str = typer.Option(None, help="Bank code used when --bank is omitted"),
    encoding: str = typer.Option(None, help="Encoding used to read statement files"),
    log_level: str = typer.Option(None, help="Log level: DEBUG, INFO, WARNING, ERROR"),
):
    """Show or update settings."""
    settings = load_settings()
    if default_bank is not None and default_bank.upper() != AUTO and default_bank.upper() not in registry:
        typer.echo(f"Unknown bank code: {default_bank}")
        raise typer.Exit(1)
    if encoding is not None:
        try:
            codecs.lookup(encoding)
        except LookupError:
            typer.echo(f"Unknown encoding: {encoding}")
            raise typer.Exit(1)

    if any(value is not None for value in (default_bank, encoding, log_level)):
        settings = update_settings(default_bank=default_bank, encoding=encoding, log_level=log_level)
    for key, value in settings.items():
        typer.echo(f"{key}: {value}")
