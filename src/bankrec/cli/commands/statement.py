"""Statement management commands."""

import click
from bankrec.cli.error_handling import (
    format_transaction_line,
    handle_domain_error,
)
from bankrec.domain.entities import Polarity
from bankrec.domain.errors import DomainError
from bankrec.domain.statement_import import StatementImportService


@click.group("statement")
def statement_group():
    """Import and manage bank statements."""
    pass


@statement_group.command("import")
@click.argument("ofx_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_statement(ctx, ofx_file: str):
    """Import an OFX statement file."""
    db = ctx.obj["db"]
    service = StatementImportService(db)

    try:
        statement, transactions = service.import_file(ctx.obj["owner"], ofx_file)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    credits = sum(1 for t in transactions if t.polarity is Polarity.CREDIT)
    click.echo("\nImport complete:")
    click.echo(f"  Statement ID: {statement.id}")
    click.echo(f"  Bank: {statement.institution_name} (account {statement.account_id})")
    click.echo(f"  Statement date: {statement.statement_date.isoformat()}")
    click.echo(f"  Balance: {statement.balance:,.2f}")
    click.echo(f"  Imported: {len(transactions)} transactions")
    click.echo(f"  Credits: {credits}, Debits: {len(transactions) - credits}")


@statement_group.command("list")
@click.pass_context
def list_statements(ctx):
    """List imported statements."""
    db = ctx.obj["db"]
    service = StatementImportService(db)

    statements = service.list_statements(ctx.obj["owner"])
    if not statements:
        click.echo("No statements found.")
        return

    click.echo(f"\n{'ID':<6} {'Date':<12} {'Bank':<20} {'Account':<16} {'Balance':>14}  File")
    click.echo("-" * 90)
    for stmt in statements:
        click.echo(
            f"{stmt.id:<6} {stmt.statement_date.isoformat():<12} "
            f"{stmt.institution_name[:20]:<20} {stmt.account_id[:16]:<16} "
            f"{stmt.balance:>14,.2f}  {stmt.source_file_name}"
        )


@statement_group.command("show")
@click.argument("statement_id", type=int)
@click.pass_context
def show_statement(ctx, statement_id: int):
    """Show the transactions of a statement."""
    db = ctx.obj["db"]
    service = StatementImportService(db)
    owner = ctx.obj["owner"]

    try:
        transactions = service.list_transactions(owner, statement_id=statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    statement = service.get_statement(owner, statement_id)
    click.echo(
        f"\nStatement {statement.id}: {statement.institution_name} "
        f"account {statement.account_id}, {len(transactions)} transaction(s)"
    )
    click.echo("=" * 100)
    for txn in transactions:
        click.echo(format_transaction_line(txn))


@statement_group.command("delete")
@click.argument("statement_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_statement(ctx, statement_id: int, yes: bool):
    """Delete a statement and all of its transactions."""
    db = ctx.obj["db"]
    service = StatementImportService(db)

    if not yes:
        click.confirm(
            f"Delete statement {statement_id} and all its transactions?", abort=True
        )

    try:
        service.delete_statement(ctx.obj["owner"], statement_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted statement {statement_id}")


@statement_group.command("reset")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def reset_statements(ctx, yes: bool):
    """Delete every statement and bank transaction (rules are kept)."""
    db = ctx.obj["db"]
    service = StatementImportService(db)

    if not yes:
        click.confirm("Delete ALL statements and bank transactions?", abort=True)

    try:
        count = service.reset_all(ctx.obj["owner"])
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted {count} statement(s)")


def register_commands(cli):
    """Register statement commands with main CLI."""
    cli.add_command(statement_group)
