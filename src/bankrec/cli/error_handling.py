"""CLI error handling and display helpers."""

from decimal import Decimal

import click

from bankrec.domain.entities import BankTransaction, Polarity
from bankrec.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def format_amount(amount: Decimal, polarity: Polarity) -> str:
    """Signed amount for display: credits positive, debits negative."""
    sign = "-" if polarity is Polarity.DEBIT else "+"
    return f"{sign}{amount:,.2f}"


def format_transaction_line(txn: BankTransaction) -> str:
    """One-line summary of a bank transaction."""
    status = "consumed" if txn.consumed else "pending"
    description = txn.description[:45]
    return (
        f"{txn.id:<6} {txn.date.isoformat()}  "
        f"{format_amount(txn.amount, txn.polarity):>14}  {description:<45}  {status}"
    )
