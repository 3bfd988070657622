"""Reconciliation commands."""

import click
from bankrec.cli.error_handling import format_transaction_line, handle_domain_error
from bankrec.domain.entities import MatchOutcome, MatchStatus
from bankrec.domain.errors import DomainError
from bankrec.domain.reconciliation import ReconciliationService
from bankrec.domain.statement_import import StatementImportService
from bankrec.utils.date_parser import get_date_range, parse_date

STATUS_LABELS = {
    MatchStatus.SUCCESS: "posted",
    MatchStatus.ALREADY_CONSUMED: "already reconciled",
    MatchStatus.NO_RELEVANT_RULES: "no rules for category",
    MatchStatus.NO_RULE: "no matching rule",
    MatchStatus.CREATION_FAILED: "ledger entry failed",
    MatchStatus.MARK_FAILED: "posted, not marked",
}


def _outcome_line(outcome: MatchOutcome) -> str:
    mark = "✓" if outcome.status is MatchStatus.SUCCESS else "✗"
    line = f"{mark} {outcome.source_description:<50} {STATUS_LABELS[outcome.status]}"
    if outcome.matched_rule:
        line += f" [{outcome.matched_rule}]"
    if outcome.posted_description:
        line += f" -> '{outcome.posted_description}' ({outcome.expected_category.value})"
    return line


@click.command("pending")
@click.option("--start-date", help="Start date (YYYY-MM-DD or 'last month', ...)")
@click.option("--end-date", help="End date (YYYY-MM-DD)")
@click.option(
    "--period",
    type=click.Choice(["this-month", "last-month", "this-year", "last-year"]),
    help="Named period (overrides --start-date/--end-date)",
)
@click.pass_context
def list_pending(ctx, start_date: str, end_date: str, period: str):
    """List bank transactions not yet reconciled."""
    db = ctx.obj["db"]
    service = StatementImportService(db)

    start = end = None
    try:
        if period:
            start, end = get_date_range(period)
        else:
            start = parse_date(start_date) if start_date else None
            end = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    transactions = service.list_unconsumed(ctx.obj["owner"], start_date=start, end_date=end)
    if not transactions:
        click.echo("No pending transactions.")
        return

    click.echo(f"\n{len(transactions)} pending transaction(s):")
    click.echo("=" * 100)
    for txn in transactions:
        click.echo(format_transaction_line(txn))


@click.command("reconcile")
@click.argument("transaction_ids", nargs=-1, type=int)
@click.option("--dry-run", is_flag=True, help="Show which rules would apply without posting")
@click.pass_context
def reconcile_transactions(ctx, transaction_ids: tuple[int, ...], dry_run: bool):
    """Reconcile pending bank transactions into ledger entries.

    Without TRANSACTION_IDS every pending transaction is reconciled.

    Examples:
        bankrec reconcile
        bankrec reconcile 12 13 14
        bankrec reconcile --dry-run
    """
    db = ctx.obj["db"]
    owner = ctx.obj["owner"]
    service = ReconciliationService(db)
    statements = StatementImportService(db)

    try:
        pending = statements.list_unconsumed(owner)
        if transaction_ids:
            selected = set(transaction_ids)
            unknown = selected - {txn.id for txn in pending}
            for txn_id in sorted(unknown):
                click.echo(f"Warning: transaction {txn_id} is not pending, skipped", err=True)
            pending = [txn for txn in pending if txn.id in selected]

        if not pending:
            click.echo("No pending transactions to reconcile.")
            return

        if dry_run:
            for outcome in service.preview(owner, pending):
                click.echo(_outcome_line(outcome))
            return

        result = service.reconcile_selected(owner, [txn.id for txn in pending], pending)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if result.error:
        click.echo(f"Error: {result.error}", err=True)
        ctx.exit(1)

    for outcome in result.outcomes:
        click.echo(_outcome_line(outcome))
        if outcome.error:
            click.echo(f"    {outcome.error}", err=True)
        if outcome.tested_rules:
            click.echo(f"    tested: {', '.join(outcome.tested_rules)}")

    click.echo("\nReconciliation complete:")
    click.echo(f"  Processed: {result.processed_count}")
    click.echo(f"  Posted: {result.posted_count} ledger entries")
    click.echo(f"  Reconciled: {result.consumed_count} transactions")
    failures = result.processed_count - result.consumed_count
    if failures:
        click.echo(f"  Not reconciled: {failures}")


def register_commands(cli):
    """Register reconciliation commands with main CLI."""
    cli.add_command(list_pending)
    cli.add_command(reconcile_transactions)
