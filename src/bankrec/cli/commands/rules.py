"""Reconciliation rule commands."""

import click
from bankrec.cli.error_handling import handle_domain_error
from bankrec.domain.entities import LedgerCategory
from bankrec.domain.errors import DomainError
from bankrec.domain.rules import RuleService


@click.group()
def rules_group():
    """Manage reconciliation rules."""
    pass


@rules_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include disabled rules")
@click.pass_context
def list_rules(ctx, show_all: bool):
    """List reconciliation rules.

    The first time rules are used, a default set covering common bank
    descriptions is created.
    """
    db = ctx.obj["db"]
    service = RuleService(db)
    owner = ctx.obj["owner"]

    rules = service.list_rules(owner) if show_all else service.list_active_rules(owner)
    if not rules:
        click.echo("No rules found.")
        return

    click.echo(f"\n{'ID':<5} {'Name':<22} {'Pattern':<24} {'Category':<9} Flags")
    click.echo("-" * 80)
    for rule in rules:
        flags = []
        if not rule.active:
            flags.append("disabled")
        if not rule.auto_apply:
            flags.append("manual")
        if not rule.use_original_description:
            flags.append(f"fixed:'{rule.target_description}'")
        pattern = rule.match_pattern or "(any)"
        click.echo(
            f"{rule.id:<5} {rule.name[:22]:<22} {pattern[:24]:<24} "
            f"{rule.target_category.value:<9} {' '.join(flags)}"
        )


@rules_group.command("add")
@click.argument("name")
@click.option(
    "--category",
    required=True,
    type=click.Choice([c.value for c in LedgerCategory]),
    help="Ledger category of posted entries (income for credits, expense for debits)",
)
@click.option("--pattern", default="", help="Text the bank description must contain (empty matches all)")
@click.option("--description", help="Fixed ledger description (defaults to the rule name)")
@click.option(
    "--fixed-description",
    is_flag=True,
    help="Post the fixed description instead of the bank's description",
)
@click.option("--manual", is_flag=True, help="Do not apply this rule automatically")
@click.pass_context
def add_rule(
    ctx,
    name: str,
    category: str,
    pattern: str,
    description: str | None,
    fixed_description: bool,
    manual: bool,
):
    """Add a reconciliation rule.

    Examples:
        bankrec rules add "Rent" --category expense --pattern "ALUGUEL"
        bankrec rules add "Gym" --category expense --pattern "SMARTFIT" --description "Gym" --fixed-description
    """
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        rule_id = service.create_rule(
            owner_id=ctx.obj["owner"],
            name=name,
            target_category=LedgerCategory(category),
            match_pattern=pattern,
            target_description=description,
            auto_apply=not manual,
            use_original_description=not fixed_description,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created rule '{name}' (ID: {rule_id})")


def _set_active(ctx, rule_id: int, active: bool) -> None:
    service = RuleService(ctx.obj["db"])
    try:
        service.set_active(ctx.obj["owner"], rule_id, active)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Rule {rule_id} {'enabled' if active else 'disabled'}")


@rules_group.command("enable")
@click.argument("rule_id", type=int)
@click.pass_context
def enable_rule(ctx, rule_id: int):
    """Enable a rule."""
    _set_active(ctx, rule_id, True)


@rules_group.command("disable")
@click.argument("rule_id", type=int)
@click.pass_context
def disable_rule(ctx, rule_id: int):
    """Disable a rule."""
    _set_active(ctx, rule_id, False)


@rules_group.command("delete")
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, rule_id: int):
    """Delete a rule."""
    service = RuleService(ctx.obj["db"])
    try:
        service.delete_rule(ctx.obj["owner"], rule_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted rule {rule_id}")


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rules_group, name="rules")
