"""Account mapping commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.domain.account_mapping import AccountMappingService
from sitebooks.domain.entities import ExpenseCategory
from sitebooks.domain.errors import DomainError


@click.group()
def mapping_group():
    """Map QuickBooks accounts to expense categories."""
    pass


@mapping_group.command("set")
@click.argument("account_path")
@click.argument("category", type=click.Choice([c.value for c in ExpenseCategory]))
@click.pass_context
def set_mapping(ctx, account_path: str, category: str):
    """Map an account path to a category, replacing any existing mapping.

    Examples:
        sitebooks mapping set "Job Expenses:Dumpster" equipment
    """
    db = ctx.obj["db"]
    service = AccountMappingService(db)

    try:
        service.set_mapping(account_path, category)
        click.echo(f"Mapped '{account_path.strip()}' to {category}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@mapping_group.command("list")
@click.pass_context
def list_mappings(ctx):
    """List saved account mappings."""
    db = ctx.obj["db"]
    service = AccountMappingService(db)

    mappings = service.list_mappings()
    if not mappings:
        click.echo("No account mappings found.")
        return

    click.echo("\nAccount mappings:")
    click.echo("-" * 70)
    for mapping in mappings:
        click.echo(f"{mapping.qb_account_full_path:50s} -> {mapping.app_category.value}")


@mapping_group.command("delete")
@click.argument("account_path")
@click.pass_context
def delete_mapping(ctx, account_path: str):
    """Delete the mapping for an account path."""
    db = ctx.obj["db"]
    service = AccountMappingService(db)

    try:
        service.delete_mapping(account_path)
        click.echo(f"Deleted mapping for '{account_path.strip()}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
