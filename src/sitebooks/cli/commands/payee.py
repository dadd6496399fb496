"""Payee management commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.domain.entities import PayeeType
from sitebooks.domain.errors import DomainError
from sitebooks.domain.payee import PayeeService


@click.group()
def payee_group():
    """Manage payees (vendors, subcontractors, suppliers)."""
    pass


@payee_group.command("add")
@click.argument("name", metavar="PAYEE_NAME")
@click.option("--full-name", help="Legal or full name")
@click.option(
    "--type",
    "payee_type",
    type=click.Choice([t.value for t in PayeeType]),
    default=PayeeType.OTHER.value,
    show_default=True,
    help="Payee type",
)
@click.pass_context
def add_payee(ctx, name: str, full_name: str | None, payee_type: str):
    """Create a new payee.

    Examples:
        sitebooks payee add "Home Depot" --type material_supplier
        sitebooks payee add "Johnson Plumbing" --full-name "Johnson Plumbing LLC" --type subcontractor
    """
    db = ctx.obj["db"]
    service = PayeeService(db)

    try:
        payee_id = service.create_payee(payee_name=name, full_name=full_name, payee_type=payee_type)
        click.echo(f"Created payee '{name.strip()}' (ID: {payee_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@payee_group.command("list")
@click.pass_context
def list_payees(ctx):
    """List all payees."""
    db = ctx.obj["db"]
    service = PayeeService(db)

    payees = service.list_payees()
    if not payees:
        click.echo("No payees found.")
        return

    click.echo("\nPayees:")
    click.echo("-" * 80)
    for payee in payees:
        full_name = f" | {payee.full_name}" if payee.full_name else ""
        click.echo(f"ID: {payee.id:3d} | {payee.payee_name:30s} | {payee.payee_type.value:18s}{full_name}")


def register_commands(cli):
    """Register payee commands with main CLI."""
    cli.add_command(payee_group, name="payee")
