"""Client management commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.domain.client import ClientService
from sitebooks.domain.errors import DomainError


@click.group()
def client_group():
    """Manage clients."""
    pass


@client_group.command("add")
@click.argument("name", metavar="CLIENT_NAME")
@click.option("--company", help="Company name")
@click.pass_context
def add_client(ctx, name: str, company: str | None):
    """Create a new client."""
    db = ctx.obj["db"]
    service = ClientService(db)

    try:
        client_id = service.create_client(client_name=name, company_name=company)
        click.echo(f"Created client '{name.strip()}' (ID: {client_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@client_group.command("list")
@click.pass_context
def list_clients(ctx):
    """List all clients."""
    db = ctx.obj["db"]
    service = ClientService(db)

    clients = service.list_clients()
    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\nClients:")
    click.echo("-" * 60)
    for client in clients:
        company = f" | {client.company_name}" if client.company_name else ""
        click.echo(f"ID: {client.id:3d} | {client.client_name}{company}")


def register_commands(cli):
    """Register client commands with main CLI."""
    cli.add_command(client_group, name="client")
