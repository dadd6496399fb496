"""Project management commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.domain.errors import DomainError
from sitebooks.domain.project import ProjectService
from sitebooks.domain.project_matcher import ALIAS_MATCH_TYPES


@click.group()
def project_group():
    """Manage projects and their QuickBooks aliases."""
    pass


@project_group.command("add")
@click.argument("project_number")
@click.argument("project_name")
@click.pass_context
def add_project(ctx, project_number: str, project_name: str):
    """Create a new project.

    Examples:
        sitebooks project add 24-001 "Smith Kitchen Remodel"
    """
    db = ctx.obj["db"]
    service = ProjectService(db)

    try:
        project_id = service.create_project(project_number=project_number, project_name=project_name)
        click.echo(f"Created project '{project_number.strip()}' (ID: {project_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@project_group.command("alias")
@click.argument("project_id", type=int)
@click.argument("alias")
@click.option(
    "--match-type",
    type=click.Choice(list(ALIAS_MATCH_TYPES)),
    default="exact",
    show_default=True,
    help="How the alias is compared with the Project/WO # column",
)
@click.pass_context
def add_alias(ctx, project_id: int, alias: str, match_type: str):
    """Add a QuickBooks alias to a project.

    Examples:
        sitebooks project alias 1 "Smith Remodel"
        sitebooks project alias 1 "Smith" --match-type starts_with
    """
    db = ctx.obj["db"]
    service = ProjectService(db)

    try:
        alias_id = service.add_alias(project_id=project_id, alias=alias, match_type=match_type)
        click.echo(f"Added alias '{alias.strip()}' to project {project_id} (ID: {alias_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@project_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include the unassigned project")
@click.pass_context
def list_projects(ctx, show_all: bool):
    """List projects with their aliases."""
    db = ctx.obj["db"]
    service = ProjectService(db)

    projects = service.list_projects(include_unassigned=show_all)
    if not projects:
        click.echo("No projects found.")
        return

    aliases: dict[int, list[str]] = {}
    for alias in service.list_aliases():
        if alias.is_active:
            aliases.setdefault(alias.project_id, []).append(f"{alias.alias} ({alias.match_type})")

    click.echo("\nProjects:")
    click.echo("-" * 80)
    for project in projects:
        click.echo(f"ID: {project.id:3d} | {project.project_number:15s} | {project.project_name}")
        for alias in aliases.get(project.id, []):
            click.echo(f"      alias: {alias}")


def register_commands(cli):
    """Register project commands with main CLI."""
    cli.add_command(project_group, name="project")
