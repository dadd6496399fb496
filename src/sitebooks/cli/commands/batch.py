"""Import batch commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.domain.errors import DomainError, NotFoundError, batch_not_found
from sitebooks.domain.import_batch import ImportBatchService


@click.group()
def batch_group():
    """Inspect and roll back imports."""
    pass


@batch_group.command("list")
@click.pass_context
def list_batches(ctx):
    """List import batches, newest first."""
    db = ctx.obj["db"]
    service = ImportBatchService(db)

    batches = service.list_batches()
    if not batches:
        click.echo("No imports found.")
        return

    click.echo("\nImports:")
    click.echo("-" * 100)
    for batch in batches:
        imported_at = batch.imported_at.strftime("%Y-%m-%d %H:%M") if batch.imported_at else ""
        click.echo(
            f"{batch.id} | {imported_at:16s} | {batch.status.value:11s} | "
            f"{batch.expenses_imported:4d} exp | {batch.revenues_imported:4d} rev | "
            f"{batch.errors:3d} err | {batch.file_name}"
        )


@batch_group.command("show")
@click.argument("batch_id")
@click.pass_context
def show_batch(ctx, batch_id: str):
    """Show one import batch and the rows it created."""
    db = ctx.obj["db"]
    service = ImportBatchService(db)

    try:
        batch = service.get_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        expenses, revenues = service.get_batch_rows(batch_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nBatch {batch.id}")
    click.echo(f"  File: {batch.file_name}")
    click.echo(f"  Status: {batch.status.value}")
    click.echo(f"  Rows selected: {batch.total_rows}")
    click.echo(f"  Expenses imported: {batch.expenses_imported}")
    click.echo(f"  Invoices imported: {batch.revenues_imported}")
    click.echo(f"  Duplicates skipped: {batch.duplicates_skipped}")
    click.echo(f"  Re-imported: {batch.reimported}")
    click.echo(f"  Errors: {batch.errors}")
    for message in batch.error_messages:
        click.echo(f"    {message}")

    if expenses:
        click.echo("\nExpenses:")
        for expense in expenses:
            click.echo(
                f"  {expense.id:5d} | {expense.expense_date} | {expense.amount:>10} | "
                f"{expense.category.value:16s} | {expense.name}"
            )
    if revenues:
        click.echo("\nInvoices:")
        for revenue in revenues:
            click.echo(
                f"  {revenue.id:5d} | {revenue.invoice_date} | {revenue.amount:>10} | "
                f"{revenue.invoice_number or '':8s} | {revenue.name}"
            )


@batch_group.command("rollback")
@click.argument("batch_id")
@click.option("--yes", "-y", is_flag=True, help="Roll back without asking for confirmation")
@click.pass_context
def rollback_batch(ctx, batch_id: str, yes: bool):
    """Delete every expense and invoice created by an import.

    Examples:
        sitebooks batch rollback 3f2a9c...
    """
    db = ctx.obj["db"]
    service = ImportBatchService(db)

    batch = service.get_batch(batch_id)
    if batch is None:
        handle_domain_error(ctx, NotFoundError(batch_not_found(batch_id)))
        return

    if not yes and not click.confirm(
        f"Roll back import of '{batch.file_name}' "
        f"({batch.expenses_imported} expenses, {batch.revenues_imported} invoices)?"
    ):
        click.echo("Rollback cancelled.")
        return

    try:
        result = service.rollback(batch_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"Rolled back batch {result.batch_id}: "
        f"{result.expenses_deleted} expenses and {result.revenues_deleted} invoices deleted"
    )


def register_commands(cli):
    """Register batch commands with main CLI."""
    cli.add_command(batch_group, name="batch")
