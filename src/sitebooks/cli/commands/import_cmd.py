"""CSV preview and import commands."""

import click
from sitebooks.cli.error_handling import handle_domain_error
from sitebooks.config import load_settings
from sitebooks.domain.csv_import import CSVImportService, ImportSession
from sitebooks.domain.errors import DomainError
from sitebooks.domain.import_types import ResolutionAction, RowStatus


def _print_summary(session: ImportSession) -> None:
    summary = session.summary()
    click.echo(f"\nPreview of {summary.file_name}:")
    click.echo(f"  Rows: {summary.total_rows} ({summary.expenses} expenses, {summary.revenues} invoices)")
    click.echo(f"  New: {summary.new}")
    click.echo(
        f"  Duplicates: {summary.duplicates} "
        f"({summary.in_file_duplicates} in file, {summary.database_duplicates} already imported)"
    )
    click.echo(f"  Errors: {summary.errors}")
    click.echo(f"  Payees matched: {summary.auto_matched_payees}, needing review: {summary.pending_payees}")
    if summary.pending_clients:
        click.echo(f"  Clients needing review: {summary.pending_clients}")
    if summary.mapping_stats:
        stats = ", ".join(f"{source}: {count}" for source, count in sorted(summary.mapping_stats.items()))
        click.echo(f"  Category sources: {stats}")

    if summary.unmapped_accounts:
        click.echo("\nUnmapped accounts:")
        for account in summary.unmapped_accounts:
            hint = f" (suggest: {account.suggested_category.value})" if account.suggested_category else ""
            click.echo(
                f"  {account.account_full_name}: {account.transaction_count} rows, "
                f"${account.total_amount:,.2f}{hint}"
            )
    if summary.unmatched_projects:
        click.echo("\nUnmatched projects (filed under Unassigned):")
        for project in summary.unmatched_projects:
            hint = ""
            if project.suggestions:
                hint = " (did you mean: " + ", ".join(p.project_number for p, _ in project.suggestions) + ")"
            click.echo(f"  {project.qb_project}: {project.transaction_count} rows{hint}")


def _print_rows(session: ImportSession) -> None:
    flagged = [row for row in session.rows if row.status != RowStatus.NEW]
    if not flagged:
        return
    click.echo("\nFlagged rows:")
    click.echo("-" * 80)
    for row in flagged:
        marker = "+" if row.selected else " "
        click.echo(f"{marker} Row {row.row_number:4d} | {row.status.value:9s} | {row.issue}")


def _prompt_resolution(kind: str, qb_name: str, options, allow_create: bool = True) -> tuple[ResolutionAction, int | None]:
    """Ask how to resolve one pending name; options are (label, confidence, entity_id)."""
    click.echo(f"\nNo confident {kind} match for '{qb_name}'.")
    for i, (label, confidence, _) in enumerate(options, start=1):
        click.echo(f"  [{i}] {label} ({confidence:.0f}%)")
    if allow_create:
        click.echo(f"  [c] Create new {kind}")
    click.echo("  [s] Skip")

    while True:
        choice = click.prompt("Choice", default="s").strip().lower()
        if choice == "c" and allow_create:
            return ResolutionAction.CREATE, None
        if choice == "s":
            return ResolutionAction.SKIP, None
        if choice.isdigit() and 1 <= int(choice) <= len(options):
            return ResolutionAction.MATCH, options[int(choice) - 1][2]
        click.echo("Please enter a listed number, 'c' or 's'." if allow_create else "Please enter a listed number or 's'.")


def _review(session: ImportSession) -> None:
    for qb_name in session.unresolved_payees:
        options = [
            (m.payee.payee_name, m.confidence, m.payee.id) for m in session.pending_payees[qb_name].suggestions
        ]
        session.resolve_payee(qb_name, *_prompt_resolution("payee", qb_name, options))
    for qb_name in session.unresolved_clients:
        options = [
            (m.client.client_name, m.confidence, m.client.id) for m in session.pending_clients[qb_name].suggestions
        ]
        session.resolve_client(qb_name, *_prompt_resolution("client", qb_name, options))
    for qb_project in session.unresolved_projects:
        options = [
            (f"{p.project_number} {p.project_name}", score, p.id)
            for p, score in session.unmatched_projects[qb_project].suggestions
        ]
        session.resolve_project(qb_project, *_prompt_resolution("project", qb_project, options, allow_create=False))


@click.command("preview")
@click.argument("csv_file", type=click.Path(exists=True))
@click.pass_context
def preview_csv(ctx, csv_file: str):
    """Show what importing a QuickBooks CSV file would do.

    Nothing is written to the database.

    Examples:
        sitebooks preview transactions.csv
    """
    db = ctx.obj["db"]
    service = CSVImportService(db, settings=load_settings())

    try:
        session = service.preview(csv_file)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    _print_summary(session)
    _print_rows(session)


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--yes", "-y", is_flag=True, help="Commit without asking for confirmation")
@click.option("--skip-unresolved", is_flag=True, help="Skip unmatched payees, clients and projects instead of prompting")
@click.option("--include-duplicate", "include", multiple=True, type=int, metavar="ROW",
              help="Import a duplicate row anyway (repeatable)")
@click.option("--exclude", multiple=True, type=int, metavar="ROW", help="Leave a row out (repeatable)")
@click.option("--strict", is_flag=True, help="Exit with an error if any row fails to import")
@click.pass_context
def import_csv(
    ctx,
    csv_file: str,
    yes: bool,
    skip_unresolved: bool,
    include: tuple[int, ...],
    exclude: tuple[int, ...],
    strict: bool,
):
    """Import transactions from a QuickBooks CSV file.

    Unmatched payees, clients and projects are reviewed interactively
    unless --skip-unresolved is given. Skipped projects go to the
    unassigned project. Row numbers refer to CSV lines, with the
    header on line 1.

    Examples:
        sitebooks import transactions.csv
        sitebooks import transactions.csv --include-duplicate 14 --yes
        sitebooks import transactions.csv --skip-unresolved --strict
    """
    db = ctx.obj["db"]
    service = CSVImportService(db, settings=load_settings())

    try:
        session = service.preview(csv_file)
        session.select(include)
        session.deselect(exclude)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    _print_summary(session)
    _print_rows(session)

    if not session.selected_rows:
        click.echo("\nNothing to import.")
        return

    try:
        if not skip_unresolved:
            _review(session)
        session.mark_reviewed(skip_unresolved=True)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not yes and not click.confirm(f"\nImport {len(session.selected_rows)} rows?", default=True):
        click.echo("Import cancelled.")
        return

    try:
        result = session.commit()
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Batch: {result.batch_id} ({result.status.value})")
    click.echo(f"  Expenses imported: {result.expenses_imported}")
    click.echo(f"  Invoices imported: {result.revenues_imported}")
    click.echo(f"  Skipped: {result.duplicates_skipped} duplicates")
    if result.reimported:
        click.echo(f"  Re-imported: rows {', '.join(str(n) for n in result.reimported)}")
    if result.created_payees:
        click.echo(f"  New payees: {', '.join(result.created_payees)}")
    if result.created_clients:
        click.echo(f"  New clients: {', '.join(result.created_clients)}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            click.echo(f"    {error}", err=True)
        if strict:
            try:
                result.raise_for_status()
            except DomainError as e:
                handle_domain_error(ctx, e)


def register_commands(cli):
    """Register preview and import commands with main CLI."""
    cli.add_command(preview_csv)
    cli.add_command(import_csv)
