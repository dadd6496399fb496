"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the domain entities stay stable
when the database schema changes.
"""

from decimal import Decimal

from sitebooks.domain import entities as domain
from sitebooks.database.models import (
    AccountMapping as ORMAccountMapping,
    Client as ORMClient,
    Expense as ORMExpense,
    ImportBatch as ORMImportBatch,
    Payee as ORMPayee,
    Project as ORMProject,
    ProjectAlias as ORMProjectAlias,
    Revenue as ORMRevenue,
)


def payee_to_domain(orm_payee: ORMPayee) -> domain.Payee:
    """Convert SQLAlchemy Payee model to domain Payee entity."""
    return domain.Payee(
        id=orm_payee.id,
        payee_name=orm_payee.payee_name,
        full_name=orm_payee.full_name,
        payee_type=domain.PayeeType(orm_payee.payee_type),
        created_at=orm_payee.created_at,
    )


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        client_name=orm_client.client_name,
        company_name=orm_client.company_name,
        created_at=orm_client.created_at,
    )


def project_to_domain(orm_project: ORMProject) -> domain.Project:
    """Convert SQLAlchemy Project model to domain Project entity."""
    return domain.Project(
        id=orm_project.id,
        project_number=orm_project.project_number,
        project_name=orm_project.project_name,
        created_at=orm_project.created_at,
    )


def project_alias_to_domain(orm_alias: ORMProjectAlias) -> domain.ProjectAlias:
    """Convert SQLAlchemy ProjectAlias model to domain ProjectAlias entity."""
    return domain.ProjectAlias(
        id=orm_alias.id,
        project_id=orm_alias.project_id,
        alias=orm_alias.alias,
        match_type=orm_alias.match_type,
        is_active=orm_alias.is_active,
    )


def account_mapping_to_domain(orm_mapping: ORMAccountMapping) -> domain.AccountMapping:
    """Convert SQLAlchemy AccountMapping model to domain AccountMapping entity."""
    return domain.AccountMapping(
        id=orm_mapping.id,
        qb_account_full_path=orm_mapping.qb_account_full_path,
        app_category=domain.ExpenseCategory(orm_mapping.app_category),
        created_at=orm_mapping.created_at,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        project_id=orm_expense.project_id,
        payee_id=orm_expense.payee_id,
        description=orm_expense.description,
        name=orm_expense.name,
        category=domain.ExpenseCategory(orm_expense.category),
        transaction_type=orm_expense.transaction_type,
        amount=Decimal(orm_expense.amount),
        expense_date=orm_expense.expense_date,
        account_name=orm_expense.account_name,
        account_full_name=orm_expense.account_full_name,
        import_batch_id=orm_expense.import_batch_id,
        created_at=orm_expense.created_at,
    )


def revenue_to_domain(orm_revenue: ORMRevenue) -> domain.Revenue:
    """Convert SQLAlchemy Revenue model to domain Revenue entity."""
    return domain.Revenue(
        id=orm_revenue.id,
        project_id=orm_revenue.project_id,
        client_id=orm_revenue.client_id,
        description=orm_revenue.description,
        name=orm_revenue.name,
        amount=Decimal(orm_revenue.amount),
        invoice_date=orm_revenue.invoice_date,
        invoice_number=orm_revenue.invoice_number,
        account_name=orm_revenue.account_name,
        account_full_name=orm_revenue.account_full_name,
        import_batch_id=orm_revenue.import_batch_id,
        created_at=orm_revenue.created_at,
    )


def import_batch_to_domain(orm_batch: ORMImportBatch) -> domain.ImportBatch:
    """Convert SQLAlchemy ImportBatch model to domain ImportBatch entity."""
    return domain.ImportBatch(
        id=orm_batch.id,
        file_name=orm_batch.file_name,
        imported_at=orm_batch.imported_at,
        status=domain.BatchStatus(orm_batch.status),
        total_rows=orm_batch.total_rows,
        expenses_imported=orm_batch.expenses_imported,
        revenues_imported=orm_batch.revenues_imported,
        duplicates_skipped=orm_batch.duplicates_skipped,
        reimported=orm_batch.reimported,
        errors=orm_batch.errors,
        error_messages=list(orm_batch.error_messages or []),
        match_log=list(orm_batch.match_log or []),
    )
