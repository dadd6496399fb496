"""Domain model entities for sitebooks.

These are pure data classes representing business concepts, independent of
database schema. The import pipeline and the CLI only ever see these; the
SQLAlchemy models stay behind the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class ExpenseCategory(str, Enum):
    """Internal expense categories used by project costing."""

    LABOR = "labor_internal"
    SUBCONTRACTOR = "subcontractors"
    MATERIALS = "materials"
    EQUIPMENT = "equipment"
    PERMITS = "permits"
    MANAGEMENT = "management"
    OTHER = "other"


class PayeeType(str, Enum):
    """Kind of vendor a payee represents."""

    SUBCONTRACTOR = "subcontractor"
    MATERIAL_SUPPLIER = "material_supplier"
    EQUIPMENT_RENTAL = "equipment_rental"
    PERMIT_AUTHORITY = "permit_authority"
    INTERNAL_LABOR = "internal_labor"
    MANAGEMENT = "management"
    OTHER = "other"


class BatchStatus(str, Enum):
    """Lifecycle status of an import batch."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


UNASSIGNED_PROJECT_NUMBER = "000-UNASSIGNED"


@dataclass(frozen=True)
class Payee:
    """Payee (vendor) domain entity."""

    id: int
    payee_name: str
    full_name: Optional[str]
    payee_type: PayeeType
    created_at: datetime


@dataclass(frozen=True)
class Client:
    """Client domain entity, the counterparty of invoices."""

    id: int
    client_name: str
    company_name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Project:
    """Construction project domain entity."""

    id: int
    project_number: str
    project_name: str
    created_at: datetime


@dataclass(frozen=True)
class ProjectAlias:
    """Alternate spelling of a project as it appears in QuickBooks."""

    id: int
    project_id: int
    alias: str
    match_type: str
    is_active: bool = True


@dataclass(frozen=True)
class AccountMapping:
    """Persisted QuickBooks account path to expense category mapping."""

    id: int
    qb_account_full_path: str
    app_category: ExpenseCategory
    created_at: datetime


@dataclass(frozen=True)
class Expense:
    """Expense domain entity."""

    id: int
    project_id: int
    payee_id: Optional[int]
    description: str
    name: str
    category: ExpenseCategory
    transaction_type: str
    amount: Decimal
    expense_date: date
    account_name: Optional[str]
    account_full_name: Optional[str]
    import_batch_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Revenue:
    """Revenue (invoice) domain entity."""

    id: int
    project_id: int
    client_id: Optional[int]
    description: str
    name: str
    amount: Decimal
    invoice_date: date
    invoice_number: Optional[str]
    account_name: Optional[str]
    account_full_name: Optional[str]
    import_batch_id: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ImportBatch:
    """Audit record for one committed import."""

    id: str
    file_name: str
    imported_at: datetime
    status: BatchStatus
    total_rows: int = 0
    expenses_imported: int = 0
    revenues_imported: int = 0
    duplicates_skipped: int = 0
    reimported: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)
    match_log: list[dict[str, Any]] = field(default_factory=list)
