"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from sitebooks.domain.entities import (
    AccountMapping,
    Client,
    Expense,
    ImportBatch,
    Payee,
    Project,
    ProjectAlias,
    Revenue,
)


class Database(ABC):
    """Abstract database interface for sitebooks.

    Write operations that fail at the storage level raise
    ``sitebooks.domain.errors.PersistenceError``.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Payee operations
    @abstractmethod
    def create_payee(self, payee_name: str, full_name: Optional[str], payee_type: str) -> int:
        """Create a payee. Returns payee ID."""
        pass

    @abstractmethod
    def get_payee(self, payee_id: int) -> Optional[Payee]:
        """Get payee by ID."""
        pass

    @abstractmethod
    def list_payees(self) -> list[Payee]:
        """List all payees."""
        pass

    # Client operations
    @abstractmethod
    def create_client(self, client_name: str, company_name: Optional[str] = None) -> int:
        """Create a client. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[Client]:
        """Get client by ID."""
        pass

    @abstractmethod
    def list_clients(self) -> list[Client]:
        """List all clients."""
        pass

    # Project operations
    @abstractmethod
    def create_project(self, project_number: str, project_name: str) -> int:
        """Create a project. Returns project ID."""
        pass

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[Project]:
        """Get project by ID."""
        pass

    @abstractmethod
    def get_project_by_number(self, project_number: str) -> Optional[Project]:
        """Get project by its project number."""
        pass

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """List all projects."""
        pass

    @abstractmethod
    def add_project_alias(self, project_id: int, alias: str, match_type: str, is_active: bool = True) -> int:
        """Add an alias to a project. Returns alias ID."""
        pass

    @abstractmethod
    def list_project_aliases(self, project_id: Optional[int] = None) -> list[ProjectAlias]:
        """List project aliases, optionally for a single project."""
        pass

    # Account mapping operations
    @abstractmethod
    def set_account_mapping(self, qb_account_full_path: str, app_category: str) -> int:
        """Create or replace the mapping for an account path. Returns mapping ID."""
        pass

    @abstractmethod
    def list_account_mappings(self) -> list[AccountMapping]:
        """List all account mappings."""
        pass

    @abstractmethod
    def delete_account_mapping(self, qb_account_full_path: str) -> bool:
        """Delete the mapping for an account path. Returns True if one existed."""
        pass

    # Expense / revenue operations
    @abstractmethod
    def create_expense(
        self,
        project_id: int,
        category: str,
        amount: Decimal,
        expense_date: date,
        name: str = "",
        description: str = "",
        transaction_type: str = "expense",
        payee_id: Optional[int] = None,
        account_name: Optional[str] = None,
        account_full_name: Optional[str] = None,
        import_batch_id: Optional[str] = None,
    ) -> int:
        """Create an expense. Returns expense ID."""
        pass

    @abstractmethod
    def list_expenses(self, import_batch_id: Optional[str] = None) -> list[Expense]:
        """List expenses, optionally only those of one import batch."""
        pass

    @abstractmethod
    def create_revenue(
        self,
        project_id: int,
        amount: Decimal,
        invoice_date: date,
        name: str = "",
        description: str = "",
        client_id: Optional[int] = None,
        invoice_number: Optional[str] = None,
        account_name: Optional[str] = None,
        account_full_name: Optional[str] = None,
        import_batch_id: Optional[str] = None,
    ) -> int:
        """Create a revenue. Returns revenue ID."""
        pass

    @abstractmethod
    def list_revenues(self, import_batch_id: Optional[str] = None) -> list[Revenue]:
        """List revenues, optionally only those of one import batch."""
        pass

    # Import batch operations
    @abstractmethod
    def create_import_batch(self, batch_id: str, file_name: str, total_rows: int, status: str) -> None:
        """Create an import batch record."""
        pass

    @abstractmethod
    def update_import_batch(self, batch_id: str, **fields: Any) -> None:
        """Update columns of an import batch record."""
        pass

    @abstractmethod
    def get_import_batch(self, batch_id: str) -> Optional[ImportBatch]:
        """Get import batch by ID."""
        pass

    @abstractmethod
    def list_import_batches(self) -> list[ImportBatch]:
        """List import batches, newest first."""
        pass

    @abstractmethod
    def delete_batch_rows(self, batch_id: str) -> tuple[int, int]:
        """Delete expenses and revenues tagged with a batch.

        Returns:
            Tuple of (expenses deleted, revenues deleted)
        """
        pass
