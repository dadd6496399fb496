"""Import batch audit and rollback service."""

from dataclasses import dataclass
from typing import Optional

from sitebooks.database.base import Database
from sitebooks.domain.entities import (
    BatchStatus,
    Expense,
    ImportBatch as ImportBatchEntity,
    Revenue,
)
from sitebooks.domain.errors import ConflictError, NotFoundError, batch_not_found
from sitebooks.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RollbackResult:
    batch_id: str
    expenses_deleted: int
    revenues_deleted: int


class ImportBatchService:
    """Service for inspecting and rolling back import batches."""

    def __init__(self, db: Database):
        """Initialize import batch service.

        Args:
            db: Database instance
        """
        self.db = db

    def list_batches(self) -> list[ImportBatchEntity]:
        """List batches, newest first."""
        return self.db.list_import_batches()

    def get_batch(self, batch_id: str) -> Optional[ImportBatchEntity]:
        """Get a batch by ID."""
        return self.db.get_import_batch(batch_id)

    def get_batch_rows(self, batch_id: str) -> tuple[list[Expense], list[Revenue]]:
        """Return the expenses and revenues a batch inserted.

        Raises:
            NotFoundError: If the batch doesn't exist
        """
        if self.db.get_import_batch(batch_id) is None:
            raise NotFoundError(batch_not_found(batch_id))
        return (
            self.db.list_expenses(import_batch_id=batch_id),
            self.db.list_revenues(import_batch_id=batch_id),
        )

    def rollback(self, batch_id: str) -> RollbackResult:
        """Delete every row tagged with the batch and mark it rolled back.

        Args:
            batch_id: Batch ID

        Returns:
            RollbackResult with deletion counts

        Raises:
            NotFoundError: If the batch doesn't exist
            ConflictError: If the batch was already rolled back
        """
        batch = self.db.get_import_batch(batch_id)
        if batch is None:
            raise NotFoundError(batch_not_found(batch_id))
        if batch.status == BatchStatus.ROLLED_BACK:
            raise ConflictError(f"Import batch '{batch_id}' has already been rolled back")

        expenses_deleted, revenues_deleted = self.db.delete_batch_rows(batch_id)
        self.db.update_import_batch(batch_id, status=BatchStatus.ROLLED_BACK.value)
        logger.info(
            "Rolled back batch %s: %d expenses, %d revenues deleted",
            batch_id,
            expenses_deleted,
            revenues_deleted,
        )
        return RollbackResult(batch_id, expenses_deleted, revenues_deleted)
