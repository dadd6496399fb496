"""Data types produced and consumed by the import pipeline."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from sitebooks.domain.csv_parser import TransactionRecord
from sitebooks.domain.entities import BatchStatus, ExpenseCategory, PayeeType, Project
from sitebooks.domain.errors import BatchPartialFailure, DomainError
from sitebooks.domain.payee_matcher import PayeeMatch
from sitebooks.domain.project_matcher import ClientMatch


class ImportState(str, Enum):
    """Import session lifecycle."""

    UPLOADED = "uploaded"
    PARSED = "parsed"
    CATEGORIZED = "categorized"
    REVIEWED = "reviewed"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class RowStatus(str, Enum):
    NEW = "new"
    DUPLICATE = "duplicate"
    ERROR = "error"


class DuplicateScope(str, Enum):
    IN_FILE = "in_file"
    DATABASE = "database"


class ResolutionAction(str, Enum):
    """User decision for a pending payee or client review."""

    CREATE = "create"
    MATCH = "match"
    SKIP = "skip"


@dataclass
class PreviewRow:
    """One CSV row after categorization."""

    row_number: int
    status: RowStatus
    raw: dict[str, str]
    record: Optional[TransactionRecord] = None
    issue: Optional[DomainError] = None
    duplicate_scope: Optional[DuplicateScope] = None
    match_key: Optional[str] = None
    existing_id: Optional[int] = None
    category: Optional[ExpenseCategory] = None
    category_source: Optional[str] = None
    payee_id: Optional[int] = None
    project_id: Optional[int] = None
    client_id: Optional[int] = None
    selected: bool = False

    @property
    def is_revenue(self) -> bool:
        return self.record is not None and self.record.is_revenue

    @property
    def is_reimport(self) -> bool:
        """Selected row that already exists in the store."""
        return self.selected and self.duplicate_scope == DuplicateScope.DATABASE

    @property
    def name(self) -> str:
        return self.record.name if self.record else self.raw.get("Name", "")


@dataclass
class PendingPayeeReview:
    """A QuickBooks name with no confident payee match."""

    qb_name: str
    suggested_payee_type: PayeeType
    account_full_name: str
    suggestions: list[PayeeMatch] = field(default_factory=list)


@dataclass
class PendingClientReview:
    """An invoice name with no confident client match."""

    qb_name: str
    suggestions: list[ClientMatch] = field(default_factory=list)


@dataclass(frozen=True)
class Resolution:
    action: ResolutionAction
    entity_id: Optional[int] = None


@dataclass(frozen=True)
class MatchLogEntry:
    """Audit record of one matching decision."""

    qb_name: str
    matched_entity: Optional[str]
    entity_type: str
    confidence: float
    decision: str
    algorithm: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "qb_name": self.qb_name,
            "matched_entity": self.matched_entity,
            "entity_type": self.entity_type,
            "confidence": self.confidence,
            "decision": self.decision,
            "algorithm": self.algorithm,
        }


@dataclass
class UnmappedAccount:
    account_full_name: str
    transaction_count: int = 0
    total_amount: Decimal = Decimal("0")
    suggested_category: Optional[ExpenseCategory] = None


@dataclass
class UnmatchedProject:
    qb_project: str
    transaction_count: int = 0
    total_amount: Decimal = Decimal("0")
    suggestions: list[tuple[Project, float]] = field(default_factory=list)


@dataclass
class ImportSummary:
    """Counts shown to the user before committing."""

    file_name: str
    total_rows: int
    new: int
    in_file_duplicates: int
    database_duplicates: int
    errors: int
    selected: int
    expenses: int
    revenues: int
    auto_matched_payees: int
    pending_payees: int
    pending_clients: int
    mapping_stats: dict[str, int]
    unmapped_accounts: list[UnmappedAccount]
    unmatched_projects: list[UnmatchedProject]

    @property
    def duplicates(self) -> int:
        return self.in_file_duplicates + self.database_duplicates


@dataclass
class CommitResult:
    """Outcome of committing a reviewed import."""

    batch_id: str
    status: BatchStatus
    expenses_imported: int = 0
    revenues_imported: int = 0
    duplicates_skipped: int = 0
    reimported: list[int] = field(default_factory=list)
    failed_rows: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    created_payees: dict[str, int] = field(default_factory=dict)
    created_clients: dict[str, int] = field(default_factory=dict)
    skipped_not_selected: int = 0

    @property
    def imported(self) -> int:
        return self.expenses_imported + self.revenues_imported

    def raise_for_status(self) -> None:
        """Raise BatchPartialFailure if any row failed to insert."""
        if self.errors:
            raise BatchPartialFailure(self.batch_id, len(self.errors), self.errors)
