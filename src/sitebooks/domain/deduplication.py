"""Duplicate detection within an upload and against persisted rows."""

from dataclasses import dataclass
from typing import Iterable, Optional

from sitebooks.domain.csv_parser import TransactionRecord
from sitebooks.domain.entities import Expense, Revenue
from sitebooks.domain.keys import create_expense_key, create_revenue_key, expense_key_candidates


@dataclass(frozen=True)
class InFileDuplicate:
    record: TransactionRecord
    first: TransactionRecord
    match_key: str

    @property
    def reason(self) -> str:
        first = self.first
        amount = first.raw.get("Amount") or str(first.amount)
        return f"Duplicate of: {first.name} on {first.date.isoformat()} for {amount}"


@dataclass(frozen=True)
class ExistingMatch:
    existing_id: int
    match_key: str


def record_key(record: TransactionRecord) -> str:
    """Key used for in-file comparison (4-part when the account is known)."""
    if record.is_revenue:
        return create_revenue_key(record.amount, record.date, record.invoice_number, record.name)
    return create_expense_key(record.date, record.amount, record.name, record.account_full_name or None)


def detect_in_file_duplicates(
    records: Iterable[TransactionRecord],
) -> tuple[list[TransactionRecord], list[InFileDuplicate]]:
    """Split records into first occurrences and later repeats.

    Returns:
        Tuple of (unique records, duplicates), both in file order
    """
    seen: dict[str, TransactionRecord] = {}
    unique = []
    duplicates = []
    for record in records:
        key = record_key(record)
        first = seen.get(key)
        if first is None:
            seen[key] = record
            unique.append(record)
        else:
            duplicates.append(InFileDuplicate(record=record, first=first, match_key=key))
    return unique, duplicates


class ExistingRowIndex:
    """Composite-key index over expenses and revenues already in the store."""

    def __init__(self, expenses: Iterable[Expense] = (), revenues: Iterable[Revenue] = ()):
        self._expenses: dict[str, int] = {}
        self._revenues: dict[str, int] = {}
        for expense in expenses:
            self.add_expense(expense)
        for revenue in revenues:
            self.add_revenue(revenue)

    def __len__(self) -> int:
        return len(self._expenses) + len(self._revenues)

    def add_expense(self, expense: Expense) -> None:
        # Register both forms so old 3-part rows and new 4-part rows are found.
        for key in expense_key_candidates(
            expense.expense_date, expense.amount, expense.name, expense.account_full_name
        ):
            self._expenses.setdefault(key, expense.id)

    def add_revenue(self, revenue: Revenue) -> None:
        key = create_revenue_key(revenue.amount, revenue.invoice_date, revenue.invoice_number, revenue.name)
        self._revenues.setdefault(key, revenue.id)

    def find_expense(self, record: TransactionRecord, payee_name: Optional[str] = None) -> Optional[ExistingMatch]:
        """Find a persisted expense for a CSV record.

        Tries the 4-part key and the 3-part fallback; rows without a name
        also try the matched payee's name.
        """
        candidates = expense_key_candidates(
            record.date, record.amount, record.name, record.account_full_name or None
        )
        if not record.name.strip() and payee_name:
            candidates.append(create_expense_key(record.date, record.amount, payee_name))

        for key in candidates:
            existing_id = self._expenses.get(key)
            if existing_id is not None:
                return ExistingMatch(existing_id=existing_id, match_key=key)
        return None

    def find_revenue(self, record: TransactionRecord) -> Optional[ExistingMatch]:
        key = create_revenue_key(record.amount, record.date, record.invoice_number, record.name)
        existing_id = self._revenues.get(key)
        if existing_id is None:
            return None
        return ExistingMatch(existing_id=existing_id, match_key=key)
