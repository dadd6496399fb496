"""Domain tests for the CSV import pipeline."""

import logging
from decimal import Decimal

import pytest

from sitebooks.config import ImportSettings
from sitebooks.database.sqlalchemy_db import SQLAlchemyDatabase
from sitebooks.domain.csv_import import CSVImportService
from sitebooks.domain.entities import (
    BatchStatus,
    ExpenseCategory,
    PayeeType,
    UNASSIGNED_PROJECT_NUMBER,
)
from sitebooks.domain.errors import (
    BatchPartialFailure,
    ConflictError,
    DuplicateDetected,
    InvalidStateError,
    MatchAmbiguous,
    NotFoundError,
    ParseError,
    PersistenceError,
    ValidationError,
)
from sitebooks.domain.import_types import DuplicateScope, ImportState, ResolutionAction, RowStatus

HOME_DEPOT = "01/15/2024,Expense,Home Depot,Job Expenses:Materials,Materials,Lumber,24-001,,-245.67\n"
JOHNSON = "01/16/2024,Bill,Johnson Plumbing,Cost of Goods Sold:Contract Labor,Contract Labor,Rough-in,24-001,,-1500.00\n"
UNKNOWN = "01/19/2024,Expense,XYZ Unique Vendor LLC,Cost of Goods Sold:Contract Labor,Contract Labor,Framing,24-001,,-900.00\n"
INVOICE = "01/18/2024,Invoice,Smith Family,Sales,Sales,Progress billing,24-001,1001,5000.00\n"


class FlakyDatabase(SQLAlchemyDatabase):
    """Database whose expense inserts fail a set number of times per name."""

    def __init__(self, database_url: str, failures: dict[str, int]):
        super().__init__(database_url)
        self.failures = failures
        self.attempts: dict[str, int] = {}

    def create_expense(self, **kwargs):
        name = kwargs.get("name", "")
        self.attempts[name] = self.attempts.get(name, 0) + 1
        if self.failures.get(name, 0) > 0:
            self.failures[name] -= 1
            raise PersistenceError("database is locked")
        return super().create_expense(**kwargs)


class ReentrantDatabase(SQLAlchemyDatabase):
    """Database that tries to commit the import again from inside an insert."""

    def __init__(self, database_url: str):
        super().__init__(database_url)
        self.session = None
        self.reentry_errors: list[Exception] = []

    def create_expense(self, **kwargs):
        try:
            self.session.commit()
        except ConflictError as e:
            self.reentry_errors.append(e)
        return super().create_expense(**kwargs)


@pytest.fixture
def flaky_db(tmp_path):
    def _make(failures: dict[str, int]) -> FlakyDatabase:
        db = FlakyDatabase(f"sqlite:///{tmp_path / 'flaky.db'}", failures)
        db.create_project(project_number="24-001", project_name="Smith Kitchen Remodel")
        db.create_payee(payee_name="Home Depot", full_name=None, payee_type="material_supplier")
        db.create_payee(payee_name="Johnson Plumbing", full_name=None, payee_type="subcontractor")
        return db

    return _make


def test_preview_sample_file(import_service, sample_payees, sample_project, fixtures_dir):
    """Preview classifies, matches and categorizes every row."""
    session = import_service.preview(str(fixtures_dir / "sample_transactions.csv"))

    assert session.state == ImportState.CATEGORIZED
    assert [row.status for row in session.rows] == [RowStatus.NEW] * 4
    assert all(row.selected for row in session.rows)
    assert all(row.project_id == sample_project.id for row in session.rows)

    expenses = [row for row in session.rows if not row.is_revenue]
    assert [row.category for row in expenses] == [
        ExpenseCategory.MATERIALS,
        ExpenseCategory.SUBCONTRACTOR,
        ExpenseCategory.EQUIPMENT,
    ]
    assert [row.payee_id for row in expenses] == [
        sample_payees["Home Depot"].id,
        sample_payees["Johnson Plumbing"].id,
        sample_payees["Sunbelt Rentals"].id,
    ]

    summary = session.summary()
    assert summary.total_rows == 4
    assert summary.new == 4
    assert summary.duplicates == 0
    assert summary.expenses == 3
    assert summary.revenues == 1
    assert summary.auto_matched_payees == 3
    assert summary.pending_payees == 0
    assert summary.pending_clients == 1
    assert summary.mapping_stats == {"account_keyword": 1, "static": 2}


def test_preview_writes_nothing(import_service, temp_db, sample_payees, fixtures_dir):
    import_service.preview(str(fixtures_dir / "sample_transactions.csv"))

    assert temp_db.list_expenses() == []
    assert temp_db.list_revenues() == []
    assert temp_db.list_import_batches() == []


def test_preview_missing_columns(import_service, fixtures_dir):
    with pytest.raises(ValidationError) as excinfo:
        import_service.preview(str(fixtures_dir / "sample_transactions_missing_cols.csv"))

    assert "missing required columns" in str(excinfo.value).lower()


def test_import_sample_file(import_service, temp_db, sample_payees, sample_project, fixtures_dir):
    """Non-interactive import commits every new row under one batch."""
    result = import_service.import_csv(str(fixtures_dir / "sample_transactions.csv"))

    assert result.status == BatchStatus.COMPLETED
    assert result.expenses_imported == 3
    assert result.revenues_imported == 1
    assert result.errors == []
    result.raise_for_status()

    expenses = temp_db.list_expenses(import_batch_id=result.batch_id)
    assert len(expenses) == 3
    assert all(e.amount > 0 for e in expenses)
    home_depot = next(e for e in expenses if e.name == "Home Depot")
    assert home_depot.amount == Decimal("245.67")
    assert home_depot.description == "expense - Home Depot"
    assert home_depot.payee_id == sample_payees["Home Depot"].id
    assert home_depot.account_full_name == "Job Expenses:Materials"

    revenues = temp_db.list_revenues(import_batch_id=result.batch_id)
    assert len(revenues) == 1
    assert revenues[0].description == "Invoice from Smith Family"
    assert revenues[0].client_id is None

    batch = temp_db.get_import_batch(result.batch_id)
    assert batch.status == BatchStatus.COMPLETED
    assert batch.total_rows == 4
    assert batch.expenses_imported == 3
    assert batch.revenues_imported == 1
    assert any(entry["entity_type"] == "payee" for entry in batch.match_log)


def test_reimport_flags_database_duplicates(import_service, temp_db, sample_payees, sample_project, fixtures_dir):
    """Importing the same file twice creates nothing the second time."""
    csv_file = str(fixtures_dir / "sample_transactions.csv")
    first = import_service.import_csv(csv_file)

    session = import_service.preview(csv_file)

    assert all(row.status == RowStatus.DUPLICATE for row in session.rows)
    assert all(row.duplicate_scope == DuplicateScope.DATABASE for row in session.rows)
    assert not any(row.selected for row in session.rows)
    assert isinstance(session.rows[0].issue, DuplicateDetected)
    assert session.rows[0].existing_id is not None

    session.mark_reviewed(skip_unresolved=True)
    second = session.commit()

    assert second.imported == 0
    assert second.duplicates_skipped == 4
    assert second.batch_id != first.batch_id
    assert len(temp_db.list_expenses()) == 3
    assert len(temp_db.list_revenues()) == 1


def test_selecting_database_duplicate_overrides(import_service, temp_db, sample_payees, sample_project, write_csv):
    csv_file = write_csv(HOME_DEPOT + JOHNSON)
    import_service.import_csv(csv_file)

    session = import_service.preview(csv_file)
    session.select([2])

    assert session.rows[0].match_key in session.override_keys
    session.mark_reviewed()
    result = session.commit()

    assert result.expenses_imported == 1
    assert result.reimported == [2]
    assert result.duplicates_skipped == 1
    assert len(temp_db.list_expenses()) == 3
    assert temp_db.get_import_batch(result.batch_id).reimported == 1


def test_override_keys_preselect_duplicates(import_service, sample_payees, sample_project, write_csv):
    csv_file = write_csv(HOME_DEPOT + JOHNSON)
    import_service.import_csv(csv_file)
    key = "2024-01-15|245.67|home depot|job expenses:materials"

    session = import_service.preview(csv_file, override_keys={key})

    assert [row.row_number for row in session.selected_rows] == [2]
    assert session.rows[0].is_reimport


def test_deselect_drops_override(import_service, sample_payees, sample_project, write_csv):
    csv_file = write_csv(HOME_DEPOT)
    import_service.import_csv(csv_file)

    session = import_service.preview(csv_file)
    session.select([2])
    session.deselect([2])

    assert session.override_keys == set()
    assert session.selected_rows == []


def test_in_file_duplicate_not_selected(import_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(HOME_DEPOT + HOME_DEPOT))

    first, second = session.rows
    assert first.status == RowStatus.NEW
    assert second.status == RowStatus.DUPLICATE
    assert second.duplicate_scope == DuplicateScope.IN_FILE
    assert not second.selected
    assert str(second.issue) == "Duplicate of: Home Depot on 2024-01-15 for -245.67"
    assert session.summary().in_file_duplicates == 1


def test_error_rows_reported_and_not_selectable(import_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(
        write_csv(HOME_DEPOT + "13/45/2024,Expense,Bad Date,,,,24-001,,-10.00\n")
    )

    error_row = session.rows[1]
    assert error_row.status == RowStatus.ERROR
    assert isinstance(error_row.issue, ParseError)
    assert error_row.raw["Name"] == "Bad Date"
    assert not error_row.selected
    with pytest.raises(ValidationError):
        session.select([3])

    session.mark_reviewed()
    result = session.commit()
    assert result.expenses_imported == 1
    assert result.errors == []


def test_select_unknown_row(import_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(HOME_DEPOT))

    with pytest.raises(NotFoundError):
        session.select([42])


def test_unmatched_payee_requires_review(import_service, payee_service, sample_payees, sample_project, write_csv):
    """A name with no confident match is never auto-created."""
    session = import_service.preview(write_csv(HOME_DEPOT + UNKNOWN))

    review = session.pending_payees["XYZ Unique Vendor LLC"]
    assert review.suggested_payee_type == PayeeType.SUBCONTRACTOR
    assert session.unresolved_payees == ["XYZ Unique Vendor LLC"]
    assert session.rows[1].payee_id is None

    with pytest.raises(MatchAmbiguous) as excinfo:
        session.mark_reviewed()
    assert excinfo.value.payee_names == ["XYZ Unique Vendor LLC"]
    assert session.state == ImportState.CATEGORIZED

    session.mark_reviewed(skip_unresolved=True)
    result = session.commit()

    assert result.expenses_imported == 2
    assert result.created_payees == {}
    assert len(payee_service.list_payees()) == 3


def test_resolve_payee_create(import_service, temp_db, payee_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(UNKNOWN))
    session.resolve_payee("XYZ Unique Vendor LLC", ResolutionAction.CREATE)
    session.mark_reviewed()

    result = session.commit()

    payee_id = result.created_payees["XYZ Unique Vendor LLC"]
    payee = payee_service.get_payee(payee_id)
    assert payee.payee_type == PayeeType.SUBCONTRACTOR
    assert temp_db.list_expenses()[0].payee_id == payee_id
    assert any(entry.decision == "created" for entry in session.match_log)


def test_resolve_payee_create_reuses_existing(import_service, payee_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(UNKNOWN))
    session.resolve_payee("XYZ Unique Vendor LLC", "create")
    existing_id = payee_service.create_payee("XYZ Unique Vendor LLC")
    session.mark_reviewed()

    result = session.commit()

    assert result.created_payees == {}
    assert result.expenses_imported == 1
    assert import_service.db.list_expenses()[0].payee_id == existing_id


def test_resolve_payee_match(import_service, temp_db, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(UNKNOWN))
    home_depot_id = sample_payees["Home Depot"].id

    session.resolve_payee("XYZ Unique Vendor LLC", "match", payee_id=home_depot_id)
    session.mark_reviewed()
    session.commit()

    assert temp_db.list_expenses()[0].payee_id == home_depot_id


def test_resolve_payee_errors(import_service, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(UNKNOWN))

    with pytest.raises(NotFoundError):
        session.resolve_payee("Home Depot", "create")
    with pytest.raises(ValidationError):
        session.resolve_payee("XYZ Unique Vendor LLC", "match")
    with pytest.raises(NotFoundError):
        session.resolve_payee("XYZ Unique Vendor LLC", "match", payee_id=999)
    with pytest.raises(ValidationError):
        session.resolve_payee("XYZ Unique Vendor LLC", "merge")


def test_resolve_client_create(import_service, temp_db, client_service, sample_project, write_csv):
    session = import_service.preview(write_csv(INVOICE))
    assert session.unresolved_clients == ["Smith Family"]

    session.resolve_client("Smith Family", ResolutionAction.CREATE)
    session.mark_reviewed()
    result = session.commit()

    client_id = result.created_clients["Smith Family"]
    assert client_service.get_client(client_id).client_name == "Smith Family"
    assert temp_db.list_revenues()[0].client_id == client_id


def test_existing_client_is_matched(import_service, client_service, sample_project, write_csv):
    client_id = client_service.create_client("Smith Family")

    session = import_service.preview(write_csv(INVOICE))

    assert session.rows[0].client_id == client_id
    assert session.pending_clients == {}


def test_unmatched_project_goes_to_unassigned(import_service, temp_db, project_service, sample_payees, write_csv):
    row = "01/15/2024,Expense,Home Depot,Job Expenses:Materials,Materials,Lumber,99-999,,-20.00\n"
    session = import_service.preview(write_csv(row))

    summary = session.summary()
    assert [p.qb_project for p in summary.unmatched_projects] == ["99-999"]
    assert summary.unmatched_projects[0].total_amount == Decimal("20.00")

    with pytest.raises(MatchAmbiguous) as excinfo:
        session.mark_reviewed()
    assert excinfo.value.project_names == ["99-999"]

    session.resolve_project("99-999", ResolutionAction.SKIP)
    session.mark_reviewed()
    session.commit()

    expense = temp_db.list_expenses()[0]
    unassigned = project_service.get_unassigned_project()
    assert unassigned.project_number == UNASSIGNED_PROJECT_NUMBER
    assert expense.project_id == unassigned.id
    assert expense.description.endswith("(Unassigned)")


def test_resolve_project_match(import_service, temp_db, sample_payees, sample_project, write_csv):
    """Every row carrying the unmatched value moves to the chosen project."""
    row = "01/15/2024,Expense,Home Depot,Job Expenses:Materials,Materials,Lumber,25-117,,-20.00\n"
    session = import_service.preview(write_csv(row + row.replace("-20.00", "-35.00")))

    unmatched = session.unmatched_projects["25-117"]
    assert unmatched.transaction_count == 2
    assert [project.id for project, _ in unmatched.suggestions] == [sample_project.id]
    assert session.unresolved_projects == ["25-117"]

    session.resolve_project("25-117", ResolutionAction.MATCH, project_id=sample_project.id)

    assert [r.project_id for r in session.rows] == [sample_project.id, sample_project.id]
    assert session.unresolved_projects == []
    assert any(entry.decision == "user_matched" for entry in session.match_log)

    session.mark_reviewed()
    session.commit()

    expenses = temp_db.list_expenses()
    assert {e.project_id for e in expenses} == {sample_project.id}
    assert not any(e.description.endswith("(Unassigned)") for e in expenses)
    assert temp_db.get_project_by_number(UNASSIGNED_PROJECT_NUMBER) is None


def test_resolve_project_errors(import_service, sample_payees, sample_project, write_csv):
    row = "01/15/2024,Expense,Home Depot,Job Expenses:Materials,Materials,Lumber,25-117,,-20.00\n"
    session = import_service.preview(write_csv(row))

    with pytest.raises(NotFoundError):
        session.resolve_project("24-001", "skip")
    with pytest.raises(ValidationError):
        session.resolve_project("25-117", "create")
    with pytest.raises(ValidationError):
        session.resolve_project("25-117", "match")
    with pytest.raises(NotFoundError):
        session.resolve_project("25-117", "match", project_id=999)
    assert session.unresolved_projects == ["25-117"]
    assert session.rows[0].project_id is None


def test_persisted_mapping_wins(import_service, mapping_service, sample_payees, sample_project, write_csv):
    mapping_service.set_mapping("Job Expenses:Materials", "equipment")

    session = import_service.preview(write_csv(HOME_DEPOT))

    assert session.rows[0].category == ExpenseCategory.EQUIPMENT
    assert session.rows[0].category_source == "database"


def test_unmapped_account_reported(import_service, sample_payees, sample_project, write_csv):
    row = "01/15/2024,Expense,Home Depot,Mystery Account,Mystery,Misc,24-001,,-20.00\n"
    session = import_service.preview(write_csv(row))

    unmapped = session.summary().unmapped_accounts
    assert [u.account_full_name for u in unmapped] == ["Mystery Account"]
    assert unmapped[0].transaction_count == 1
    assert session.rows[0].category == ExpenseCategory.OTHER


def test_state_machine(import_service, sample_payees, sample_project, write_csv):
    csv_file = write_csv(HOME_DEPOT)
    session = import_service.start(csv_file)
    assert session.state == ImportState.UPLOADED

    with pytest.raises(InvalidStateError):
        session.categorize()
    session.parse()
    assert session.state == ImportState.PARSED
    with pytest.raises(InvalidStateError):
        session.parse()

    session.categorize()
    with pytest.raises(InvalidStateError):
        session.commit()

    session.mark_reviewed()
    assert session.state == ImportState.REVIEWED
    session.commit()
    assert session.state == ImportState.COMMITTED

    with pytest.raises(InvalidStateError):
        session.commit()
    with pytest.raises(InvalidStateError):
        session.select([2])


def test_commit_in_flight_is_rejected(tmp_path, write_csv):
    """A commit started from inside a running commit is refused."""
    db = ReentrantDatabase(f"sqlite:///{tmp_path / 'reentrant.db'}")
    db.create_project(project_number="24-001", project_name="Smith Kitchen Remodel")
    db.create_payee(payee_name="Home Depot", full_name=None, payee_type="material_supplier")
    session = CSVImportService(db).preview(write_csv(HOME_DEPOT))
    session.mark_reviewed()
    db.session = session

    result = session.commit()

    assert len(db.reentry_errors) == 1
    assert isinstance(db.reentry_errors[0], ConflictError)
    assert result.expenses_imported == 1
    assert len(db.list_expenses()) == 1
    assert [b.id for b in db.list_import_batches()] == [result.batch_id]


def test_failed_batch_close_blocks_second_commit(import_service, temp_db, sample_payees, sample_project, write_csv,
                                                  monkeypatch):
    """Rows written before a failure are never inserted a second time."""
    session = import_service.preview(write_csv(HOME_DEPOT))
    session.mark_reviewed()

    def fail(*args, **kwargs):
        raise PersistenceError("disk I/O error")

    monkeypatch.setattr(temp_db, "update_import_batch", fail)
    with pytest.raises(PersistenceError):
        session.commit()
    monkeypatch.undo()

    assert session.state == ImportState.COMMITTED
    assert session.result.batch_id == session.batch_id
    assert session.result.expenses_imported == 1
    with pytest.raises(InvalidStateError):
        session.commit()

    assert len(temp_db.list_expenses()) == 1
    batches = temp_db.list_import_batches()
    assert [b.id for b in batches] == [session.batch_id]
    assert batches[0].status == BatchStatus.PROCESSING

    # The half-finished batch can still be undone
    outcome = session.rollback()
    assert outcome.expenses_deleted == 1


def test_aborted_commit_closes_batch_as_failed(import_service, temp_db, sample_payees, write_csv, monkeypatch):
    row = "01/15/2024,Expense,Home Depot,Job Expenses:Materials,Materials,Lumber,99-999,,-20.00\n"
    session = import_service.preview(write_csv(row))
    session.mark_reviewed(skip_unresolved=True)

    def fail(*args, **kwargs):
        raise PersistenceError("database is locked")

    monkeypatch.setattr(temp_db, "get_project_by_number", fail)
    with pytest.raises(PersistenceError):
        session.commit()
    monkeypatch.undo()

    assert session.state == ImportState.COMMITTED
    with pytest.raises(InvalidStateError):
        session.commit()

    batch = temp_db.get_import_batch(session.batch_id)
    assert batch.status == BatchStatus.FAILED
    assert batch.errors == 1
    assert batch.error_messages[0].startswith("Commit aborted:")
    assert temp_db.list_expenses() == []
    assert len(temp_db.list_import_batches()) == 1


def test_commit_generates_batch_id_once(import_service, temp_db, sample_payees, sample_project, write_csv):
    session = import_service.preview(write_csv(HOME_DEPOT + JOHNSON))
    session.mark_reviewed()

    result = session.commit()

    assert session.batch_id == result.batch_id
    assert len(result.batch_id) == 32
    assert {e.import_batch_id for e in temp_db.list_expenses()} == {result.batch_id}
    assert len(temp_db.list_import_batches()) == 1


def test_transient_insert_failure_is_retried(flaky_db, write_csv, caplog):
    db = flaky_db({"Home Depot": 2})
    service = CSVImportService(db, settings=ImportSettings(max_insert_attempts=3))

    with caplog.at_level(logging.WARNING, logger="sitebooks"):
        result = service.import_csv(write_csv(HOME_DEPOT + JOHNSON))

    assert result.status == BatchStatus.COMPLETED
    assert result.expenses_imported == 2
    assert db.attempts["Home Depot"] == 3
    assert sum("attempt" in r.getMessage() for r in caplog.records) == 2


def test_persistent_insert_failure_is_partial(flaky_db, write_csv):
    db = flaky_db({"Home Depot": 10})
    service = CSVImportService(db, settings=ImportSettings(max_insert_attempts=2))

    result = service.import_csv(write_csv(HOME_DEPOT + JOHNSON))

    assert result.status == BatchStatus.PARTIAL
    assert result.expenses_imported == 1
    assert result.failed_rows == [2]
    assert db.attempts["Home Depot"] == 2
    assert result.errors[0].startswith("Row 2:")
    with pytest.raises(BatchPartialFailure) as excinfo:
        result.raise_for_status()
    assert excinfo.value.batch_id == result.batch_id

    batch = db.get_import_batch(result.batch_id)
    assert batch.status == BatchStatus.PARTIAL
    assert batch.errors == 1
    assert batch.error_messages == result.errors
    assert [e.name for e in db.list_expenses()] == ["Johnson Plumbing"]


def test_all_inserts_failing_marks_batch_failed(flaky_db, write_csv):
    db = flaky_db({"Home Depot": 10, "Johnson Plumbing": 10})
    service = CSVImportService(db, settings=ImportSettings(max_insert_attempts=1))

    result = service.import_csv(write_csv(HOME_DEPOT + JOHNSON))

    assert result.status == BatchStatus.FAILED
    assert result.imported == 0
    assert db.get_import_batch(result.batch_id).status == BatchStatus.FAILED


def test_session_rollback(import_service, temp_db, sample_payees, sample_project, write_csv):
    csv_file = write_csv(HOME_DEPOT + INVOICE)
    session = import_service.preview(csv_file)
    session.mark_reviewed(skip_unresolved=True)
    result = session.commit()

    outcome = session.rollback()

    assert (outcome.expenses_deleted, outcome.revenues_deleted) == (1, 1)
    assert session.state == ImportState.ROLLED_BACK
    assert temp_db.list_expenses() == []
    assert temp_db.get_import_batch(result.batch_id).status == BatchStatus.ROLLED_BACK

    # Rows of a rolled-back batch are new again
    again = import_service.preview(csv_file)
    assert all(row.status == RowStatus.NEW for row in again.rows)
