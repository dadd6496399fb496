"""CSV import domain service.

An import runs as a session that moves through
UPLOADED -> PARSED -> CATEGORIZED -> REVIEWED -> COMMITTED (-> ROLLED_BACK).
Nothing is written to the store before ``commit()``; closing the session
earlier simply discards it.
"""

import time
import uuid
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable, Optional, TypeVar

from sitebooks.config import ImportSettings
from sitebooks.database.base import Database
from sitebooks.domain.account_mapping import AccountMappingService
from sitebooks.domain.category_mapping import (
    SOURCE_DEFAULT,
    SOURCE_DESCRIPTION,
    CategoryMapper,
    MappingConfig,
    suggest_category_from_account_name,
)
from sitebooks.domain.client import ClientService
from sitebooks.domain.csv_parser import ParsedFile, QuickBooksCSVParser, TransactionRecord
from sitebooks.domain.deduplication import ExistingRowIndex, detect_in_file_duplicates
from sitebooks.domain.entities import BatchStatus, Client, Payee
from sitebooks.domain.errors import (
    ConflictError,
    DomainError,
    DuplicateDetected,
    InvalidStateError,
    MatchAmbiguous,
    NotFoundError,
    PersistenceError,
    ValidationError,
    client_not_found,
    payee_not_found,
    project_not_found,
)
from sitebooks.domain.import_batch import ImportBatchService, RollbackResult
from sitebooks.domain.import_types import (
    CommitResult,
    DuplicateScope,
    ImportState,
    ImportSummary,
    MatchLogEntry,
    PendingClientReview,
    PendingPayeeReview,
    PreviewRow,
    Resolution,
    ResolutionAction,
    RowStatus,
    UnmappedAccount,
    UnmatchedProject,
)
from sitebooks.domain.payee import PayeeService
from sitebooks.domain.payee_matcher import (
    PayeeMatchResult,
    batch_fuzzy_match_payees,
    detect_payee_type_from_account,
)
from sitebooks.domain.project import ProjectService
from sitebooks.domain.project_matcher import fuzzy_match_client, fuzzy_match_project, suggest_projects
from sitebooks.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ImportSession:
    """One user-initiated import, from upload to commit."""

    def __init__(
        self,
        db: Database,
        csv_file_path: str,
        settings: ImportSettings,
        mapping_config: Optional[MappingConfig] = None,
        override_keys: Optional[Iterable[str]] = None,
    ):
        self.db = db
        self.csv_file_path = csv_file_path
        self.file_name = Path(csv_file_path).name
        self.settings = settings
        self.state = ImportState.UPLOADED
        self.override_keys: set[str] = set(override_keys or ())
        self.batch_id: Optional[str] = None
        self.result: Optional[CommitResult] = None

        self._mapping_config = mapping_config
        self._parser = QuickBooksCSVParser()
        self._parsed: Optional[ParsedFile] = None
        self._committing = False

        self.rows: list[PreviewRow] = []
        self.pending_payees: dict[str, PendingPayeeReview] = {}
        self.pending_clients: dict[str, PendingClientReview] = {}
        self.payee_resolutions: dict[str, Resolution] = {}
        self.client_resolutions: dict[str, Resolution] = {}
        self.project_resolutions: dict[str, Resolution] = {}
        self.match_log: list[MatchLogEntry] = []
        self.mapping_stats: Counter = Counter()
        self.unmapped_accounts: dict[str, UnmappedAccount] = {}
        self.unmatched_projects: dict[str, UnmatchedProject] = {}

        self._payees: dict[int, Payee] = {}
        self._clients: dict[int, Client] = {}
        self._payee_matches: dict[str, PayeeMatchResult] = {}

    # State helpers
    def _require(self, *states: ImportState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidStateError(
                f"Import is {self.state.value}; this step requires: {allowed}"
            )

    def _row(self, row_number: int) -> PreviewRow:
        for row in self.rows:
            if row.row_number == row_number:
                return row
        raise NotFoundError(f"Row {row_number} not found in {self.file_name}")

    # Parse
    def parse(self) -> ParsedFile:
        """Read the CSV file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If required columns are missing
        """
        self._require(ImportState.UPLOADED)
        self._parsed = self._parser.parse_file(self.csv_file_path)
        self.state = ImportState.PARSED
        return self._parsed

    # Categorize
    def categorize(self) -> list[PreviewRow]:
        """Classify every row as new, duplicate or error and match entities."""
        self._require(ImportState.PARSED)
        parsed = self._parsed

        self._payees = {p.id: p for p in self.db.list_payees()}
        self._clients = {c.id: c for c in self.db.list_clients()}
        projects = ProjectService(self.db).list_projects()
        aliases = self.db.list_project_aliases()
        mapper = CategoryMapper(self._mapping_config or AccountMappingService(self.db).load_config())
        index = ExistingRowIndex(self.db.list_expenses(), self.db.list_revenues())

        # Each distinct expense name is scored once
        names = list(dict.fromkeys(r.name for r in parsed.records if r.name and not r.is_revenue))
        self._payee_matches = {
            result.qb_name: result
            for result in batch_fuzzy_match_payees(names, list(self._payees.values()), self.settings)
        }

        _, in_file = detect_in_file_duplicates(parsed.records)
        in_file_by_row = {dup.record.row_number: dup for dup in in_file}

        rows: list[PreviewRow] = []
        for error in parsed.errors:
            rows.append(PreviewRow(
                row_number=error.row_number,
                status=RowStatus.ERROR,
                raw=error.raw,
                issue=error,
            ))

        for record in parsed.records:
            row = PreviewRow(row_number=record.row_number, status=RowStatus.NEW, raw=record.raw, record=record)
            self._match_project(row, record, projects, aliases)
            if record.is_revenue:
                self._match_client(row, record)
                existing = index.find_revenue(record)
            else:
                self._match_payee(row, record)
                self._categorize_expense(row, record, mapper)
                payee = self._payees.get(row.payee_id) if row.payee_id else None
                existing = index.find_expense(record, payee.payee_name if payee else None)

            duplicate = in_file_by_row.get(record.row_number)
            if duplicate is not None:
                row.status = RowStatus.DUPLICATE
                row.duplicate_scope = DuplicateScope.IN_FILE
                row.match_key = duplicate.match_key
                row.issue = DuplicateDetected(duplicate.match_key, DuplicateScope.IN_FILE.value, reason=duplicate.reason)
            elif existing is not None:
                row.status = RowStatus.DUPLICATE
                row.duplicate_scope = DuplicateScope.DATABASE
                row.match_key = existing.match_key
                row.existing_id = existing.existing_id
                row.issue = DuplicateDetected(existing.match_key, DuplicateScope.DATABASE.value, existing.existing_id)
                if existing.match_key in self.override_keys:
                    row.selected = True
                    self._log(record.name or f"{record.date}|{record.amount}", str(existing.existing_id),
                              "expense" if not record.is_revenue else "revenue", 100, "user_override", "override_dedup")
            else:
                row.selected = True
            rows.append(row)

        rows.sort(key=lambda r: r.row_number)
        self.rows = rows
        self.state = ImportState.CATEGORIZED
        logger.info(
            "Categorized %s: %d new, %d duplicate, %d error, %d payees pending review",
            self.file_name,
            sum(1 for r in rows if r.status == RowStatus.NEW),
            sum(1 for r in rows if r.status == RowStatus.DUPLICATE),
            sum(1 for r in rows if r.status == RowStatus.ERROR),
            len(self.pending_payees),
        )
        return self.rows

    def _log(self, qb_name, matched_entity, entity_type, confidence, decision, algorithm) -> None:
        self.match_log.append(MatchLogEntry(qb_name, matched_entity, entity_type, confidence, decision, algorithm))

    def _match_project(self, row, record: TransactionRecord, projects, aliases) -> None:
        if not record.project_wo:
            return
        match = fuzzy_match_project(record.project_wo, projects, aliases)
        if match is not None:
            row.project_id = match.project_id
            if match.match_type.startswith("alias"):
                decision = "alias_matched"
            elif match.match_type in ("fuzzy", "regex"):
                decision = "fuzzy_matched"
            else:
                decision = "auto_matched"
            number = next((p.project_number for p in projects if p.id == match.project_id), str(match.project_id))
            self._log(record.project_wo, number, "project", match.confidence, decision, match.match_type)
            return

        unmatched = self.unmatched_projects.get(record.project_wo)
        if unmatched is None:
            unmatched = UnmatchedProject(
                qb_project=record.project_wo,
                suggestions=suggest_projects(record.project_wo, projects),
            )
            self.unmatched_projects[record.project_wo] = unmatched
        unmatched.transaction_count += 1
        unmatched.total_amount += abs(record.amount)
        self._log(record.project_wo, None, "project", 0, "unmatched", "fuzzy_match_project")

    def _match_payee(self, row, record: TransactionRecord) -> None:
        if not record.name:
            return
        result = self._payee_matches[record.name]
        if result.best_match is not None:
            best = result.best_match
            row.payee_id = best.payee.id
            decision = "auto_matched" if best.match_type == "exact" or best.confidence >= 100 else "fuzzy_matched"
            self._log(record.name, best.payee.payee_name, "payee", best.confidence, decision, best.match_type)
            return

        # No confident match: queue for a human, never auto-create.
        if record.name not in self.pending_payees:
            self.pending_payees[record.name] = PendingPayeeReview(
                qb_name=record.name,
                suggested_payee_type=detect_payee_type_from_account(record.account_full_name),
                account_full_name=record.account_full_name,
                suggestions=result.matches[: self.settings.max_suggestions],
            )
        self._log(record.name, None, "payee", 0, "pending_review", "fuzzy_match_payee")

    def _match_client(self, row, record: TransactionRecord) -> None:
        if not record.name:
            return
        result = fuzzy_match_client(record.name, self._clients.values(), self.settings)
        if result.best_match is not None:
            row.client_id = result.best_match.client.id
            self._log(record.name, result.best_match.client.client_name, "client",
                      result.best_match.confidence, "auto_matched", result.best_match.matched_field)
            return
        if record.name not in self.pending_clients:
            self.pending_clients[record.name] = PendingClientReview(
                qb_name=record.name, suggestions=result.suggestions
            )
        self._log(record.name, None, "client", 0, "pending_review", "fuzzy_match_client")

    def _categorize_expense(self, row, record: TransactionRecord, mapper: CategoryMapper) -> None:
        resolution = mapper.resolve(record.name or record.memo, record.account_full_name)
        row.category = resolution.category
        row.category_source = resolution.source
        self.mapping_stats[resolution.source] += 1

        if resolution.source == SOURCE_DEFAULT:
            if record.account_full_name:
                unmapped = self.unmapped_accounts.get(record.account_full_name)
                if unmapped is None:
                    unmapped = UnmappedAccount(
                        account_full_name=record.account_full_name,
                        suggested_category=suggest_category_from_account_name(record.account_full_name),
                    )
                    self.unmapped_accounts[record.account_full_name] = unmapped
                unmapped.transaction_count += 1
                unmapped.total_amount += abs(record.amount)
                self._log(record.account_full_name, None, "account", 0, "unmatched", "all_mapping_strategies")
        else:
            self._log(
                record.account_full_name or record.name,
                resolution.category.value,
                "account" if resolution.source != SOURCE_DESCRIPTION else "category",
                100 if resolution.source != SOURCE_DESCRIPTION else 80,
                "mapped",
                f"{resolution.source}_mapping",
            )

    # Review
    def select(self, row_numbers: Iterable[int]) -> None:
        """Include rows in the commit; selecting a stored duplicate overrides dedup for its key.

        Raises:
            ValidationError: If a row failed to parse
        """
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        for number in row_numbers:
            row = self._row(number)
            if row.status == RowStatus.ERROR:
                raise ValidationError(f"Row {number} could not be parsed and cannot be imported")
            row.selected = True
            if row.duplicate_scope == DuplicateScope.DATABASE:
                self.override_keys.add(row.match_key)

    def deselect(self, row_numbers: Iterable[int]) -> None:
        """Exclude rows from the commit."""
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        for number in row_numbers:
            row = self._row(number)
            row.selected = False
            if row.duplicate_scope == DuplicateScope.DATABASE and not any(
                r.selected and r.match_key == row.match_key for r in self.rows
            ):
                self.override_keys.discard(row.match_key)

    def resolve_payee(self, qb_name: str, action: ResolutionAction | str, payee_id: Optional[int] = None) -> None:
        """Record the user's decision for a pending payee review.

        Raises:
            NotFoundError: If the name is not pending or the payee doesn't exist
            ValidationError: If MATCH is chosen without a payee ID
        """
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        self.payee_resolutions[qb_name] = self._resolution(
            qb_name, action, payee_id, self.pending_payees, self._payees, self.db.get_payee, payee_not_found
        )

    def resolve_client(self, qb_name: str, action: ResolutionAction | str, client_id: Optional[int] = None) -> None:
        """Record the user's decision for a pending client review."""
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        self.client_resolutions[qb_name] = self._resolution(
            qb_name, action, client_id, self.pending_clients, self._clients, self.db.get_client, client_not_found
        )

    def resolve_project(
        self, qb_project: str, action: ResolutionAction | str, project_id: Optional[int] = None
    ) -> None:
        """Assign an unmatched Project/WO value to an existing project, or skip it.

        Skipped values keep their rows on the unassigned project.

        Raises:
            NotFoundError: If the value is not unmatched or the project doesn't exist
            ValidationError: If CREATE is chosen or MATCH lacks a project ID
        """
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        projects = {}
        resolution = self._resolution(
            qb_project, action, project_id, self.unmatched_projects, projects, self.db.get_project, project_not_found
        )
        if resolution.action == ResolutionAction.CREATE:
            raise ValidationError("Projects cannot be created during import; add the project first")

        for row in self.rows:
            if row.record is not None and row.record.project_wo == qb_project:
                row.project_id = resolution.entity_id
        self.project_resolutions[qb_project] = resolution
        if resolution.action == ResolutionAction.MATCH:
            self._log(qb_project, projects[project_id].project_number, "project", 100, "user_matched", "user_resolution")

    def _resolution(self, qb_name, action, entity_id, pending, known, lookup, not_found) -> Resolution:
        if qb_name not in pending:
            raise NotFoundError(f"'{qb_name}' is not waiting for review")
        try:
            action = ResolutionAction(action)
        except ValueError:
            raise ValidationError(f"Invalid action '{action}'")
        if action == ResolutionAction.MATCH:
            if entity_id is None:
                raise ValidationError(f"Matching '{qb_name}' requires an existing ID")
            if entity_id not in known:
                entity = lookup(entity_id)
                if entity is None:
                    raise NotFoundError(not_found(entity_id))
                known[entity_id] = entity
            return Resolution(action, entity_id)
        return Resolution(action)

    @property
    def unresolved_payees(self) -> list[str]:
        return [name for name in self.pending_payees if name not in self.payee_resolutions]

    @property
    def unresolved_clients(self) -> list[str]:
        return [name for name in self.pending_clients if name not in self.client_resolutions]

    @property
    def unresolved_projects(self) -> list[str]:
        return [value for value in self.unmatched_projects if value not in self.project_resolutions]

    def mark_reviewed(self, skip_unresolved: bool = False) -> None:
        """Finish the review step.

        Args:
            skip_unresolved: Treat every unresolved review as skipped

        Raises:
            MatchAmbiguous: If reviews remain unresolved and skip_unresolved is False
        """
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED)
        payees, clients, projects = self.unresolved_payees, self.unresolved_clients, self.unresolved_projects
        if (payees or clients or projects) and not skip_unresolved:
            raise MatchAmbiguous(payees, clients, projects)
        for name in payees:
            self.payee_resolutions[name] = Resolution(ResolutionAction.SKIP)
        for name in clients:
            self.client_resolutions[name] = Resolution(ResolutionAction.SKIP)
        for value in projects:
            self.project_resolutions[value] = Resolution(ResolutionAction.SKIP)
        self.state = ImportState.REVIEWED

    @property
    def selected_rows(self) -> list[PreviewRow]:
        return [row for row in self.rows if row.selected]

    def summary(self) -> ImportSummary:
        """Counts for the preview screen."""
        self._require(ImportState.CATEGORIZED, ImportState.REVIEWED, ImportState.COMMITTED)
        records = [row for row in self.rows if row.record is not None]
        return ImportSummary(
            file_name=self.file_name,
            total_rows=len(self.rows),
            new=sum(1 for r in self.rows if r.status == RowStatus.NEW),
            in_file_duplicates=sum(1 for r in self.rows if r.duplicate_scope == DuplicateScope.IN_FILE),
            database_duplicates=sum(1 for r in self.rows if r.duplicate_scope == DuplicateScope.DATABASE),
            errors=sum(1 for r in self.rows if r.status == RowStatus.ERROR),
            selected=len(self.selected_rows),
            expenses=sum(1 for r in records if not r.is_revenue),
            revenues=sum(1 for r in records if r.is_revenue),
            auto_matched_payees=sum(1 for r in records if not r.is_revenue and r.payee_id is not None),
            pending_payees=len(self.pending_payees),
            pending_clients=len(self.pending_clients),
            mapping_stats=dict(self.mapping_stats),
            unmapped_accounts=list(self.unmapped_accounts.values()),
            unmatched_projects=list(self.unmatched_projects.values()),
        )

    # Commit
    def commit(self) -> CommitResult:
        """Insert the selected rows under a fresh import batch.

        Each row is inserted on its own and retried on PersistenceError; a
        row that still fails is recorded and the rest of the batch carries on.
        Once the batch record exists the session counts as committed even if
        a later step raises: the batch is closed with the counts reached so
        far and the session refuses any further commit.

        Raises:
            ConflictError: If a commit is already running
            InvalidStateError: If the session is not reviewed (or already committed)
            PersistenceError: If the batch record cannot be created or closed
        """
        if self._committing:
            raise ConflictError("Commit already in progress for this import")
        self._require(ImportState.REVIEWED)
        self._committing = True
        try:
            return self._commit()
        finally:
            self._committing = False

    def _commit(self) -> CommitResult:
        selected = self.selected_rows
        batch_id = uuid.uuid4().hex
        self.db.create_import_batch(
            batch_id=batch_id,
            file_name=self.file_name,
            total_rows=len(selected),
            status=BatchStatus.PROCESSING.value,
        )
        self.batch_id = batch_id
        self.state = ImportState.COMMITTED
        logger.info("Committing %d rows from %s as batch %s", len(selected), self.file_name, batch_id)

        result = CommitResult(
            batch_id=batch_id,
            status=BatchStatus.PROCESSING,
            duplicates_skipped=sum(
                1 for r in self.rows if r.status == RowStatus.DUPLICATE and not r.selected
            ),
            skipped_not_selected=sum(1 for r in self.rows if not r.selected),
        )
        self.result = result

        try:
            self._insert_rows(selected, result)
        except DomainError as e:
            logger.error("Commit of batch %s aborted: %s", batch_id, e)
            result.errors.append(f"Commit aborted: {e}")
            raise
        finally:
            self._close_batch(result)
        return result

    def _insert_rows(self, selected: list[PreviewRow], result: CommitResult) -> None:
        batch_id = result.batch_id
        payee_ids = self._create_payees(result)
        client_ids = self._create_clients(result)
        unassigned_id = None
        if any(r.project_id is None for r in selected):
            unassigned_id = ProjectService(self.db).get_unassigned_project().id

        for row in selected:
            label = f"Insert of row {row.row_number}"
            try:
                if row.is_revenue:
                    self._with_retry(label, lambda: self._insert_revenue(row, client_ids, unassigned_id, batch_id))
                    result.revenues_imported += 1
                else:
                    self._with_retry(label, lambda: self._insert_expense(row, payee_ids, unassigned_id, batch_id))
                    result.expenses_imported += 1
            except PersistenceError as e:
                logger.error("Row %d of %s failed: %s", row.row_number, self.file_name, e)
                result.failed_rows.append(row.row_number)
                result.errors.append(f"Row {row.row_number}: {e}")
                continue
            if row.is_reimport:
                result.reimported.append(row.row_number)

    def _close_batch(self, result: CommitResult) -> None:
        """Write the final status and counts to the batch record."""
        if not result.errors:
            result.status = BatchStatus.COMPLETED
        elif result.imported:
            result.status = BatchStatus.PARTIAL
        else:
            result.status = BatchStatus.FAILED

        try:
            self._with_retry(
                f"Closing batch {result.batch_id}",
                lambda: self.db.update_import_batch(
                    result.batch_id,
                    status=result.status.value,
                    expenses_imported=result.expenses_imported,
                    revenues_imported=result.revenues_imported,
                    duplicates_skipped=result.duplicates_skipped,
                    reimported=len(result.reimported),
                    errors=len(result.errors),
                    error_messages=result.errors,
                    match_log=[entry.to_dict() for entry in self.match_log],
                ),
            )
        except PersistenceError:
            logger.error("Batch %s could not be closed and stays %s", result.batch_id, BatchStatus.PROCESSING.value)
            raise
        logger.info(
            "Batch %s %s: %d imported, %d failed",
            result.batch_id, result.status.value, result.imported, len(result.errors),
        )

    def _with_retry(self, label: str, action: Callable[[], T]) -> T:
        attempts = self.settings.max_insert_attempts
        for attempt in range(1, attempts + 1):
            try:
                return action()
            except PersistenceError as e:
                if attempt == attempts:
                    raise
                logger.warning("%s failed (attempt %d/%d): %s", label, attempt, attempts, e)
                if self.settings.retry_delay:
                    time.sleep(self.settings.retry_delay * attempt)

    def _create_payees(self, result: CommitResult) -> dict[str, int]:
        """Apply payee resolutions; returns qb_name -> payee_id."""
        service = PayeeService(self.db)
        resolved = {}
        for qb_name, resolution in self.payee_resolutions.items():
            if resolution.action == ResolutionAction.MATCH:
                resolved[qb_name] = resolution.entity_id
            elif resolution.action == ResolutionAction.CREATE:
                review = self.pending_payees[qb_name]
                existing = service.find_by_name(qb_name)
                if existing is not None:
                    resolved[qb_name] = existing.id
                    continue
                try:
                    payee_id = service.create_payee(qb_name, payee_type=review.suggested_payee_type)
                except PersistenceError as e:
                    result.errors.append(f"Payee '{qb_name}': {e}")
                    continue
                resolved[qb_name] = payee_id
                result.created_payees[qb_name] = payee_id
                self._log(qb_name, qb_name, "payee", 100, "created", "user_resolution")
        return resolved

    def _create_clients(self, result: CommitResult) -> dict[str, int]:
        service = ClientService(self.db)
        resolved = {}
        for qb_name, resolution in self.client_resolutions.items():
            if resolution.action == ResolutionAction.MATCH:
                resolved[qb_name] = resolution.entity_id
            elif resolution.action == ResolutionAction.CREATE:
                try:
                    client_id = service.create_client(qb_name)
                except ConflictError:
                    client_id = next(
                        c.id for c in service.list_clients()
                        if c.client_name.strip().lower() == qb_name.strip().lower()
                    )
                except PersistenceError as e:
                    result.errors.append(f"Client '{qb_name}': {e}")
                    continue
                resolved[qb_name] = client_id
                result.created_clients[qb_name] = client_id
                self._log(qb_name, qb_name, "client", 100, "created", "user_resolution")
        return resolved

    def _insert_expense(self, row: PreviewRow, payee_ids, unassigned_id, batch_id) -> int:
        record = row.record
        payee_id = row.payee_id or payee_ids.get(record.name)
        suffix = " (Unassigned)" if row.project_id is None else ""
        return self.db.create_expense(
            project_id=row.project_id or unassigned_id,
            category=row.category.value,
            amount=abs(record.amount),
            expense_date=record.date,
            name=record.name,
            description=f"{record.transaction_type} - {record.name}{suffix}",
            transaction_type=record.transaction_type,
            payee_id=payee_id,
            account_name=record.account_name or None,
            account_full_name=record.account_full_name or None,
            import_batch_id=batch_id,
        )

    def _insert_revenue(self, row: PreviewRow, client_ids, unassigned_id, batch_id) -> int:
        record = row.record
        suffix = " (Unassigned)" if row.project_id is None else ""
        return self.db.create_revenue(
            project_id=row.project_id or unassigned_id,
            amount=abs(record.amount),
            invoice_date=record.date,
            name=record.name,
            description=f"Invoice from {record.name}{suffix}",
            client_id=row.client_id or client_ids.get(record.name),
            invoice_number=record.invoice_number or None,
            account_name=record.account_name or None,
            account_full_name=record.account_full_name or None,
            import_batch_id=batch_id,
        )

    # Rollback
    def rollback(self) -> RollbackResult:
        """Undo a committed import by deleting every row of its batch."""
        self._require(ImportState.COMMITTED)
        outcome = ImportBatchService(self.db).rollback(self.batch_id)
        self.state = ImportState.ROLLED_BACK
        return outcome


class CSVImportService:
    """Service for importing QuickBooks CSV files."""

    def __init__(
        self,
        db: Database,
        settings: Optional[ImportSettings] = None,
        mapping_config: Optional[MappingConfig] = None,
    ):
        """Initialize CSV import service.

        Args:
            db: Database instance
            settings: Import thresholds and retry policy (defaults when omitted)
            mapping_config: Category mappings; loaded from the store per session when omitted
        """
        self.db = db
        self.settings = settings or ImportSettings()
        self.mapping_config = mapping_config

    def start(self, csv_file_path: str, override_keys: Optional[Iterable[str]] = None) -> ImportSession:
        """Open a session for a file without reading it yet."""
        return ImportSession(
            self.db,
            csv_file_path,
            settings=self.settings,
            mapping_config=self.mapping_config,
            override_keys=override_keys,
        )

    def preview(self, csv_file_path: str, override_keys: Optional[Iterable[str]] = None) -> ImportSession:
        """Parse and categorize a file; the returned session is ready for review.

        Raises:
            FileNotFoundError: If the CSV file doesn't exist
            ValidationError: If required columns are missing
        """
        session = self.start(csv_file_path, override_keys=override_keys)
        session.parse()
        session.categorize()
        return session

    def import_csv(
        self,
        csv_file_path: str,
        override_keys: Optional[Iterable[str]] = None,
        skip_unresolved: bool = True,
    ) -> CommitResult:
        """Import a file without interactive review.

        Rows are imported with their default selection. Unresolved payees,
        clients and projects are skipped (rows keep no payee or client and go
        to the unassigned project) unless skip_unresolved is False, in which
        case MatchAmbiguous is raised before anything is written.
        """
        session = self.preview(csv_file_path, override_keys=override_keys)
        session.mark_reviewed(skip_unresolved=skip_unresolved)
        return session.commit()
