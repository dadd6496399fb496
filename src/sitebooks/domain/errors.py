"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class InvalidStateError(ConflictError):
    """Import session operation is not allowed in its current state."""


class ParseError(ValidationError):
    """A CSV row could not be parsed (bad date, amount or missing field)."""

    def __init__(self, message: str, row_number: Optional[int] = None, raw: Optional[dict[str, str]] = None):
        self.row_number = row_number
        self.raw = raw or {}
        if row_number is not None:
            message = f"Row {row_number}: {message}"
        super().__init__(message)


class DuplicateDetected(DomainError):
    """Informational marker for a row that duplicates another transaction.

    Attached to preview rows; never raised out of the import pipeline.
    """

    def __init__(self, match_key: str, scope: str, existing_id: Optional[int] = None, reason: str = ""):
        self.match_key = match_key
        self.scope = scope
        self.existing_id = existing_id
        self.reason = reason
        if scope == "database":
            message = f"Already imported as {existing_id} (key {match_key})"
        else:
            message = reason or f"Duplicate within file (key {match_key})"
        super().__init__(message)


class MatchAmbiguous(DomainError):
    """Payee, client or project names still waiting for a human decision."""

    def __init__(
        self,
        payee_names: list[str],
        client_names: Optional[list[str]] = None,
        project_names: Optional[list[str]] = None,
    ):
        self.payee_names = payee_names
        self.client_names = client_names or []
        self.project_names = project_names or []
        parts = []
        if self.payee_names:
            parts.append(f"payees: {', '.join(self.payee_names)}")
        if self.client_names:
            parts.append(f"clients: {', '.join(self.client_names)}")
        if self.project_names:
            parts.append(f"projects: {', '.join(self.project_names)}")
        super().__init__(f"Unresolved matches must be resolved or skipped ({'; '.join(parts)})")


class PersistenceError(DomainError):
    """A row could not be written to the store."""


class BatchPartialFailure(DomainError):
    """Some rows of a committed batch failed to insert."""

    def __init__(self, batch_id: str, failed: int, errors: list[str]):
        self.batch_id = batch_id
        self.failed = failed
        self.errors = errors
        super().__init__(
            f"Import batch {batch_id} completed with {failed} failed row{'s' if failed != 1 else ''}"
        )


def payee_not_found(payee_id: int) -> str:
    """Return message for missing payee."""
    return f"Payee {payee_id} not found"


def client_not_found(client_id: int) -> str:
    """Return message for missing client."""
    return f"Client {client_id} not found"


def project_not_found(project_id: int) -> str:
    """Return message for missing project."""
    return f"Project {project_id} not found"


def batch_not_found(batch_id: str) -> str:
    """Return message for missing import batch."""
    return f"Import batch '{batch_id}' not found"
