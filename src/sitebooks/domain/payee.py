"""Payee domain service."""

from typing import Optional

from sitebooks.database.base import Database
from sitebooks.domain.entities import Payee as PayeeEntity, PayeeType
from sitebooks.domain.errors import ConflictError, ValidationError


class PayeeService:
    """Service for managing payees."""

    def __init__(self, db: Database):
        """Initialize payee service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_payee(
        self,
        payee_name: str,
        full_name: Optional[str] = None,
        payee_type: PayeeType | str = PayeeType.OTHER,
    ) -> int:
        """Create a new payee.

        Args:
            payee_name: Display name, usually the QuickBooks Name
            full_name: Optional legal or full name
            payee_type: Payee type

        Returns:
            Payee ID

        Raises:
            ValidationError: If the name is empty or the type is unknown
            ConflictError: If a payee with the same name exists
        """
        payee_name = (payee_name or "").strip()
        if not payee_name:
            raise ValidationError("Payee name cannot be empty")
        try:
            payee_type = PayeeType(payee_type)
        except ValueError:
            raise ValidationError(
                f"Invalid payee type '{payee_type}'. "
                f"Must be one of: {', '.join(t.value for t in PayeeType)}"
            )

        if self.find_by_name(payee_name) is not None:
            raise ConflictError(f"Payee with name '{payee_name}' already exists")

        return self.db.create_payee(
            payee_name=payee_name, full_name=full_name, payee_type=payee_type.value
        )

    def get_payee(self, payee_id: int) -> Optional[PayeeEntity]:
        """Get payee by ID."""
        return self.db.get_payee(payee_id)

    def find_by_name(self, payee_name: str) -> Optional[PayeeEntity]:
        """Find a payee by name, ignoring case and surrounding whitespace."""
        wanted = payee_name.strip().lower()
        for payee in self.db.list_payees():
            if payee.payee_name.strip().lower() == wanted:
                return payee
        return None

    def list_payees(self) -> list[PayeeEntity]:
        """List all payees."""
        return self.db.list_payees()
