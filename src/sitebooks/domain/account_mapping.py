"""Account mapping domain service."""

from sitebooks.database.base import Database
from sitebooks.domain.category_mapping import MappingConfig
from sitebooks.domain.entities import AccountMapping as AccountMappingEntity, ExpenseCategory
from sitebooks.domain.errors import NotFoundError, ValidationError


class AccountMappingService:
    """Service for the persisted QuickBooks account -> category table."""

    def __init__(self, db: Database):
        self.db = db

    def set_mapping(self, qb_account_full_path: str, category: ExpenseCategory | str) -> int:
        """Create or replace the category for an account path.

        Raises:
            ValidationError: If the path is empty or the category is unknown
        """
        path = (qb_account_full_path or "").strip()
        if not path:
            raise ValidationError("Account path cannot be empty")
        try:
            category = ExpenseCategory(category)
        except ValueError:
            raise ValidationError(
                f"Invalid category '{category}'. "
                f"Must be one of: {', '.join(c.value for c in ExpenseCategory)}"
            )
        return self.db.set_account_mapping(qb_account_full_path=path, app_category=category.value)

    def delete_mapping(self, qb_account_full_path: str) -> None:
        """Delete the mapping for an account path.

        Raises:
            NotFoundError: If no mapping exists for the path
        """
        if not self.db.delete_account_mapping(qb_account_full_path.strip()):
            raise NotFoundError(f"No mapping for account '{qb_account_full_path}'")

    def list_mappings(self) -> list[AccountMappingEntity]:
        return self.db.list_account_mappings()

    def load_config(self) -> MappingConfig:
        """Snapshot the persisted mappings as a read-only MappingConfig."""
        return MappingConfig.from_mappings(self.db.list_account_mappings())
