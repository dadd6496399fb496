"""QuickBooks account path to expense category resolution.

Resolution order, first hit wins:

1. user-defined mapping persisted in the store (exact path, case-insensitive)
2. built-in static table, then keywords in the account path itself
3. keywords in the transaction name/description
4. ``other``

The mapper holds no global state: the persisted mappings arrive through an
explicit ``MappingConfig`` so the same inputs always give the same category.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from sitebooks.domain.entities import AccountMapping, ExpenseCategory

ACCOUNT_CATEGORY_MAP: Mapping[str, ExpenseCategory] = MappingProxyType({
    "cost of goods sold:contract labor": ExpenseCategory.SUBCONTRACTOR,
    "cost of goods sold:supplies & materials": ExpenseCategory.MATERIALS,
    "cost of goods sold:equipment rental - cogs": ExpenseCategory.EQUIPMENT,
    "cost of goods sold:equipment rental": ExpenseCategory.EQUIPMENT,
    "cost of goods sold:job site dumpsters": ExpenseCategory.MATERIALS,
    "office expenses:office equipment & supplies": ExpenseCategory.MANAGEMENT,
    "vehicle expenses:vehicle gas & fuel": ExpenseCategory.MANAGEMENT,
    "general business expenses:uniforms": ExpenseCategory.MANAGEMENT,
    "rent:building & land rent": ExpenseCategory.MANAGEMENT,
    "employee benefits:workers' compensation insurance": ExpenseCategory.MANAGEMENT,
    "insurance:business insurance": ExpenseCategory.MANAGEMENT,
    "legal & accounting services:legal fees": ExpenseCategory.MANAGEMENT,
})

# Keyword tables are ordered; the first category with a matching keyword wins.
ACCOUNT_KEYWORDS: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.SUBCONTRACTOR, ("contract labor", "subcontract")),
    (ExpenseCategory.LABOR, ("labor", "wage", "payroll")),
    (ExpenseCategory.MATERIALS, ("material", "supplies", "supply", "lumber", "concrete", "dumpster", "disposal", "aggregate")),
    (ExpenseCategory.EQUIPMENT, ("equipment", "rental", "tool", "machinery", "safety")),
    (ExpenseCategory.PERMITS, ("permit", "license", "inspection")),
    (ExpenseCategory.MANAGEMENT, (
        "insurance", "bond", "office", "admin", "management", "vehicle", "fuel",
        "uniform", "rent", "legal", "accounting",
    )),
)

DESCRIPTION_KEYWORDS: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.LABOR, ("labor", "wage", "payroll")),
    (ExpenseCategory.SUBCONTRACTOR, ("contractor", "subcontractor")),
    (ExpenseCategory.MATERIALS, ("material", "supply", "lumber", "concrete")),
    (ExpenseCategory.EQUIPMENT, ("equipment", "rental", "tool", "machinery")),
    (ExpenseCategory.PERMITS, ("permit", "fee", "license")),
    (ExpenseCategory.MANAGEMENT, ("management", "admin", "office")),
)

SOURCE_DATABASE = "database"
SOURCE_STATIC = "static"
SOURCE_ACCOUNT_KEYWORD = "account_keyword"
SOURCE_DESCRIPTION = "description"
SOURCE_DEFAULT = "default"


def _normalize_path(path: Optional[str]) -> str:
    return " ".join((path or "").lower().split())


def _match_keywords(
    text: str, table: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...]
) -> Optional[ExpenseCategory]:
    for category, keywords in table:
        if any(keyword in text for keyword in keywords):
            return category
    return None


@dataclass(frozen=True)
class MappingConfig:
    """Read-only handle on the account mapping tables."""

    db_mappings: Mapping[str, ExpenseCategory] = field(default_factory=dict)
    static_mappings: Mapping[str, ExpenseCategory] = field(default_factory=lambda: ACCOUNT_CATEGORY_MAP)

    def __post_init__(self):
        normalized = {
            _normalize_path(path): ExpenseCategory(category)
            for path, category in self.db_mappings.items()
        }
        object.__setattr__(self, "db_mappings", MappingProxyType(normalized))

    @classmethod
    def from_mappings(cls, mappings: Iterable[AccountMapping]) -> "MappingConfig":
        """Build a config from persisted AccountMapping entities."""
        return cls(db_mappings={m.qb_account_full_path: m.app_category for m in mappings})


@dataclass(frozen=True)
class CategoryResolution:
    """Resolved category and the rule that produced it."""

    category: ExpenseCategory
    source: str


class CategoryMapper:
    """Deterministic category resolver over an explicit MappingConfig."""

    def __init__(self, config: Optional[MappingConfig] = None):
        self.config = config or MappingConfig()

    def resolve(self, name: Optional[str], account_full_name: Optional[str] = None) -> CategoryResolution:
        """Resolve the expense category for one transaction.

        Args:
            name: Transaction name or description
            account_full_name: QuickBooks account path (e.g. "Job Expenses:Materials")

        Returns:
            CategoryResolution with the category and its source
        """
        path = _normalize_path(account_full_name)
        if path:
            category = self.config.db_mappings.get(path)
            if category is not None:
                return CategoryResolution(category, SOURCE_DATABASE)

            category = self.config.static_mappings.get(path)
            if category is not None:
                return CategoryResolution(ExpenseCategory(category), SOURCE_STATIC)

            category = _match_keywords(path, ACCOUNT_KEYWORDS)
            if category is not None:
                return CategoryResolution(category, SOURCE_ACCOUNT_KEYWORD)

        category = _match_keywords((name or "").lower(), DESCRIPTION_KEYWORDS)
        if category is not None:
            return CategoryResolution(category, SOURCE_DESCRIPTION)

        return CategoryResolution(ExpenseCategory.OTHER, SOURCE_DEFAULT)

    def categorize(self, name: Optional[str], account_full_name: Optional[str] = None) -> ExpenseCategory:
        return self.resolve(name, account_full_name).category


def suggest_category_from_account_name(account_full_name: Optional[str]) -> Optional[ExpenseCategory]:
    """Suggest a category for an unmapped account path, or None."""
    path = _normalize_path(account_full_name)
    if not path:
        return None
    return _match_keywords(path, ACCOUNT_KEYWORDS)
