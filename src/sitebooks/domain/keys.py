"""Composite keys used to recognise the same transaction across imports.

An expense key is ``date|amount|name`` with an optional ``|account`` suffix.
Records imported before account paths were tracked only carry the 3-part
form, so lookups against the store always try the 4-part key first and then
fall back to the 3-part key.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from sitebooks.utils.amount_parser import parse_amount, round_cents
from sitebooks.utils.date_parser import format_date

AmountLike = Union[Decimal, int, float, str]
DateLike = Union[date, datetime, str]


def normalize_amount(amount: AmountLike) -> str:
    """Return the absolute amount with exactly two decimals.

    Strings are parsed first, so "$1,234.5", "(1234.50)" and 1234.5 all
    normalise to "1234.50".
    """
    if isinstance(amount, str):
        value = parse_amount(amount)
    elif isinstance(amount, float):
        value = Decimal(str(amount))
    else:
        value = Decimal(amount)
    return str(round_cents(abs(value)))


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, trim and collapse inner whitespace."""
    return " ".join((value or "").lower().split())


def create_expense_key(
    txn_date: DateLike,
    amount: AmountLike,
    name: Optional[str],
    account_full_name: Optional[str] = None,
) -> str:
    """Build the composite key for an expense row.

    Args:
        txn_date: Transaction date (date or parseable string)
        amount: Amount (number or raw CSV string)
        name: QuickBooks Name field
        account_full_name: Optional account path; adds the fourth segment

    Returns:
        Normalized key string
    """
    base = f"{format_date(txn_date)}|{normalize_amount(amount)}|{normalize_text(name)}"
    account = normalize_text(account_full_name)
    return f"{base}|{account}" if account else base


def create_revenue_key(
    amount: AmountLike,
    invoice_date: DateLike,
    invoice_number: Optional[str],
    name: Optional[str],
) -> str:
    """Build the composite key for an invoice row."""
    return (
        f"rev|{normalize_amount(amount)}|{format_date(invoice_date)}"
        f"|{normalize_text(invoice_number)}|{normalize_text(name)}"
    )


def expense_key_candidates(
    txn_date: DateLike,
    amount: AmountLike,
    name: Optional[str],
    account_full_name: Optional[str] = None,
) -> list[str]:
    """Return lookup keys in priority order: 4-part (if any), then 3-part."""
    keys = []
    if normalize_text(account_full_name):
        keys.append(create_expense_key(txn_date, amount, name, account_full_name))
    keys.append(create_expense_key(txn_date, amount, name))
    return keys
