"""QuickBooks transaction CSV parsing."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional, TextIO

from sitebooks.domain.errors import ParseError, ValidationError
from sitebooks.logger import get_logger
from sitebooks.utils.amount_parser import parse_amount
from sitebooks.utils.date_parser import parse_date

logger = get_logger(__name__)

# Canonical field -> accepted header spellings (compared lowercase, whitespace collapsed)
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("date", "transaction date"),
    "transaction_type": ("transaction type", "type"),
    "name": ("name", "payee", "vendor"),
    "amount": ("amount",),
    "account_full_name": ("account full name", "account", "split account"),
    "account_name": ("account name",),
    "memo": ("memo/description", "memo", "description"),
    "project_wo": ("project/wo #", "project", "customer:job"),
    "invoice_number": ("invoice #", "num", "invoice number"),
}

REQUIRED_FIELDS = ("date", "transaction_type", "name", "amount")

INVOICE_TYPE = "invoice"


@dataclass(frozen=True)
class TransactionRecord:
    """One parsed CSV row. Transient; never persisted as-is."""

    row_number: int
    date: date
    amount: Decimal
    name: str
    transaction_type: str
    account_full_name: str = ""
    account_name: str = ""
    memo: str = ""
    project_wo: str = ""
    invoice_number: str = ""
    raw: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_revenue(self) -> bool:
        return self.transaction_type == INVOICE_TYPE


@dataclass
class ParsedFile:
    """Outcome of parsing one CSV file."""

    file_name: str
    headers: list[str]
    records: list[TransactionRecord] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.records) + len(self.errors)


def _normalize_header(header: str) -> str:
    return " ".join((header or "").strip().lower().split())


def resolve_columns(headers: list[str]) -> dict[str, str]:
    """Map canonical field names to the actual CSV headers.

    Raises:
        ValidationError: If a required column is missing
    """
    by_normalized = {}
    for header in headers:
        if header is not None:
            by_normalized.setdefault(_normalize_header(header), header)

    columns = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in by_normalized:
                columns[canonical] = by_normalized[alias]
                break

    missing = [f for f in REQUIRED_FIELDS if f not in columns]
    if missing:
        pretty = {
            "date": "Date",
            "transaction_type": "Transaction type",
            "name": "Name",
            "amount": "Amount",
        }
        raise ValidationError(
            f"CSV file missing required columns: {', '.join(pretty[f] for f in missing)}"
        )
    return columns


class QuickBooksCSVParser:
    """Parser for QuickBooks "Transaction Detail" style exports."""

    def parse_file(self, csv_file_path: str) -> ParsedFile:
        """Parse a CSV file from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValidationError: If the file has no header or lacks required columns
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            return self.parse_text(f.read(), file_name=csv_path.name)

    def parse_text(self, text: str, file_name: str = "upload.csv") -> ParsedFile:
        """Parse CSV content already held in memory."""
        return self.parse_stream(io.StringIO(text.lstrip("\ufeff")), file_name=file_name)

    def parse_stream(self, stream: TextIO, file_name: str = "upload.csv") -> ParsedFile:
        # Try to detect delimiter
        sample = stream.read(4096)
        stream.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(stream, delimiter=delimiter)
        headers = reader.fieldnames
        if not headers:
            raise ValidationError("CSV file has no columns")
        columns = resolve_columns(list(headers))

        parsed = ParsedFile(file_name=file_name, headers=list(headers))
        for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
            raw = {k: (v or "") for k, v in row.items() if k is not None}
            if not any(value.strip() for value in raw.values()):
                continue
            try:
                parsed.records.append(self.parse_row(row_num, raw, columns))
            except ParseError as e:
                parsed.errors.append(e)

        logger.info(
            "Parsed %s: %d records, %d row errors", file_name, len(parsed.records), len(parsed.errors)
        )
        return parsed

    def parse_row(self, row_num: int, raw: dict[str, str], columns: dict[str, str]) -> TransactionRecord:
        """Parse a single CSV row.

        Raises:
            ParseError: If the date or amount is missing or malformed
        """
        def value(canonical: str) -> str:
            header = columns.get(canonical)
            return (raw.get(header) or "").strip() if header else ""

        date_str = value("date")
        if not date_str:
            raise ParseError("Missing date", row_num, raw)
        amount_str = value("amount")
        if not amount_str:
            raise ParseError("Missing amount", row_num, raw)

        try:
            txn_date = parse_date(date_str)
        except ValueError as e:
            raise ParseError(str(e), row_num, raw)
        try:
            amount = parse_amount(amount_str)
        except ValueError as e:
            raise ParseError(str(e), row_num, raw)

        return TransactionRecord(
            row_number=row_num,
            date=txn_date,
            amount=amount,
            name=value("name"),
            transaction_type=value("transaction_type").lower() or "expense",
            account_full_name=value("account_full_name"),
            account_name=value("account_name"),
            memo=value("memo"),
            project_wo=value("project_wo"),
            invoice_number=value("invoice_number"),
            raw=raw,
        )
