"""Shared pytest fixtures for sitebooks tests."""

import logging
import tempfile
import os
from pathlib import Path
import pytest

from sitebooks.database.factories import create_sqlite_database
from sitebooks.domain.account_mapping import AccountMappingService
from sitebooks.domain.client import ClientService
from sitebooks.domain.csv_import import CSVImportService
from sitebooks.domain.entities import PayeeType
from sitebooks.domain.import_batch import ImportBatchService
from sitebooks.domain.payee import PayeeService
from sitebooks.domain.project import ProjectService


CSV_HEADER = "Date,Transaction type,Name,Account full name,Account name,Memo/Description,Project/WO #,Invoice #,Amount\n"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def payee_service(temp_db):
    """Create a PayeeService with a temporary database."""
    return PayeeService(temp_db)


@pytest.fixture
def client_service(temp_db):
    """Create a ClientService with a temporary database."""
    return ClientService(temp_db)


@pytest.fixture
def project_service(temp_db):
    """Create a ProjectService with a temporary database."""
    return ProjectService(temp_db)


@pytest.fixture
def mapping_service(temp_db):
    """Create an AccountMappingService with a temporary database."""
    return AccountMappingService(temp_db)


@pytest.fixture
def batch_service(temp_db):
    """Create an ImportBatchService with a temporary database."""
    return ImportBatchService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a CSVImportService with a temporary database."""
    return CSVImportService(temp_db)


@pytest.fixture
def sample_payees(payee_service):
    """Create a few known payees and return them by name."""
    payee_service.create_payee("Home Depot", payee_type=PayeeType.MATERIAL_SUPPLIER)
    payee_service.create_payee(
        "Johnson Plumbing", full_name="Johnson Plumbing LLC", payee_type=PayeeType.SUBCONTRACTOR
    )
    payee_service.create_payee("Sunbelt Rentals", payee_type=PayeeType.EQUIPMENT_RENTAL)
    return {p.payee_name: p for p in payee_service.list_payees()}


@pytest.fixture
def sample_project(project_service):
    """Create a sample project for testing."""
    project_id = project_service.create_project("24-001", "Smith Kitchen Remodel")
    return project_service.get_project(project_id)


@pytest.fixture
def write_csv(tmp_path):
    """Return a helper writing CSV rows (without header) to a temporary file."""
    def _write(rows: str, name: str = "transactions.csv", header: str = CSV_HEADER) -> str:
        path = tmp_path / name
        path.write_text(header + rows, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI installs so they don't outlive the runner's streams."""
    yield
    logging.getLogger("sitebooks").handlers.clear()
