"""Shared pytest fixtures for ledgercheck tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from ledgercheck.database.factories import create_sqlite_database
from ledgercheck.domain.entities import Classification, FlowType, LedgerRow
from ledgercheck.domain.ledger import LedgerService
from ledgercheck.domain.retroactive import RetroactiveService
from ledgercheck.domain.rules import ClassificationRuleService
from ledgercheck.domain.validation_service import LedgerValidationService


MATERIA_PRIMA = Classification(
    category="Costo de Venta", subcategory="Materiales", detail_class="Materia Prima"
)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
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
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    """Create a ClassificationRuleService with a temporary database."""
    return ClassificationRuleService(temp_db)


@pytest.fixture
def retroactive_service(temp_db):
    """Create a RetroactiveService with a temporary database."""
    return RetroactiveService(temp_db)


@pytest.fixture
def validation_service(temp_db):
    """Create a LedgerValidationService with a temporary database."""
    return LedgerValidationService(temp_db)


@pytest.fixture
def make_row():
    """Return a factory for in-memory ledger rows.

    Rows are classified as Expense / Materia Prima when classified=True.
    """

    def _make_row(code, label="", amount=0, classified=False, classification=None, **kwargs):
        if classified and classification is None:
            classification = MATERIA_PRIMA
        return LedgerRow(
            code=code,
            label=label,
            amount=Decimal(str(amount)),
            flow_type=FlowType.EXPENSE if classification is not None else FlowType.UNDEFINED,
            classification=classification,
            **kwargs,
        )

    return _make_row


@pytest.fixture
def materia_prima_rows(make_row):
    """Family 5000-1002 with one unclassified detail account (Urea)."""
    return [
        make_row("5000-0000-000-000", "Costos", 13150000),
        make_row("5000-1002-000-000", "Materia Prima Planta", 13150000),
        make_row("5000-1002-001-000", "Materias primas", 13150000),
        make_row("5000-1002-001-001", "Cemento", 9350000, classified=True),
        make_row("5000-1002-001-002", "Agregado Grueso", 1210000, classified=True),
        make_row("5000-1002-001-003", "Agregado Fino", 880000, classified=True),
        make_row("5000-1002-001-004", "Aditivo", 1120000, classified=True),
        make_row("5000-1002-001-005", "Agua", 70000, classified=True),
        make_row("5000-1002-001-006", "Diesel", 519344, classified=True),
        make_row("5000-1002-001-007", "Urea", 656),
    ]


@pytest.fixture
def sample_report(ledger_service):
    """Create a sample report and return its ID."""
    return ledger_service.create_report(name="March 2024")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
