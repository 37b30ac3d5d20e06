"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal

from ledgercheck.database.factories import create_sqlite_database
from ledgercheck.domain import entities
from ledgercheck.domain.errors import ConflictError

MATERIA_PRIMA = entities.Classification(
    category="Costo de Venta", subcategory="Materiales", detail_class="Materia Prima"
)


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_report_returns_domain_model(self, temp_db):
        """Test that get_report returns a domain Report entity."""
        report_id = temp_db.create_report(name="March 2024", period=date(2024, 3, 1))

        report = temp_db.get_report(report_id)

        assert isinstance(report, entities.Report)
        assert report.id == report_id
        assert report.name == "March 2024"
        assert report.period == date(2024, 3, 1)
        assert isinstance(report.created_at, datetime)

    def test_get_report_by_name(self, temp_db):
        """Test looking a report up by name."""
        report_id = temp_db.create_report(name="March 2024")
        assert temp_db.get_report_by_name("March 2024").id == report_id
        assert temp_db.get_report_by_name("April 2024") is None
        assert temp_db.get_report(999) is None

    def test_duplicate_report_name_rejected(self, temp_db):
        """Test that report names are unique."""
        temp_db.create_report(name="March 2024")
        with pytest.raises(ValueError, match="already exists"):
            temp_db.create_report(name="March 2024")

    def test_list_reports_oldest_first(self, temp_db):
        """Test that reports are listed in creation order."""
        temp_db.create_report(name="January 2024")
        temp_db.create_report(name="February 2024")

        reports = temp_db.list_reports()

        assert [r.name for r in reports] == ["January 2024", "February 2024"]
        assert all(isinstance(r, entities.Report) for r in reports)

    def test_ledger_rows_round_trip(self, temp_db):
        """Test that stored rows come back as domain LedgerRow entities."""
        report_id = temp_db.create_report(name="March 2024")
        temp_db.add_ledger_row(
            report_id=report_id,
            code="5000-1002-001-007",
            label="Urea",
            amount=Decimal("656.00"),
        )
        temp_db.add_ledger_row(
            report_id=report_id,
            code="5000-1002-001-001",
            label="Cemento",
            amount=Decimal("9350000.00"),
            flow_type=entities.FlowType.EXPENSE,
            classification=MATERIA_PRIMA,
        )

        rows = temp_db.list_ledger_rows(report_id)

        assert [r.code for r in rows] == ["5000-1002-001-001", "5000-1002-001-007"]
        cemento, urea = rows
        assert isinstance(cemento, entities.LedgerRow)
        assert cemento.report_id == report_id
        assert cemento.amount == Decimal("9350000.00")
        assert cemento.flow_type == entities.FlowType.EXPENSE
        assert cemento.classification == MATERIA_PRIMA
        assert urea.flow_type == entities.FlowType.UNDEFINED
        assert urea.classification is None

    def test_add_row_to_missing_report(self, temp_db):
        """Test that rows need an existing report."""
        with pytest.raises(ValueError, match="not found"):
            temp_db.add_ledger_row(
                report_id=42, code="5000-1002-001-001", label="x", amount=Decimal("1")
            )

    def test_rows_by_code_across_reports(self, temp_db):
        """Test listing one code's history across reports."""
        first = temp_db.create_report(name="January 2024")
        second = temp_db.create_report(name="February 2024")
        temp_db.add_ledger_row(first, "5000-1000-001-001", "Servicios", Decimal("100"))
        temp_db.add_ledger_row(first, "5000-1000-001-002", "Otro", Decimal("5"))
        temp_db.add_ledger_row(second, "5000-1000-001-001", "Servicios", Decimal("200"))

        rows = temp_db.list_rows_by_code("5000-1000-001-001")

        assert [r.report_id for r in rows] == [first, second]
        assert temp_db.count_rows_by_code() == {
            "5000-1000-001-001": 2,
            "5000-1000-001-002": 1,
        }

    def test_commit_reclassification(self, temp_db):
        """Test replacing the rule, updating rows and auditing in one call."""
        report_id = temp_db.create_report(name="March 2024")
        ids = [
            temp_db.add_ledger_row(report_id, "5000-1000-001-001", "a", Decimal("1")),
            temp_db.add_ledger_row(report_id, "5000-1000-001-001", "b", Decimal("2")),
        ]

        entry_id = temp_db.commit_reclassification(
            account_code="5000-1000-001-001",
            flow_type=entities.FlowType.EXPENSE,
            classification=MATERIA_PRIMA,
            effective_from=datetime.now(UTC),
            row_ids=ids,
            affected_reports=1,
            financial_impact=Decimal("3"),
            created_by="maria",
        )

        rows = temp_db.list_ledger_rows(report_id)
        assert all(r.classification == MATERIA_PRIMA for r in rows)
        assert temp_db.get_active_rule("5000-1000-001-001").created_by == "maria"
        entries = temp_db.list_audit_entries("5000-1000-001-001")
        assert isinstance(entries[0], entities.AuditEntry)
        assert entries[0].id == entry_id
        assert entries[0].affected_records == 2
        assert entries[0].financial_impact == Decimal("3")

    def test_commit_reclassification_missing_row_writes_nothing(self, temp_db):
        """Test that a batch touching a missing row leaves rule, rows and audit unchanged."""
        report_id = temp_db.create_report(name="March 2024")
        row_id = temp_db.add_ledger_row(report_id, "5000-1000-001-001", "a", Decimal("1"))
        start = datetime(2024, 1, 1, tzinfo=UTC)
        old_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.INCOME, MATERIA_PRIMA, start
        )
        other = entities.Classification("Gastos Operativos", "", "Servicios")

        with pytest.raises(ConflictError, match="Expected to update 2 rows but matched 1"):
            temp_db.commit_reclassification(
                account_code="5000-1000-001-001",
                flow_type=entities.FlowType.EXPENSE,
                classification=other,
                effective_from=start + timedelta(days=1),
                row_ids=[row_id, row_id + 100],
                affected_reports=1,
                financial_impact=Decimal("1"),
            )

        assert temp_db.list_ledger_rows(report_id)[0].classification is None
        assert [r.id for r in temp_db.list_rules(active_only=False)] == [old_id]
        assert temp_db.get_active_rule("5000-1000-001-001").id == old_id
        assert temp_db.list_audit_entries() == []

    def test_upsert_rule_replaces_active_rule(self, temp_db):
        """Test that setting a rule deactivates the previous one."""
        start = datetime(2024, 1, 1, tzinfo=UTC)
        first_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, MATERIA_PRIMA, start
        )
        other = entities.Classification("Gastos Operativos", "", "Servicios")
        second_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, other, start + timedelta(days=31)
        )

        active = temp_db.get_active_rule("5000-1000-001-001")
        assert isinstance(active, entities.ClassificationRule)
        assert active.id == second_id
        assert active.classification == other
        assert active.effective_from == start + timedelta(days=31)

        all_rules = temp_db.list_rules(active_only=False)
        assert [r.id for r in all_rules] == [first_id, second_id]
        assert [r.is_active for r in all_rules] == [False, True]
        assert len(temp_db.list_rules()) == 1

    def test_upsert_future_rule_keeps_current_rule(self, temp_db):
        """Test that a rule scheduled later does not supersede the one in effect."""
        start = datetime(2024, 1, 1, tzinfo=UTC)
        current_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, MATERIA_PRIMA, start
        )
        other = entities.Classification("Gastos Operativos", "", "Servicios")
        future_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, other, start + timedelta(days=90)
        )

        assert [r.id for r in temp_db.list_rules()] == [current_id, future_id]
        assert temp_db.get_active_rule("5000-1000-001-001").id == future_id

        # A rule starting between the two replaces only the earlier one
        middle_id = temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, other, start + timedelta(days=30)
        )
        assert [r.id for r in temp_db.list_rules()] == [middle_id, future_id]

    def test_deactivate_rule(self, temp_db):
        """Test deactivating a code's rule."""
        temp_db.upsert_rule(
            "5000-1000-001-001", entities.FlowType.EXPENSE, MATERIA_PRIMA, datetime.now(UTC)
        )
        temp_db.deactivate_rule("5000-1000-001-001")

        assert temp_db.get_active_rule("5000-1000-001-001") is None
        with pytest.raises(ValueError, match="No active classification rule"):
            temp_db.deactivate_rule("5000-1000-001-001")


def test_factory_uses_environment_path(tmp_path, monkeypatch):
    """Test that the factory honours LEDGERCHECK_DB_PATH."""
    db_path = tmp_path / "env.db"
    monkeypatch.setenv("LEDGERCHECK_DB_PATH", str(db_path))

    db = create_sqlite_database()
    try:
        db.create_report(name="March 2024")
    finally:
        db.disconnect()

    assert db_path.exists()
