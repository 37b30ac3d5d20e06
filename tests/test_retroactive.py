"""Tests for retroactive reclassification."""

import logging
from dataclasses import replace
from decimal import Decimal

import pytest

from ledgercheck.domain.entities import Classification, FlowType
from ledgercheck.domain.errors import ConflictError, MalformedCodeError, ValidationError
from ledgercheck.domain.retroactive import RetroactiveService, plan_retroactive_change
from ledgercheck.domain.settings import DEFAULT_SETTINGS

SERVICIOS = Classification(
    category="Gastos Operativos", subcategory="Generales", detail_class="Servicios"
)
CODE = "5000-1000-001-001"


@pytest.fixture
def servicios_history(ledger_service):
    """Six rows for CODE spread over three reports, plus unrelated rows."""
    amounts = {
        "January 2024": ["80000", "75000"],
        "February 2024": ["85000", "78000"],
        "March 2024": ["82000", "82300"],
    }
    report_ids = []
    for name, values in amounts.items():
        report_id = ledger_service.create_report(name=name)
        report_ids.append(report_id)
        for value in values:
            ledger_service.add_row(report_id, CODE, "Servicios", Decimal(value))
        ledger_service.add_row(report_id, "5000-1000-001-002", "Otro", Decimal("999"))
    return report_ids


class TestPlanRetroactiveChange:
    """Tests for the pure planning step."""

    def test_ignores_other_codes(self, make_row):
        """Test that rows of other codes are not planned."""
        rows = [
            make_row(CODE, "Servicios", 100, report_id=1, id=1),
            make_row("5000-1000-001-002", "Otro", 50, report_id=1, id=2),
            make_row(CODE, "Servicios", -40, report_id=2, id=3),
        ]
        impact = plan_retroactive_change(CODE, FlowType.EXPENSE, SERVICIOS, rows)

        assert impact.affected_records == 2
        assert impact.affected_reports == (1, 2)
        assert impact.total_financial_impact == Decimal("140")
        assert impact.row_ids == (1, 3)
        assert impact.family_key == "5000-1000"

    def test_no_history(self):
        """Test a code that never appeared."""
        impact = plan_retroactive_change(CODE, FlowType.EXPENSE, SERVICIOS, [])
        assert impact.affected_records == 0
        assert impact.affected_reports == ()
        assert impact.total_financial_impact == Decimal("0")

    def test_keeps_previous_classification(self, make_row):
        """Test that the plan records what each row had before."""
        rows = [make_row(CODE, "Servicios", 10, classified=True, report_id=1, id=1)]
        change = plan_retroactive_change(CODE, FlowType.EXPENSE, SERVICIOS, rows).changes[0]
        assert change.old_flow_type == FlowType.EXPENSE
        assert change.old_classification.detail_class == "Materia Prima"

    def test_undefined_flow_rejected(self):
        """Test that a retroactive change must set a flow type."""
        with pytest.raises(ValidationError):
            plan_retroactive_change(CODE, FlowType.UNDEFINED, SERVICIOS, [])

    def test_malformed_code_rejected(self):
        """Test that malformed codes are rejected."""
        with pytest.raises(MalformedCodeError):
            plan_retroactive_change("5000-1000", FlowType.EXPENSE, SERVICIOS, [])


class TestRetroactiveService:
    """Tests for RetroactiveService."""

    def test_analyze_history(self, retroactive_service, servicios_history):
        """Test six records across three reports totalling 482,300."""
        impact = retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        assert impact.affected_records == 6
        assert len(impact.affected_reports) == 3
        assert impact.affected_reports == tuple(servicios_history)
        assert impact.total_financial_impact == Decimal("482300")

    def test_analyze_writes_nothing(self, retroactive_service, servicios_history, temp_db):
        """Test that planning leaves rows and rules untouched."""
        retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        assert all(row.classification is None for row in temp_db.list_rows_by_code(CODE))
        assert temp_db.list_rules(active_only=False) == []
        assert temp_db.list_audit_entries() == []

    def test_commit_applies_change(self, retroactive_service, servicios_history, temp_db):
        """Test that committing updates rows and the rule and writes an audit entry."""
        impact = retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        entry = retroactive_service.commit(impact, created_by="maria")

        assert entry.account_code == CODE
        assert entry.affected_records == 6
        assert entry.affected_reports == 3
        assert entry.financial_impact == Decimal("482300")
        assert entry.created_by == "maria"

        rows = temp_db.list_rows_by_code(CODE)
        assert all(row.flow_type == FlowType.EXPENSE for row in rows)
        assert all(row.classification == SERVICIOS for row in rows)
        untouched = temp_db.list_rows_by_code("5000-1000-001-002")
        assert all(row.classification is None for row in untouched)

        rule = temp_db.get_active_rule(CODE)
        assert rule.classification == SERVICIOS
        assert rule.created_by == "maria"

    def test_commit_without_history(self, retroactive_service, temp_db):
        """Test that a code with no history still gets its rule."""
        impact = retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        entry = retroactive_service.commit(impact)

        assert entry.affected_records == 0
        assert temp_db.get_active_rule(CODE) is not None

    def test_commit_stale_plan_changes_nothing(
        self, retroactive_service, servicios_history, temp_db
    ):
        """Test that a plan naming a row deleted since analysis is rejected whole."""
        previous = Classification("Costo de Venta", "", "Mantenimiento")
        retroactive_service.commit(
            retroactive_service.analyze(CODE, FlowType.EXPENSE, previous), created_by="ana"
        )
        impact = retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)
        gone = replace(impact.changes[0], row_id=9999)
        stale = replace(impact, changes=impact.changes + (gone,))

        with pytest.raises(ConflictError):
            retroactive_service.commit(stale, created_by="maria")

        rule = temp_db.get_active_rule(CODE)
        assert rule.classification == previous
        assert rule.created_by == "ana"
        assert all(row.classification == previous for row in temp_db.list_rows_by_code(CODE))
        assert [e.created_by for e in temp_db.list_audit_entries(CODE)] == ["ana"]

    def test_significant_change_is_logged(self, temp_db, servicios_history, caplog):
        """Test that large changes are logged."""
        settings = DEFAULT_SETTINGS.with_overrides(significant_change_records=5)
        service = RetroactiveService(temp_db, settings)
        impact = service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        with caplog.at_level(logging.INFO, logger="ledgercheck.domain.retroactive"):
            service.commit(impact)

        assert "Significant retroactive change" in caplog.text

    def test_small_change_is_not_logged(self, retroactive_service, servicios_history, caplog):
        """Test that routine changes stay quiet."""
        impact = retroactive_service.analyze(CODE, FlowType.EXPENSE, SERVICIOS)

        with caplog.at_level(logging.INFO, logger="ledgercheck.domain.retroactive"):
            retroactive_service.commit(impact)

        assert "Significant" not in caplog.text

    def test_history(self, retroactive_service, servicios_history):
        """Test the per-report classification history of a code."""
        history = retroactive_service.history(CODE)

        assert len(history) == 6
        assert [h.report_name for h in history[::2]] == [
            "January 2024",
            "February 2024",
            "March 2024",
        ]
        assert all(h.classification is None for h in history)
