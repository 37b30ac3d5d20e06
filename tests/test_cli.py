"""Tests for the ledgercheck CLI."""

from dataclasses import replace
from decimal import Decimal

import pytest

from ledgercheck.cli.main import cli
from ledgercheck.domain.entities import FlowType
from ledgercheck.domain.retroactive import RetroactiveService


def run(cli_runner, temp_db, *args, input=None):
    """Invoke the CLI against the temporary database."""
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, *args], input=input
    )


@pytest.fixture
def stored_report(ledger_service, sample_report, materia_prima_rows):
    """The materia prima family stored in 'March 2024'."""
    for row in materia_prima_rows:
        ledger_service.add_row(
            sample_report,
            row.code,
            row.label,
            row.amount,
            flow_type=row.flow_type,
            classification=row.classification,
        )
    return sample_report


CLASSIFY = ["--flow", "expense", "--category", "Costo de Venta", "--detail", "Materia Prima"]


class TestReportCommands:
    """Tests for report and row commands."""

    def test_help_does_not_need_database(self, cli_runner):
        """Test that --help works without touching a database."""
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "validate" in result.output

    def test_create_and_list_reports(self, cli_runner, temp_db):
        """Test creating and listing reports."""
        result = run(cli_runner, temp_db, "report", "create", "March 2024", "--period", "2024-03")
        assert result.exit_code == 0
        assert "Created report 'March 2024' (ID: 1)" in result.output

        result = run(cli_runner, temp_db, "report", "list")
        assert result.exit_code == 0
        assert "March 2024" in result.output
        assert "2024-03-01" in result.output

    def test_list_reports_empty(self, cli_runner, temp_db):
        """Test listing reports in an empty database."""
        result = run(cli_runner, temp_db, "report", "list")
        assert "No reports found." in result.output

    def test_duplicate_report(self, cli_runner, temp_db, sample_report):
        """Test that duplicate report names are an error."""
        result = run(cli_runner, temp_db, "report", "create", "March 2024")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "already exists" in result.output

    def test_add_rows(self, cli_runner, temp_db, sample_report):
        """Test adding classified and unclassified rows."""
        result = run(
            cli_runner, temp_db, "row", "add", "March 2024",
            "5000-1002-001-001", "Cemento", "$9,350,000.00", *CLASSIFY,
        )
        assert result.exit_code == 0
        assert "Added row 5000-1002-001-001 to report 'March 2024'" in result.output

        result = run(cli_runner, temp_db, "row", "add", "1", "5000-1002-001-007", "Urea", "656")
        assert result.exit_code == 0

        temp_db.disconnect()
        rows = temp_db.list_ledger_rows(sample_report)
        assert [r.amount for r in rows] == [Decimal("9350000.00"), Decimal("656.00")]
        assert rows[0].flow_type == FlowType.EXPENSE
        assert rows[1].classification is None

        result = run(cli_runner, temp_db, "row", "list", "March 2024")
        assert "UNCLASSIFIED" in result.output
        assert "Materia Prima" in result.output

    def test_add_row_malformed_code(self, cli_runner, temp_db, sample_report):
        """Test that malformed codes are reported."""
        result = run(cli_runner, temp_db, "row", "add", "March 2024", "5000-1002", "x", "1")
        assert result.exit_code == 1
        assert "Malformed account code" in result.output

    def test_add_row_partial_classification(self, cli_runner, temp_db, sample_report):
        """Test that classification options must be given together."""
        result = run(
            cli_runner, temp_db, "row", "add", "March 2024",
            "5000-1002-001-007", "Urea", "656", "--flow", "expense",
        )
        assert result.exit_code == 1
        assert "must be given together" in result.output

    def test_unknown_report(self, cli_runner, temp_db):
        """Test commands on a report that doesn't exist."""
        result = run(cli_runner, temp_db, "validate", "April 2024")
        assert result.exit_code == 1
        assert "Report 'April 2024' not found" in result.output


class TestValidationCommands:
    """Tests for validate, reconcile, recommend and context."""

    def test_validate_reports_issue(self, cli_runner, temp_db, stored_report):
        """Test that the unclassified Urea row is reported."""
        result = run(cli_runner, temp_db, "validate", "March 2024")

        assert result.exit_code == 1
        assert "Found 1 issue(s)" in result.output
        assert "MIXED_LEVEL4_SIBLINGS" in result.output
        assert "5000-1002-001-007" in result.output

    def test_rule_clears_issue(self, cli_runner, temp_db, stored_report):
        """Test that a catalogue rule resolves the issue."""
        result = run(cli_runner, temp_db, "rule", "set", "5000-1002-001-007", *CLASSIFY)
        assert result.exit_code == 0
        assert "Set rule for 5000-1002-001-007" in result.output

        result = run(cli_runner, temp_db, "validate", "March 2024")
        assert result.exit_code == 0
        assert "No classification issues found in 'March 2024'." in result.output

    def test_validate_without_steps(self, cli_runner, temp_db, stored_report):
        """Test hiding resolution steps."""
        with_steps = run(cli_runner, temp_db, "validate", "March 2024")
        without = run(cli_runner, temp_db, "validate", "March 2024", "--no-steps")
        assert len(without.output) < len(with_steps.output)

    def test_reconcile(self, cli_runner, temp_db, stored_report, ledger_service):
        """Test listing amount variances."""
        result = run(cli_runner, temp_db, "reconcile", "March 2024")
        assert "All parent amounts in 'March 2024' match their children." in result.output

        ledger_service.add_row(stored_report, "5000-1002-001-008", "Cal", Decimal("500000"))
        result = run(cli_runner, temp_db, "reconcile", "March 2024")
        assert "5000-1002-001-000" in result.output
        assert "MAJOR_VARIANCE" in result.output

    def test_recommend_family(self, cli_runner, temp_db, stored_report):
        """Test recommending an approach for one family."""
        result = run(cli_runner, temp_db, "recommend", "March 2024", "--family", "5000-1002")
        assert result.exit_code == 0
        assert "DETAIL_CLASSIFICATION" in result.output
        assert "Classify 5000-1002-001-007 - Urea ($656)" in result.output
        assert "5000-0000" not in result.output

    def test_context_suggests_pattern(self, cli_runner, temp_db, stored_report):
        """Test the context of the unclassified account."""
        result = run(cli_runner, temp_db, "context", "March 2024", "5000-1002-001-007")

        assert result.exit_code == 0
        assert "6 of 7 classified" in result.output
        assert "Classifying this account is safe." in result.output
        assert "Suggested (sibling_pattern, 85%)" in result.output

    def test_context_warns_about_children(self, cli_runner, temp_db, stored_report):
        """Test that classifying a parent of classified accounts warns."""
        result = run(cli_runner, temp_db, "context", "March 2024", "5000-1002-001-000")
        assert "WARNING [CHILDREN_ALREADY_CLASSIFIED]" in result.output


class TestRuleAndHistoryCommands:
    """Tests for rule management and retroactive reclassification."""

    def test_rule_list_and_deactivate(self, cli_runner, temp_db):
        """Test listing and deactivating rules."""
        result = run(cli_runner, temp_db, "rule", "list")
        assert "No rules found." in result.output

        run(cli_runner, temp_db, "rule", "set", "5000-1002-001-007", *CLASSIFY,
            "--effective-from", "2024-03-01")
        result = run(cli_runner, temp_db, "rule", "list")
        assert "5000-1002-001-007" in result.output
        assert "from 2024-03-01" in result.output

        result = run(cli_runner, temp_db, "rule", "deactivate", "5000-1002-001-007")
        assert "Deactivated rule for 5000-1002-001-007" in result.output
        assert "No rules found." in run(cli_runner, temp_db, "rule", "list").output
        assert "inactive" in run(cli_runner, temp_db, "rule", "list", "--all").output

        result = run(cli_runner, temp_db, "rule", "deactivate", "5000-1002-001-007")
        assert result.exit_code == 1
        assert "No active classification rule" in result.output

    def test_rule_set_requires_options(self, cli_runner, temp_db):
        """Test that rules need a full classification."""
        result = run(cli_runner, temp_db, "rule", "set", "5000-1002-001-007", "--flow", "expense")
        assert result.exit_code != 0

    def test_reclassify(self, cli_runner, temp_db, stored_report):
        """Test reclassifying a code's history."""
        result = run(
            cli_runner, temp_db, "reclassify", "5000-1002-001-007", *CLASSIFY,
            "--by", "maria", "--yes",
        )

        assert result.exit_code == 0
        assert "5000-1002-001-007: 1 record(s) in 1 report(s), impact $656" in result.output
        assert "Reclassified 1 record(s) in 1 report(s)" in result.output

        temp_db.disconnect()
        row = temp_db.list_rows_by_code("5000-1002-001-007")[0]
        assert row.flow_type == FlowType.EXPENSE
        assert temp_db.list_audit_entries()[0].created_by == "maria"

        result = run(cli_runner, temp_db, "history", "5000-1002-001-007")
        assert "March 2024" in result.output
        assert "Materia Prima" in result.output

    def test_reclassify_conflict_is_reported(
        self, cli_runner, temp_db, stored_report, monkeypatch
    ):
        """Test that a commit rejected by the database is shown as an error."""
        planned = RetroactiveService.analyze

        def analyze_then_lose_row(self, *args):
            impact = planned(self, *args)
            gone = replace(impact.changes[0], row_id=9999)
            return replace(impact, changes=impact.changes + (gone,))

        monkeypatch.setattr(RetroactiveService, "analyze", analyze_then_lose_row)

        result = run(cli_runner, temp_db, "reclassify", "5000-1002-001-007", *CLASSIFY, "--yes")

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Expected to update 2 rows but matched 1" in result.output
        temp_db.disconnect()
        assert temp_db.list_rules(active_only=False) == []
        assert temp_db.list_audit_entries() == []

    def test_reclassify_cancelled(self, cli_runner, temp_db, stored_report):
        """Test declining the confirmation."""
        result = run(
            cli_runner, temp_db, "reclassify", "5000-1002-001-007", *CLASSIFY, input="n\n"
        )

        assert "Cancelled." in result.output
        temp_db.disconnect()
        assert temp_db.list_audit_entries() == []

    def test_reclassify_unknown_code(self, cli_runner, temp_db):
        """Test reclassifying a code with no history."""
        result = run(cli_runner, temp_db, "reclassify", "5000-9999-001-001", *CLASSIFY)
        assert "Nothing to reclassify." in result.output

    def test_history_empty(self, cli_runner, temp_db):
        """Test history of an unknown code."""
        result = run(cli_runner, temp_db, "history", "5000-9999-001-001")
        assert "No history found." in result.output
