"""
Tests for report template assembly.
"""
from datetime import datetime, timezone

import pytest

from chai_ledger.errors import UnknownTemplateError
from chai_ledger.reports import (
    TEMPLATES,
    as_report_number,
    assemble_batch_report,
    assemble_report,
    format_readable_date,
    sanitize_sheet_name,
)


class TestFormatting:
    """Tests for cell formatting helpers."""

    def test_as_report_number(self):
        assert as_report_number(10) == 10.0
        assert as_report_number(1 / 3) == 0.33
        assert as_report_number(None) == ""
        assert as_report_number(float("nan")) == ""

    def test_format_readable_date(self):
        assert format_readable_date(datetime(2024, 1, 5, tzinfo=timezone.utc)) == "Jan 5, 2024"
        assert format_readable_date(None) == "-"

    def test_sanitize_sheet_name(self):
        assert sanitize_sheet_name("Balance/Raj: [VIP]?*") == "BalanceRaj VIP"
        assert len(sanitize_sheet_name("x" * 40)) == 28
        assert sanitize_sheet_name("///") == "Sheet"


class TestAssembleReport:
    """Tests for the named templates."""

    def test_unknown_template(self, customers, entries, batches):
        with pytest.raises(UnknownTemplateError):
            assemble_report("monthly", customers, entries, batches)

    def test_comprehensive_sections(self, customers, entries, batches, config):
        report = assemble_report("comprehensive", customers, entries, batches, config=config)
        assert report.template_label == "Comprehensive Overview"
        assert report.scope_label == "All Customers"
        assert report.sheet_names == ["Tea Stock", "Customer Summary", "Daily Collections", "Customer Ledger"]

    def test_every_template_assembles(self, customers, entries, batches, config):
        for name in TEMPLATES:
            report = assemble_report(name, customers, entries, batches, config=config)
            assert report.sections
            for section in report.sections:
                assert all(len(row) == len(section.headers) for row in section.rows)

    def test_banner(self, customers, entries, batches, config):
        generated = datetime(2024, 2, 1, 8, 0, tzinfo=timezone.utc)
        report = assemble_report(
            "dailyCollections", customers, entries, batches, generated_at=generated, config=config
        )
        assert report.sections[0].banner == [
            "Daily Collections",
            "Scope: All Customers",
            "Template: Daily Collections",
            "Generated: Feb 1, 2024",
        ]

    def test_banner_without_generated_date(self, customers, entries, batches, config):
        report = assemble_report("teaStock", customers, entries, batches, config=config)
        assert len(report.sections[0].banner) == 3

    def test_tea_stock_rows(self, customers, entries, batches, config):
        section = assemble_report("teaStock", customers, entries, batches, config=config).sections[0]
        assert section.title == "Tea Stock Overview"
        assert section.rows == [
            ["Assam Gold", "AG-01", "Dec 20, 2023", 80.0, 100.0, 8000.0, 85.0, 100.0, 8000.0],
            ["Darjeeling", "DJ-01", "Dec 22, 2023", 120.0, 50.0, 6000.0, 48.0, 50.0, 6000.0],
        ]

    def test_tea_stock_group_totals_on_first_row(self, config):
        batches = [
            {"id": "b2", "name": "Assam", "total_quantity": 20, "purchase_rate": 10,
             "created_at": "2024-02-01"},
            {"id": "b1", "name": "Assam", "total_quantity": 30, "purchase_rate": 10,
             "created_at": "2024-01-01"},
        ]
        rows = assemble_report("teaStock", [], [], batches, config=config).sections[0].rows
        assert [r[2] for r in rows] == ["Jan 1, 2024", "Feb 1, 2024"]
        assert rows[0][7:] == [50.0, 500.0]
        assert rows[1][7:] == ["", ""]

    def test_customer_summary_rows(self, customers, entries, batches, config):
        section = assemble_report("customerSummary", customers, entries, batches, config=config).sections[0]
        assert section.rows == [
            ["Anita", "Anita Stores", 2.0, 150.0, 300.0, 300.0, 250.0],
            ["Customer", "Corner Cafe", 5.0, 100.0, 500.0, 0.0, 500.0],
            ["Raj Kumar", "Raj Tea Stall", 10.0, 100.0, 1000.0, 600.0, 400.0],
        ]

    def test_daily_collections_rows(self, customers, entries, batches, config):
        section = assemble_report("dailyCollections", customers, entries, batches, config=config).sections[0]
        assert section.headers == ["Date", "Day", "Collections (₹)", "Entries"]
        assert section.rows == [
            ["Jan 1, 2024", "Monday", 400.0, 1],
            ["Jan 3, 2024", "Wednesday", 300.0, 1],
            ["Jan 5, 2024", "Friday", 200.0, 1],
        ]

    def test_single_customer_ledger(self, customers, entries, batches, config):
        report = assemble_report("ledger", customers, entries, batches, customer_id="c1", config=config)

        assert report.scope_label == "Raj Kumar"
        assert report.sheet_names == ["Customer Ledger", "Balance_Raj Kumar"]
        ledger = report.sections[0]
        assert [row[9] for row in ledger.rows] == [600.0, 400.0]
        assert ledger.rows[0][10] == "Partial - Due ₹600.00"
        assert ledger.rows[0][11] == "Jan 15, 2024"
        assert ledger.rows[1][5] == ""
        assert report.sections[1].title == "Raj Kumar - Balance Sheet"
        assert report.sections[1].rows == ledger.rows

    def test_empty_section_message(self, config):
        report = assemble_report("dailyCollections", [{"id": "c1", "full_name": "Raj"}], [], [], config=config)
        assert report.sections[0].rows == [["No collections recorded", "", "", ""]]

    def test_unknown_customer_scope(self, customers, entries, batches, config):
        report = assemble_report("ledger", customers, entries, batches, customer_id="missing", config=config)
        assert report.scope_label == "customer"
        assert report.sheet_names == ["Customer Ledger"]
        assert report.sections[0].rows == [["No ledger entries available"] + [""] * 11]

    def test_idempotent(self, customers, entries, batches, config):
        first = assemble_report("comprehensive", customers, entries, batches, config=config)
        second = assemble_report("comprehensive", customers, entries, batches, config=config)
        assert first.model_dump() == second.model_dump()

    def test_headers_follow_currency_symbol(self, customers, entries, batches, config):
        config.currency_symbol = "Rs."
        report = assemble_report("comprehensive", customers, entries, batches, customer_id="c1", config=config)

        for section in report.sections:
            assert not any("₹" in header for header in section.headers)
        ledger = report.section("Customer Ledger")
        assert "Debit (Rs.)" in ledger.headers
        assert ledger.rows[0][10] == "Partial - Due Rs.600.00"
        assert report.section("Tea Stock").headers[3] == "Purchase Rate (Rs./kg)"

    def test_customer_summary_sorts_case_insensitively(self, config):
        report = assemble_report(
            "customerSummary",
            [{"id": "a", "full_name": "zara"}, {"id": "b", "full_name": "Bala"}, {"id": "c", "full_name": "amit"}],
            [],
            config=config,
        )
        assert [row[0] for row in report.sections[0].rows] == ["amit", "Bala", "zara"]

    def test_section_lookup(self, customers, entries, batches, config):
        report = assemble_report("ledger", customers, entries, batches, customer_id="c1", config=config)
        assert report.section("Balance_Raj Kumar") is report.sections[1]
        assert report.section("Raj Kumar - Balance Sheet") is report.sections[1]
        assert report.section("Tea Stock") is None


class TestBatchReport:
    """Tests for the single-batch detail report."""

    def test_sections(self, raw_snapshot, config):
        batch = raw_snapshot["batches"][0]
        report = assemble_batch_report(
            batch, raw_snapshot["customers"], raw_snapshot["transactions"], config=config
        )

        assert report.scope_label == "Assam Gold"
        assert report.template_label == "Tea Batch Detail"
        assert report.sheet_names == ["Assam Gold_Overview", "Assam Gold_Customers", "Assam Gold_Transactions"]

        overview = dict((row[0], row[1]) for row in report.sections[0].rows)
        assert overview["Quantity Sold (kg)"] == 15.0
        assert overview["Gross Invoice (₹)"] == 1500.0
        assert overview["Cash Collected (₹)"] == 400.0
        assert overview["Outstanding (₹)"] == 1100.0

        impact = report.sections[1].rows
        assert [row[0] for row in impact] == ["Customer", "Raj Kumar"]

        transactions = report.sections[2].rows
        assert transactions[0] == [
            "Jan 1, 2024", "Raj Kumar", "Sale", 10.0, 100.0, 1000.0, 400.0, 600.0, "Due ₹600.00",
        ]
        assert transactions[1][-1] == "Due ₹500.00"

    def test_batch_without_transactions(self, config):
        report = assemble_batch_report({"id": "b9", "name": "Nilgiri"}, [], [], config=config)
        assert report.sections[2].rows[0][0] == "No transactions recorded for this batch"
