"""
Tests for reminder drafting and due-reminder selection.
"""
from datetime import date, datetime, timezone

import pytest

from chai_ledger.analytics import build_outstanding_breakdown, compute_transaction_summary
from chai_ledger.errors import ReminderError
from chai_ledger.models import OutstandingEntry
from chai_ledger.reminders import (
    InMemoryReminderStore,
    ReminderDetails,
    compose_reminder_message,
    draft_reminder,
    select_due_reminders,
)


def _outstanding(entries, customers, customer_id):
    summary = compute_transaction_summary(entries)
    breakdown = build_outstanding_breakdown(summary, entries, customers)
    return next(o for o in breakdown if o.customer_id == customer_id)


class TestComposeReminderMessage:
    """Tests for the reminder message template."""

    def test_full_message(self, config):
        message = compose_reminder_message(
            ReminderDetails(
                customer_name="Raj",
                tea_name="Assam Gold",
                purchase_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
                invoice_amount=1000,
                paid_amount=400,
                invoice_balance=600,
                total_outstanding=600,
                due_date=date(2024, 1, 15),
                partner_number="919876500000",
            ),
            config,
        )
        lines = message.splitlines()
        assert lines[0] == "Dear Raj,"
        assert "  • Tea selection: Assam Gold" in lines
        assert "  • Purchased on: Jan 1, 2024" in lines
        assert "  • Invoice total: ₹1000.00" in lines
        assert "  • Paid so far: ₹400.00" in lines
        assert "  • Balance due: ₹600.00 (due on Jan 15, 2024)" in lines
        assert "☎ Partner support: 9876500000" in lines
        assert "Total outstanding" not in message
        assert "Kadak चाह" in lines[-1]
        assert "{%" not in message

    def test_minimal_message(self, config):
        message = compose_reminder_message(ReminderDetails(customer_name="Raj", total_outstanding=250), config)
        assert "  • Tea selection: your latest tea order" in message
        assert "  • Purchased on: Not recorded" in message
        assert "  • Balance due: ₹250.00" in message.splitlines()
        assert "Invoice total" not in message
        assert "Partner support" not in message

    def test_total_outstanding_line_when_different(self, config):
        message = compose_reminder_message(
            ReminderDetails(customer_name="Raj", invoice_balance=600, total_outstanding=900),
            config,
        )
        assert "  • Total outstanding with us: ₹900.00" in message.splitlines()

    def test_small_difference_is_not_shown(self, config):
        message = compose_reminder_message(
            ReminderDetails(customer_name="Raj", invoice_balance=600, total_outstanding=600.5),
            config,
        )
        assert "Total outstanding" not in message


class TestDraftReminder:
    """Tests for manual reminders from the outstanding breakdown."""

    def test_draft_for_customer_with_dues(self, customers, entries, config):
        draft = draft_reminder(_outstanding(entries, customers, "c1"), entries, config=config)

        assert draft.recipient == "919876543210"
        assert draft.customer_id == "c1"
        assert draft.transaction_id == "t1"
        assert "Dear Raj Kumar," in draft.message
        assert "  • Balance due: ₹600.00 (due on Jan 15, 2024)" in draft.message
        assert "  • Total outstanding with us: ₹400.00" in draft.message
        assert "☎ Partner support: 9876500000" in draft.message

    def test_explicit_partner_number(self, customers, entries, config):
        draft = draft_reminder(
            _outstanding(entries, customers, "c1"), entries, partner_number="9000000009", config=config
        )
        assert "Partner support: 9000000009" in draft.message

    def test_settled_customer(self, config):
        settled = OutstandingEntry(customer_id="c1", customer_name="Raj", outstanding=0, phone="9876543210")
        with pytest.raises(ReminderError, match="fully settled"):
            draft_reminder(settled, [], config=config)

    def test_missing_partner_number(self, customers, entries, config):
        config.partner_contact = None
        with pytest.raises(ReminderError, match="partner contact"):
            draft_reminder(_outstanding(entries, customers, "c1"), entries, config=config)

    def test_missing_recipient(self, customers, entries, config):
        with pytest.raises(ReminderError, match="WhatsApp number"):
            draft_reminder(_outstanding(entries, customers, "c3"), entries, config=config)


class TestSelectDueReminders:
    """Tests for automatic reminders."""

    def test_due_tomorrow(self, customers, entries, config):
        store = InMemoryReminderStore()
        drafts = select_due_reminders(entries, customers, as_of=date(2024, 1, 14), store=store, config=config)

        assert [d.transaction_id for d in drafts] == ["t1"]
        assert drafts[0].recipient == "919876543210"
        assert "(due on Jan 15, 2024)" in drafts[0].message
        # Selection alone does not mark anything as sent
        assert len(store) == 0

    def test_already_sent_is_skipped(self, customers, entries, config):
        store = InMemoryReminderStore()
        store.mark_sent("t1")
        drafts = select_due_reminders(entries, customers, as_of=date(2024, 1, 14), store=store, config=config)
        assert drafts == []

    def test_invalid_phone_is_skipped(self, customers, entries, config):
        drafts = select_due_reminders(
            entries, customers, as_of=date(2024, 1, 19), store=InMemoryReminderStore(), config=config
        )
        assert drafts == []

    def test_lead_days(self, customers, entries, config):
        drafts = select_due_reminders(
            entries, customers, as_of=date(2024, 1, 12), store=InMemoryReminderStore(),
            lead_days=3, config=config,
        )
        assert [d.transaction_id for d in drafts] == ["t1"]

    def test_other_days_ignored(self, customers, entries, config):
        drafts = select_due_reminders(
            entries, customers, as_of=date(2024, 1, 15), store=InMemoryReminderStore(), config=config
        )
        assert drafts == []
