"""
Tests for record coercion and per-entry balance rules.
"""
from datetime import date

from chai_ledger.models import Customer, LedgerEntry
from chai_ledger.parsers.records import (
    collected_amount,
    customers_by_id,
    outstanding_delta,
    parse_batch,
    parse_customer,
    parse_entries,
    parse_entry,
    resolve_balance,
)


class TestParseRecords:
    """Tests for alias resolution."""

    def test_parse_customer_aliases(self):
        customer = parse_customer({
            "id": "c2",
            "fullName": "Anita",
            "shopName": "Anita Stores",
            "contactPhone": "91234 56789",
            "outstandingBalanceHint": "250",
        })
        assert customer.full_name == "Anita"
        assert customer.shop_name == "Anita Stores"
        assert customer.contact == "91234 56789"
        assert customer.outstanding_balance == 250.0

    def test_parse_entry_camel_case(self):
        entry = parse_entry({
            "customerId": "c1",
            "type": "Sale",
            "totalAmount": "1,000",
            "paidAmount": 400,
            "pricePerKg": 100,
            "dueDate": "2024-01-15",
        })
        assert entry.customer_id == "c1"
        assert entry.type == "sale"
        assert entry.amount == 1000.0
        assert entry.paid_amount == 400.0
        assert entry.sale_rate == 100.0
        assert entry.due_date == date(2024, 1, 15)

    def test_parse_entry_embedded_customer(self):
        """Joined selects embed the customer row, sometimes as a list."""
        entry = parse_entry({
            "customer_id": "c9",
            "customer": [{"full_name": "Meera", "whatsapp_number": "9000000001"}],
        })
        assert entry.customer_name == "Meera"
        assert entry.customer_phone == "9000000001"

    def test_parse_entry_customer_name_string(self):
        entry = parse_entry({"customer_id": "c9", "customer": "Meera"})
        assert entry.customer_name == "Meera"

    def test_parse_entry_invalid_numbers_become_none(self):
        entry = parse_entry({"amount": "n/a", "quantity": float("nan")})
        assert entry.amount is None
        assert entry.quantity is None

    def test_parse_entries_skips_non_mappings(self):
        entries = parse_entries([{"id": "t1"}, None, "junk", 42])
        assert [e.id for e in entries] == ["t1"]

    def test_parse_entries_passes_models_through(self):
        model = LedgerEntry(id="t1", type="sale")
        assert parse_entries([model])[0] is model

    def test_parse_batch_pnl_view_aliases(self):
        batch = parse_batch({
            "batch_id": "b1",
            "batch_name": "Assam Gold",
            "avg_sale_rate": 110,
            "total_sales_amount": 1100,
            "total_profit": 300,
        })
        assert batch.id == "b1"
        assert batch.name == "Assam Gold"
        assert batch.avg_sell_rate == 110.0
        assert batch.total_sale_value == 1100.0
        assert batch.pnl == 300.0

    def test_customers_by_id_skips_missing_ids(self):
        lookup = customers_by_id([Customer(id="c1"), Customer(full_name="No Id")])
        assert list(lookup) == ["c1"]


class TestBalances:
    """Tests for per-entry balance, collection and delta rules."""

    def test_resolve_balance_prefers_stored(self):
        entry = LedgerEntry(type="sale", amount=1000, paid_amount=400, balance=550)
        assert resolve_balance(entry) == 550

    def test_resolve_balance_derived_for_sales(self):
        entry = LedgerEntry(type="sale", amount=1000, paid_amount=400)
        assert resolve_balance(entry) == 600

    def test_resolve_balance_payment_uses_remaining(self):
        entry = LedgerEntry(type="payment", amount=200, remaining_balance=400)
        assert resolve_balance(entry) == 400

    def test_collected_amount_payment(self):
        assert collected_amount(LedgerEntry(type="payment", amount=-200)) == 200
        assert collected_amount(LedgerEntry(type="payment", paid_amount=150)) == 150

    def test_collected_amount_sale(self):
        assert collected_amount(LedgerEntry(type="sale", amount=500, paid_amount=100)) == 100
        assert collected_amount(LedgerEntry(type="sale", amount=500, paid_amount=-5)) == 0

    def test_outstanding_delta(self):
        """Sales add what is left unpaid, payments subtract what they collect."""
        sale = LedgerEntry(type="sale", amount=1000, paid_amount=400, balance=600)
        payment = LedgerEntry(type="payment", amount=600, balance=0)
        assert outstanding_delta(sale) == 600
        assert outstanding_delta(payment) == -600
