import json
from pathlib import Path

import pytest

from chai_ledger.config import ChaiLedgerConfig

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def snapshot_path() -> Path:
    return FIXTURES / "snapshot.json"


@pytest.fixture
def raw_snapshot(snapshot_path) -> dict:
    return json.loads(snapshot_path.read_text(encoding="utf-8"))


@pytest.fixture
def customers(raw_snapshot) -> list:
    return raw_snapshot["customers"]


@pytest.fixture
def entries(raw_snapshot) -> list:
    return raw_snapshot["transactions"]


@pytest.fixture
def batches(raw_snapshot) -> list:
    return raw_snapshot["batches"]


@pytest.fixture
def config() -> ChaiLedgerConfig:
    """Config independent of the environment the tests run in."""
    return ChaiLedgerConfig(
        country_code="91",
        currency_symbol="₹",
        business_name="Kadak चाह",
        partner_contact="98765 00000",
        reminder_lead_days=1,
        log_level="INFO",
        log_file=None,
    )
