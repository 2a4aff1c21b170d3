import csv
import io
import json

import pytest

from chai_ledger.cli import main, report_to_csv
from chai_ledger.errors import SnapshotError
from chai_ledger.reports import assemble_report
from chai_ledger.snapshot import load_snapshot


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CHAI_COUNTRY_CODE", "CHAI_CURRENCY_SYMBOL", "CHAI_REMINDER_LEAD_DAYS", "CHAI_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_load_snapshot(snapshot_path):
    snapshot = load_snapshot(snapshot_path)
    assert [c.id for c in snapshot.customers] == ["c1", "c2", "c3"]
    assert len(snapshot.entries) == 4
    assert snapshot.entries[1].type == "payment"
    assert len(snapshot.batches) == 2


def test_load_snapshot_entries_key(tmp_path):
    path = tmp_path / "snap.json"
    path.write_text(json.dumps({"entries": [{"id": "t1", "type": "sale", "amount": 5}]}), encoding="utf-8")
    snapshot = load_snapshot(path)
    assert snapshot.entries[0].amount == 5
    assert snapshot.customers == []


def test_load_snapshot_errors(tmp_path):
    with pytest.raises(SnapshotError):
        load_snapshot(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SnapshotError):
        load_snapshot(bad)

    listing = tmp_path / "list.json"
    listing.write_text("[]", encoding="utf-8")
    with pytest.raises(SnapshotError):
        load_snapshot(listing)


def test_summary_command(snapshot_path, capsys):
    main(["summary", str(snapshot_path)])
    payload = json.loads(capsys.readouterr().out)
    assert payload["totals"]["total_sales"] == 1800
    assert payload["per_customer"]["c1"]["outstanding"] == 400


def test_outstanding_command(snapshot_path, capsys):
    main(["outstanding", str(snapshot_path)])
    payload = json.loads(capsys.readouterr().out)
    assert [row["customer_id"] for row in payload] == ["c3", "c1", "c2"]
    assert payload[1]["next_due"] == "2024-01-15"


def test_pnl_command_to_file(snapshot_path, tmp_path):
    output = tmp_path / "pnl.json"
    main(["pnl", str(snapshot_path), "--output", str(output)])
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["tier"] == "sales"
    assert payload["totals"]["pnl"] == 360


def test_report_command_csv(snapshot_path, capsys):
    main(["report", str(snapshot_path), "--template", "ledger", "--customer", "c1", "--format", "csv"])
    rows = list(csv.reader(io.StringIO(capsys.readouterr().out)))
    assert rows[0] == ["Customer Ledger"]
    assert rows[1] == ["Scope: Raj Kumar"]
    assert rows[3][0] == "Customer"
    assert rows[4][:2] == ["Raj Kumar", "Raj Tea Stall"]


def test_report_to_csv_separates_sections(snapshot_path):
    snapshot = load_snapshot(snapshot_path)
    report = assemble_report("comprehensive", snapshot.customers, snapshot.entries, snapshot.batches)
    rows = list(csv.reader(io.StringIO(report_to_csv(report))))
    assert rows.count([]) == len(report.sections) - 1


def test_missing_snapshot_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["summary", str(tmp_path / "nope.json")])
    assert exc.value.code == 1


def test_no_command_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
