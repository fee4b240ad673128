import pytest
from fastapi.testclient import TestClient

from billtracker import config, db, main
from billtracker.book import BillBook
from billtracker.models import Bill


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "bills.sqlite3"))
    monkeypatch.setattr(config, "DEFAULT_CURRENCY", "EUR")
    monkeypatch.setattr(config, "STRICT_AMOUNTS", False)
    monkeypatch.setattr(main, "API_KEY", "")
    db.init_db()


@pytest.fixture
def book():
    return BillBook(storage_key="myBills").load()


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c


def make_bill(bill_id, status, value, type="Other", name=None, currency="EUR"):
    return Bill(
        id=bill_id,
        type=type,
        name=name,
        payment_method="Card",
        amount={"value": value, "currency": currency},
        status=status,
    )


@pytest.fixture
def scenario_bills():
    return [
        make_bill("1", "Paid", 10),
        make_bill("2", "Unpaid", 5),
        make_bill("3", "Pending", 7),
    ]
