"""API tests for statement and M-Pesa reconciliation."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import API, pay
from school_api.main import app
from school_api.services.mpesa import StatementTransaction

pytestmark = pytest.mark.api

URL = f"{API}/finance/reconciliation"


class FakeDaraja:
    """Stands in for the Daraja client; returns a fixed statement."""

    def __init__(self, transactions):
        self.transactions = transactions
        self.requested_days = None

    def authenticate(self):
        return "token"

    def get_transaction_status(self, transaction_id):
        return {"TransactionID": transaction_id, "ResultCode": 0}

    def get_account_balance(self):
        return {"AvailableBalance": "0.00"}

    def get_recent_transactions(self, days=7):
        self.requested_days = days
        return self.transactions


@pytest.fixture
def recorded(client, bursar_headers, students, invoices):
    """Three M-Pesa receipts recorded today: QAB1 5000, QAB2 3000, QAB3 1000."""
    for student, ref, amount in zip(students, ["QAB1", "QAB2", "QAB3"], [5000, 3000, 1000]):
        resp = pay(client, bursar_headers, student["id"], amount, ref=ref)
        assert resp.status_code == 201, resp.text


@pytest.fixture
def gateway():
    now = datetime.combine(date.today(), datetime.min.time()).replace(hour=9)
    fake = FakeDaraja(
        [
            StatementTransaction(reference="QAB1", amount=Decimal("5000"), transaction_date=now, sender_name="JANE MWANGI"),
            StatementTransaction(reference="QAB3", amount=Decimal("1000"), transaction_date=now),
        ]
    )
    app.state.mpesa_gateway = fake
    yield fake
    del app.state.mpesa_gateway


def line(reference, amount, **extra):
    return {"reference": reference, "amount": amount, "transactionDate": f"{date.today()}T10:15:00", **extra}


class TestStatementReconciliation:
    def test_classifies_each_line(self, client, bursar_headers, recorded):
        resp = client.post(
            URL,
            json={
                "source": "MPESA",
                "transactions": [
                    line("QAB1", 5000, senderName="JANE MWANGI"),
                    line("QAB2", 2500),
                    line("QZZ9", 700),
                ],
            },
            headers=bursar_headers,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()

        status = {t["reference"]: t["status"] for t in body["transactions"]}
        assert status == {"QAB1": "matched", "QAB2": "amount_mismatch", "QZZ9": "unmatched"}
        assert body["summary"] == {
            "matched": 1,
            "amount_mismatch": 1,
            "unmatched": 1,
            "total": 3,
            "missing_from_statement": 1,
        }
        assert [m["transaction_ref"] for m in body["missing_from_statement"]] == ["QAB3"]

        mismatch = next(t for t in body["transactions"] if t["reference"] == "QAB2")
        assert mismatch["recorded_amount"] == 3000
        assert mismatch["student_name"] == "Baraka Njoroge"

    def test_explicit_window_excludes_older_payments(self, client, bursar_headers, recorded):
        resp = client.post(
            URL,
            json={
                "dateFrom": "2020-01-01",
                "dateTo": "2020-01-31",
                "transactions": [line("QAB1", 5000)],
            },
            headers=bursar_headers,
        )
        body = resp.json()
        assert body["summary"]["matched"] == 1
        assert body["missing_from_statement"] == []

    def test_run_is_audited(self, client, admin_headers, bursar_headers, recorded):
        client.post(URL, json={"transactions": [line("QZZ9", 700)]}, headers=bursar_headers)
        logs = client.get(
            f"{API}/audit-logs", params={"search": "RECONCILIATION_RUN"}, headers=admin_headers
        ).json()
        assert logs["total"] == 1
        assert logs["items"][0]["severity"] == "INFO"

    def test_bank_source(self, client, bursar_headers, students, invoices):
        pay(client, bursar_headers, students[0]["id"], 2000, method="BANK", ref="FT24001")
        resp = client.post(
            URL, json={"source": "BANK", "transactions": [line("FT24001", 2000)]}, headers=bursar_headers
        )
        assert resp.json()["source"] == "BANK"
        assert resp.json()["summary"]["matched"] == 1

    def test_teachers_cannot_reconcile(self, client, teacher_headers):
        resp = client.post(URL, json={"transactions": [line("QZZ9", 700)]}, headers=teacher_headers)
        assert resp.status_code == 403


class TestMpesaReconciliation:
    def test_pulls_recent_transactions(self, client, bursar_headers, recorded, gateway):
        resp = client.get(f"{URL}/mpesa", params={"days": 3}, headers=bursar_headers)
        assert resp.status_code == 200, resp.text
        body = resp.json()

        assert gateway.requested_days == 3
        assert body["summary"]["matched"] == 2
        assert [m["transaction_ref"] for m in body["missing_from_statement"]] == ["QAB2"]

    def test_gateway_not_configured(self, client, bursar_headers):
        resp = client.get(f"{URL}/mpesa", headers=bursar_headers)
        assert resp.status_code == 503
