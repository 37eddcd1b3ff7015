"""API tests for fee structures, invoicing, payments, the ledger and the finance dashboard."""

import pytest

from conftest import API, pay

pytestmark = pytest.mark.api


class TestFeeStructures:
    def test_total_excludes_optional_items(self, structure):
        assert structure["total"] == 17000
        assert structure["is_published"] is False
        assert len(structure["items"]) == 3

    def test_one_structure_per_class_and_term(self, client, bursar_headers, academics, structure):
        resp = client.post(
            f"{API}/finance/fee-structures",
            json={"name": "Again", "classId": academics["class_id"], "termId": academics["term_id"]},
            headers=bursar_headers,
        )
        assert resp.status_code == 409

    def test_published_structure_is_frozen(self, client, bursar_headers, structure):
        resp = client.post(f"{API}/finance/fee-structures/{structure['id']}/publish", headers=bursar_headers)
        assert resp.status_code == 200
        resp = client.put(
            f"{API}/finance/fee-structures/{structure['id']}/items",
            json={"items": [{"itemName": "Tuition", "amount": 1}]},
            headers=bursar_headers,
        )
        assert resp.status_code == 409

    def test_replace_items_before_publishing(self, client, bursar_headers, structure):
        resp = client.put(
            f"{API}/finance/fee-structures/{structure['id']}/items",
            json={"items": [{"itemName": "Tuition", "amount": 18000}]},
            headers=bursar_headers,
        )
        assert resp.json()["total"] == 18000

    def test_unknown_category_rejected(self, client, bursar_headers, structure):
        resp = client.put(
            f"{API}/finance/fee-structures/{structure['id']}/items",
            json={"items": [{"itemName": "Lunch", "amount": 100, "category": "MEALS"}]},
            headers=bursar_headers,
        )
        assert resp.status_code == 400

    def test_teachers_have_no_finance_access(self, client, teacher_headers):
        assert client.get(f"{API}/finance/fee-structures", headers=teacher_headers).status_code == 403


class TestInvoicing:
    def test_unpublished_structures_are_not_billed(self, client, bursar_headers, academics, structure):
        resp = client.post(
            f"{API}/finance/invoices/generate", json={"termId": academics["term_id"]}, headers=bursar_headers
        )
        assert resp.status_code == 400

    def test_one_invoice_per_student_per_term(self, client, bursar_headers, academics, invoices):
        assert len(invoices) == 3
        assert {i["total"] for i in invoices} == {17000.0}
        assert all(i["status"] == "UNPAID" for i in invoices)
        assert all(i["invoice_number"].startswith("INV-") for i in invoices)
        assert len({i["invoice_number"] for i in invoices}) == 3

        again = client.post(
            f"{API}/finance/invoices/generate", json={"termId": academics["term_id"]}, headers=bursar_headers
        ).json()
        assert (again["created"], again["skipped"]) == (0, 3)

    def test_invoicing_posts_to_receivables(self, client, bursar_headers, invoices):
        ledger = client.get(f"{API}/finance/ledger", headers=bursar_headers).json()
        accounts = {a["code"]: a for a in ledger["trial_balance"]["accounts"]}
        assert accounts["1100"]["debit"] == 51000
        assert accounts["4000"]["credit"] == 51000
        assert ledger["trial_balance"]["balanced"] is True


class TestPayments:
    def test_partial_then_full_payment(self, client, bursar_headers, students, invoices):
        sid = students[0]["id"]
        first = pay(client, bursar_headers, sid, 7000, ref="QGH7K2LM1P")
        assert first.status_code == 201
        assert first.json()["receipt_number"].startswith("RCT-")

        listed = client.get(f"{API}/finance/invoices", params={"studentId": sid}, headers=bursar_headers).json()
        assert (listed[0]["status"], listed[0]["balance"]) == ("PARTIAL", 10000.0)

        pay(client, bursar_headers, sid, 10000, method="CASH")
        listed = client.get(f"{API}/finance/invoices", params={"studentId": sid}, headers=bursar_headers).json()
        assert (listed[0]["status"], listed[0]["balance"]) == ("PAID", 0.0)

    def test_overpayment_rejected(self, client, bursar_headers, students, invoices):
        resp = pay(client, bursar_headers, students[0]["id"], 17001, method="CASH")
        assert resp.status_code == 400

    def test_duplicate_reference_rejected(self, client, bursar_headers, students, invoices):
        assert pay(client, bursar_headers, students[0]["id"], 100, ref="QGH7K2LM1P").status_code == 201
        assert pay(client, bursar_headers, students[1]["id"], 100, ref="QGH7K2LM1P").status_code == 409

    def test_mpesa_requires_reference(self, client, bursar_headers, students, invoices):
        assert pay(client, bursar_headers, students[0]["id"], 100).status_code == 400

    def test_payment_without_invoice_rejected(self, client, bursar_headers, students):
        assert pay(client, bursar_headers, students[0]["id"], 100, method="CASH").status_code == 400

    def test_amount_limited_to_cents(self, client, bursar_headers, students, invoices):
        assert pay(client, bursar_headers, students[0]["id"], 100.005, method="CASH").status_code == 400
        assert pay(client, bursar_headers, students[0]["id"], 100.05, method="CASH").status_code == 201

    def test_unassigned_payment_settles_oldest_invoice(self, client, bursar_headers, academics, students, invoices):
        active = client.get(f"{API}/academic/years/active", headers=bursar_headers).json()
        term2 = next(t for t in active["terms"] if t["term_number"] == 2)
        later = client.post(
            f"{API}/finance/fee-structures",
            json={
                "name": "Grade 7 Term 2",
                "classId": academics["class_id"],
                "termId": term2["id"],
                "items": [{"itemName": "Tuition", "amount": 12000, "category": "TUITION"}],
            },
            headers=bursar_headers,
        ).json()
        client.post(f"{API}/finance/fee-structures/{later['id']}/publish", headers=bursar_headers)
        resp = client.post(f"{API}/finance/invoices/generate", json={"termId": term2["id"]}, headers=bursar_headers)
        assert resp.status_code == 200, resp.text

        sid = students[0]["id"]
        first = pay(client, bursar_headers, sid, 17000, method="CASH").json()
        second = pay(client, bursar_headers, sid, 2000, method="CASH").json()

        listed = client.get(f"{API}/finance/invoices", params={"studentId": sid}, headers=bursar_headers).json()
        by_term = {i["term_id"]: i for i in listed}
        assert first["invoice_id"] == by_term[academics["term_id"]]["id"]
        assert second["invoice_id"] == by_term[term2["id"]]["id"]
        assert by_term[academics["term_id"]]["status"] == "PAID"
        assert (by_term[term2["id"]]["status"], by_term[term2["id"]]["balance"]) == ("PARTIAL", 10000.0)

    def test_statement_running_balance(self, client, bursar_headers, students, invoices):
        sid = students[1]["id"]
        pay(client, bursar_headers, sid, 5000, ref="RBK81XQ2ZA")
        pay(client, bursar_headers, sid, 2000, method="CASH")

        statement = client.get(f"{API}/finance/students/{sid}/statement", headers=bursar_headers).json()
        assert [e["type"] for e in statement["entries"]] == ["INVOICE", "PAYMENT", "PAYMENT"]
        assert [e["balance"] for e in statement["entries"]] == [17000.0, 12000.0, 10000.0]
        assert statement["balance"] == 10000.0

    def test_payments_post_to_cash(self, client, bursar_headers, students, invoices):
        pay(client, bursar_headers, students[0]["id"], 4000, method="CASH")
        ledger = client.get(f"{API}/finance/ledger", headers=bursar_headers).json()
        accounts = {a["code"]: a for a in ledger["trial_balance"]["accounts"]}
        assert accounts["1000"]["debit"] == 4000
        assert accounts["1100"]["credit"] == 4000
        assert ledger["trial_balance"]["total_debit"] == ledger["trial_balance"]["total_credit"]

    def test_list_payments_filters(self, client, bursar_headers, students, invoices):
        pay(client, bursar_headers, students[0]["id"], 1000, ref="MPX0001")
        pay(client, bursar_headers, students[1]["id"], 1000, method="CASH")
        mpesa = client.get(f"{API}/finance/payments", params={"method": "mpesa"}, headers=bursar_headers).json()
        assert [p["transaction_ref"] for p in mpesa] == ["MPX0001"]
        assert mpesa[0]["student_name"] == "Amani Mwangi"

    def test_payment_is_audited(self, client, admin_headers, bursar_headers, students, invoices):
        pay(client, bursar_headers, students[0]["id"], 1000, method="CASH")
        logs = client.get(f"{API}/audit-logs", params={"search": "PAYMENT_RECORDED"}, headers=admin_headers).json()
        assert logs["total"] == 1
        assert logs["items"][0]["role"] == "BURSAR"

    def test_student_with_history_is_deactivated_not_deleted(self, client, admin_headers, students, invoices):
        sid = students[0]["id"]
        resp = client.delete(f"{API}/students/{sid}", headers=admin_headers).json()
        assert resp == {"id": sid, "deleted": False, "status": "INACTIVE"}
        assert client.get(f"{API}/students/{sid}", headers=admin_headers).json()["status"] == "INACTIVE"


class TestDashboard:
    def test_summary_and_breakdowns(self, client, bursar_headers, students, invoices):
        pay(client, bursar_headers, students[0]["id"], 17000, method="CASH")
        pay(client, bursar_headers, students[1]["id"], 8500, ref="SDF34GH21K")

        base = f"{API}/admin/finance/dashboard"
        summary = client.get(f"{base}/summary", headers=bursar_headers).json()
        assert summary["total_invoiced"] == 51000
        assert summary["total_collected"] == 25500
        assert summary["outstanding"] == 25500
        assert summary["collection_rate"] == 50.0
        assert summary["today_payment_count"] == 2

        ledger = client.get(f"{base}/ledger", params={"status": "PARTIAL"}, headers=bursar_headers).json()
        assert [r["admission_number"] for r in ledger] == ["ADM002"]

        classes = client.get(f"{base}/class-summary", headers=bursar_headers).json()
        assert classes[0]["class_name"] == "Grade 7"
        assert classes[0]["collection_rate"] == 50.0

        debtors = client.get(f"{base}/top-debtors", params={"limit": 2}, headers=bursar_headers).json()
        assert [d["admission_number"] for d in debtors] == ["ADM003", "ADM002"]

        activity = client.get(f"{base}/recent-activities", params={"limit": 5}, headers=bursar_headers).json()
        assert len(activity) == 5
        assert {a["type"] for a in activity} == {"PAYMENT", "INVOICE"}
