"""API tests for the parent portal and the audit log."""

import pytest

from conftest import API, PASSWORD, pay

pytestmark = pytest.mark.api


@pytest.fixture
def child(client, admin_headers, parent, students):
    """Amani is linked to the parent account; the other learners are not."""
    resp = client.put(
        f"{API}/students/{students[0]['id']}", json={"parent_user_id": parent["id"]}, headers=admin_headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestParentPortal:
    def test_only_linked_children_listed(self, client, parent, child):
        resp = client.get(f"{API}/parents/me/children", headers=parent["headers"])
        assert resp.status_code == 200
        assert [c["admission_number"] for c in resp.json()] == ["ADM001"]
        assert resp.json()[0]["class_name"] == "Grade 7"

    def test_link_requires_parent_account(self, client, admin_headers, teacher, students):
        resp = client.put(
            f"{API}/students/{students[1]['id']}", json={"parent_user_id": teacher["id"]}, headers=admin_headers
        )
        assert resp.status_code == 400

    def test_child_results(self, client, parent, teacher_headers, academics, child):
        exam = client.post(
            f"{API}/assessments",
            json={
                "title": "Mid Term",
                "maxScore": 100,
                "subjectId": academics["subject_id"],
                "termId": academics["term_id"],
                "streamId": academics["stream_id"],
            },
            headers=teacher_headers,
        ).json()
        client.post(
            f"{API}/scores",
            json={"assessmentId": exam["id"], "scores": [{"studentId": child["id"], "score": 72}]},
            headers=teacher_headers,
        )

        resp = client.get(
            f"{API}/parents/children/{child['id']}/results",
            params={"termId": academics["term_id"]},
            headers=parent["headers"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["subjects"][0]["grade"] == "B+"
        assert body["mean_score"] == 72.0

    def test_child_fee_balance(self, client, parent, bursar_headers, child, invoices):
        pay(client, bursar_headers, child["id"], 12000, method="CASH")
        resp = client.get(f"{API}/parents/children/{child['id']}/fee-balance", headers=parent["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert (body["total_invoiced"], body["total_paid"], body["balance"]) == (17000.0, 12000.0, 5000.0)
        assert body["invoices"][0]["status"] == "PARTIAL"

    def test_other_children_hidden(self, client, parent, students, child):
        for path in ("results", "fee-balance"):
            resp = client.get(f"{API}/parents/children/{students[1]['id']}/{path}", headers=parent["headers"])
            assert resp.status_code == 404

    def test_staff_cannot_use_portal(self, client, admin_headers):
        assert client.get(f"{API}/parents/me/children", headers=admin_headers).status_code == 403


class TestAuditLog:
    def test_filter_by_severity(self, client, admin_headers, school):
        client.post(
            f"{API}/auth/login",
            json={"email": "head@greenfield.ac.ke", "password": PASSWORD + "x", "slug": "greenfield-academy"},
        )
        body = client.get(f"{API}/audit-logs", params={"severity": "critical"}, headers=admin_headers).json()
        assert body["total"] == 1
        assert body["items"][0]["action"] == "LOGIN_FAILED"
        assert body["items"][0]["actor_name"] == "head@greenfield.ac.ke"

    def test_filter_by_user(self, client, admin_headers, parent):
        body = client.get(f"{API}/audit-logs", params={"userId": parent["id"]}, headers=admin_headers).json()
        assert [i["action"] for i in body["items"]] == ["LOGIN"]
        assert body["items"][0]["role"] == "PARENT"

    def test_date_range(self, client, admin_headers):
        past = client.get(
            f"{API}/audit-logs", params={"dateFrom": "2000-01-01", "dateTo": "2000-12-31"}, headers=admin_headers
        ).json()
        assert past == {"total": 0, "items": []}
        since = client.get(f"{API}/audit-logs", params={"dateFrom": "2000-01-01"}, headers=admin_headers).json()
        assert since["total"] >= 1

    def test_pagination(self, client, admin_headers, bursar_headers):
        everything = client.get(f"{API}/audit-logs", headers=admin_headers).json()
        assert everything["total"] >= 3

        first = client.get(f"{API}/audit-logs", params={"limit": 1}, headers=admin_headers).json()
        second = client.get(f"{API}/audit-logs", params={"limit": 1, "offset": 1}, headers=admin_headers).json()
        assert first["total"] == everything["total"]
        assert len(first["items"]) == len(second["items"]) == 1
        assert first["items"][0]["id"] != second["items"][0]["id"]

        beyond = client.get(
            f"{API}/audit-logs", params={"offset": everything["total"]}, headers=admin_headers
        ).json()
        assert beyond["items"] == []

    def test_admins_only(self, client, bursar_headers):
        assert client.get(f"{API}/audit-logs", headers=bursar_headers).status_code == 403
