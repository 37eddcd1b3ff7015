"""API tests for stream attendance and schemes of work."""

from datetime import date, timedelta

import pytest

from conftest import API

pytestmark = pytest.mark.api

MONDAY = "2025-03-03"


def mark(client, headers, academics, entries, on=MONDAY, update=False, **extra):
    body = {
        "classId": academics["class_id"],
        "streamId": academics["stream_id"],
        "attendanceDate": on,
        "attendanceData": entries,
        **extra,
    }
    if update:
        return client.put(f"{API}/attendance/bulk-update", json=body, headers=headers)
    return client.post(f"{API}/attendance/mark", json=body, headers=headers)


def by_date(client, headers, academics, on=MONDAY, **params):
    return client.get(
        f"{API}/attendance/by-date",
        params={"classId": academics["class_id"], "streamId": academics["stream_id"], "date": on, **params},
        headers=headers,
    )


class TestAttendance:
    def test_mark_and_read_back(self, client, teacher_headers, academics, students):
        resp = mark(
            client,
            teacher_headers,
            academics,
            [
                {"studentId": students[0]["id"], "status": "present"},
                {"studentId": students[1]["id"], "status": "sick", "reason": "Malaria"},
            ],
        )
        assert resp.status_code == 200, resp.text
        assert (resp.json()["marked_count"], resp.json()["failed"]) == (2, 0)

        day = by_date(client, teacher_headers, academics).json()
        assert [(r["student"]["admission_number"], r["status"]) for r in day["attendance"]] == [
            ("ADM001", "PRESENT"),
            ("ADM002", "SICK"),
        ]
        assert [u["student"]["admission_number"] for u in day["unmarked_students"]] == ["ADM003"]
        assert day["summary"]["present"] == 1
        assert day["summary"]["unmarked"] == 1
        assert day["summary"]["attendance_rate"] == 50.0

    def test_reason_required_for_absence(self, client, teacher_headers, academics, students):
        body = mark(
            client,
            teacher_headers,
            academics,
            [
                {"studentId": students[0]["id"], "status": "absent"},
                {"studentId": students[1]["id"], "status": "excused"},
                {"studentId": students[2]["id"], "status": "asleep"},
            ],
        ).json()
        assert (body["marked_count"], body["failed"]) == (1, 2)
        errors = {e["student_id"]: e["error"] for e in body["errors"]}
        assert "reason is required" in errors[students[0]["id"]]
        assert "status must be one of" in errors[students[2]["id"]]

    def test_second_marking_is_reported_then_updated(self, client, teacher_headers, academics, students):
        entry = {"studentId": students[0]["id"], "status": "present"}
        mark(client, teacher_headers, academics, [entry])

        again = mark(client, teacher_headers, academics, [entry]).json()
        assert again["failed"] == 1
        assert "already recorded" in again["errors"][0]["error"]

        updated = mark(
            client,
            teacher_headers,
            academics,
            [
                {"studentId": students[0]["id"], "status": "late", "reason": "Bus broke down"},
                {"studentId": students[1]["id"], "status": "present"},
            ],
            update=True,
        ).json()
        assert (updated["updated_count"], updated["failed"]) == (1, 1)

        day = by_date(client, teacher_headers, academics).json()
        assert [(r["status"], r["reason"]) for r in day["attendance"]] == [("LATE", "Bus broke down")]

    def test_subject_lessons_are_separate_registers(self, client, teacher_headers, academics, students):
        entry = [{"studentId": students[0]["id"], "status": "present"}]
        mark(client, teacher_headers, academics, entry)
        resp = mark(client, teacher_headers, academics, entry, subjectId=academics["subject_id"])
        assert resp.json()["marked_count"] == 1

        lesson = by_date(client, teacher_headers, academics, subjectId=academics["subject_id"]).json()
        assert [r["subject_id"] for r in lesson["attendance"]] == [academics["subject_id"]]

    def test_future_date_rejected(self, client, teacher_headers, academics, students):
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        resp = mark(client, teacher_headers, academics, [{"studentId": students[0]["id"], "status": "present"}], on=tomorrow)
        assert resp.status_code == 400

    def test_unassigned_stream_forbidden(self, client, admin_headers, teacher_headers, academics, students):
        other = client.post(
            f"{API}/streams", json={"class_id": academics["class_id"], "name": "West"}, headers=admin_headers
        ).json()
        resp = mark(
            client,
            teacher_headers,
            {**academics, "stream_id": other["id"]},
            [{"studentId": students[0]["id"], "status": "present"}],
        )
        assert resp.status_code == 403

        # admins may mark any stream
        resp = mark(client, admin_headers, academics, [{"studentId": students[0]["id"], "status": "present"}])
        assert resp.json()["marked_count"] == 1

    def test_stream_must_match_class(self, client, admin_headers, teacher_headers, academics, students):
        resp = by_date(client, teacher_headers, {**academics, "class_id": "another-class"})
        assert resp.status_code == 404

    def test_parent_sees_only_own_child(self, client, admin_headers, teacher_headers, academics, students, parent):
        client.put(
            f"{API}/students/{students[0]['id']}", json={"parent_user_id": parent["id"]}, headers=admin_headers
        )
        mark(
            client,
            teacher_headers,
            academics,
            [
                {"studentId": students[0]["id"], "status": "present"},
                {"studentId": students[1]["id"], "status": "absent", "reason": "Travelled"},
            ],
        )
        mark(
            client,
            teacher_headers,
            academics,
            [{"studentId": students[0]["id"], "status": "absent", "reason": "Fever"}],
            on="2025-03-04",
        )

        history = client.get(
            f"{API}/parents/children/{students[0]['id']}/attendance", headers=parent["headers"]
        ).json()
        assert [r["attendance_date"] for r in history["records"]] == ["2025-03-04", MONDAY]
        assert (history["summary"]["present"], history["summary"]["absent"]) == (1, 1)
        assert history["summary"]["attendance_rate"] == 50.0

        resp = client.get(f"{API}/parents/children/{students[1]['id']}/attendance", headers=parent["headers"])
        assert resp.status_code == 404

    def test_parents_cannot_mark(self, client, academics, students, parent):
        resp = mark(client, parent["headers"], academics, [{"studentId": students[0]["id"], "status": "present"}])
        assert resp.status_code == 403


@pytest.fixture
def scheme(client, teacher_headers, academics):
    resp = client.post(
        f"{API}/teachers/schemes",
        json={
            "title": "Pre-Technical Studies Term 1",
            "subjectId": academics["subject_id"],
            "classId": academics["class_id"],
            "termId": academics["term_id"],
        },
        headers=teacher_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def add_topic(client, headers, scheme_id, week, title, **extra):
    return client.post(
        f"{API}/teachers/schemes/{scheme_id}/topics",
        json={"weekNumber": week, "topicTitle": title, **extra},
        headers=headers,
    )


class TestSchemesOfWork:
    def test_unassigned_class_rejected(self, client, admin_headers, teacher_headers, academics):
        other = client.post(
            f"{API}/classes", json={"class_name": "Grade 8", "class_level": 8}, headers=admin_headers
        ).json()
        resp = client.post(
            f"{API}/teachers/schemes",
            json={
                "title": "Not mine",
                "subjectId": academics["subject_id"],
                "classId": other["id"],
                "termId": academics["term_id"],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 403

    def test_topics_are_ordered_and_unique_per_slot(self, client, teacher_headers, scheme):
        assert add_topic(client, teacher_headers, scheme["id"], 2, "Drawing instruments").status_code == 201
        assert add_topic(client, teacher_headers, scheme["id"], 1, "Workshop safety").status_code == 201
        assert add_topic(client, teacher_headers, scheme["id"], 1, "Again").status_code == 409
        assert add_topic(client, teacher_headers, scheme["id"], 21, "Too late").status_code == 400

        topics = client.get(f"{API}/teachers/schemes/{scheme['id']}/topics", headers=teacher_headers).json()
        assert [t["topic_title"] for t in topics] == ["Workshop safety", "Drawing instruments"]

    def test_empty_scheme_cannot_be_submitted(self, client, teacher_headers, scheme):
        resp = client.post(f"{API}/teachers/schemes/{scheme['id']}/submit", headers=teacher_headers)
        assert resp.status_code == 400

    def test_submit_approve_and_record_work(self, client, admin_headers, teacher_headers, academics, scheme):
        topic = add_topic(client, teacher_headers, scheme["id"], 1, "Workshop safety").json()
        add_topic(client, teacher_headers, scheme["id"], 2, "Drawing instruments")

        submitted = client.post(f"{API}/teachers/schemes/{scheme['id']}/submit", headers=teacher_headers).json()
        assert submitted["status"] == "SUBMITTED"
        assert submitted["submitted_at"] is not None

        # submitted schemes are locked
        assert add_topic(client, teacher_headers, scheme["id"], 3, "Late addition").status_code == 409

        # work is only recorded against approved schemes
        term = next(
            t
            for t in client.get(f"{API}/academic/years/active", headers=teacher_headers).json()["terms"]
            if t["id"] == academics["term_id"]
        )
        record = {"weekNumber": 1, "lessonDate": term["start_date"], "workCovered": "Safety rules", "topicId": topic["id"]}
        resp = client.post(f"{API}/teachers/schemes/{scheme['id']}/records", json=record, headers=teacher_headers)
        assert resp.status_code == 409

        approved = client.post(
            f"{API}/teachers/schemes/{scheme['id']}/review", json={"approve": True}, headers=admin_headers
        ).json()
        assert approved["status"] == "APPROVED"

        resp = client.post(f"{API}/teachers/schemes/{scheme['id']}/records", json=record, headers=teacher_headers)
        assert resp.status_code == 201, resp.text

        outside = {**record, "lessonDate": "1999-01-04"}
        resp = client.post(f"{API}/teachers/schemes/{scheme['id']}/records", json=outside, headers=teacher_headers)
        assert resp.status_code == 400

        detail = client.get(f"{API}/teachers/schemes/{scheme['id']}", headers=teacher_headers).json()
        assert (detail["topics_count"], detail["covered_topics"], detail["coverage_percentage"]) == (2, 1, 50.0)

        records = client.get(f"{API}/teachers/schemes/{scheme['id']}/records", headers=admin_headers).json()
        assert [r["work_covered"] for r in records] == ["Safety rules"]

    def test_rejected_scheme_can_be_revised(self, client, admin_headers, teacher_headers, scheme):
        topic = add_topic(client, teacher_headers, scheme["id"], 1, "Workshop safety").json()
        client.post(f"{API}/teachers/schemes/{scheme['id']}/submit", headers=teacher_headers)
        rejected = client.post(
            f"{API}/teachers/schemes/{scheme['id']}/review",
            json={"approve": False, "comment": "List the resources"},
            headers=admin_headers,
        ).json()
        assert (rejected["status"], rejected["review_comment"]) == ("REJECTED", "List the resources")

        resp = client.put(
            f"{API}/teachers/schemes/topics/{topic['id']}",
            json={"resources": "Charts, goggles"},
            headers=teacher_headers,
        )
        assert resp.json()["resources"] == "Charts, goggles"
        resubmitted = client.post(f"{API}/teachers/schemes/{scheme['id']}/submit", headers=teacher_headers).json()
        assert (resubmitted["status"], resubmitted["review_comment"]) == ("SUBMITTED", None)

    def test_visibility_and_filters(self, client, admin_headers, teacher_headers, scheme):
        assert [s["id"] for s in client.get(f"{API}/teachers/schemes", headers=teacher_headers).json()] == [scheme["id"]]
        assert client.get(
            f"{API}/teachers/schemes", params={"status": "approved"}, headers=admin_headers
        ).json() == []
        assert client.get(f"{API}/teachers/schemes/{scheme['id']}", headers=admin_headers).status_code == 200

    def test_delete_draft(self, client, teacher_headers, scheme):
        add_topic(client, teacher_headers, scheme["id"], 1, "Workshop safety")
        assert client.delete(f"{API}/teachers/schemes/{scheme['id']}", headers=teacher_headers).status_code == 204
        assert client.get(f"{API}/teachers/schemes/{scheme['id']}", headers=teacher_headers).status_code == 404

    def test_subject_in_a_scheme_cannot_be_deleted(self, client, admin_headers, academics, scheme):
        resp = client.delete(f"{API}/subjects/{academics['subject_id']}", headers=admin_headers)
        assert resp.status_code == 409
        assert "schemes of work" in resp.json()["detail"]
