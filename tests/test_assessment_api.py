"""API tests for assessments, score submission, CBC results and lesson plans."""

import pytest

from conftest import API

pytestmark = pytest.mark.api


@pytest.fixture
def exam(client, teacher_headers, academics):
    resp = client.post(
        f"{API}/assessments",
        json={
            "title": "Opener Exam",
            "type": "exam",
            "maxScore": 50,
            "subjectId": academics["subject_id"],
            "termId": academics["term_id"],
            "streamId": academics["stream_id"],
        },
        headers=teacher_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def strand(client, admin_headers, academics):
    strand = client.post(
        f"{API}/cbc/strands",
        json={"subject_id": academics["subject_id"], "code": "2.0", "name": "Materials"},
        headers=admin_headers,
    ).json()
    sub = client.post(
        f"{API}/cbc/strands/{strand['id']}/sub-strands",
        json={"code": "2.1", "name": "Wood"},
        headers=admin_headers,
    ).json()
    return {"strand_id": strand["id"], "sub_strand_id": sub["id"]}


class TestAssessments:
    def test_unassigned_teacher_cannot_create(self, client, admin_headers, teacher_headers, academics):
        other = client.post(
            f"{API}/subjects", json={"code": "VIS", "name": "Visual Arts"}, headers=admin_headers
        ).json()
        resp = client.post(
            f"{API}/assessments",
            json={
                "title": "CAT 1",
                "subjectId": other["id"],
                "termId": academics["term_id"],
                "streamId": academics["stream_id"],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 403

    def test_list_filters(self, client, teacher_headers, academics, exam):
        rows = client.get(
            f"{API}/assessments", params={"subjectId": academics["subject_id"]}, headers=teacher_headers
        ).json()
        assert [a["id"] for a in rows] == [exam["id"]]
        assert client.get(f"{API}/assessments", params={"termId": "nope"}, headers=teacher_headers).json() == []


class TestScoreSubmission:
    def test_scores_are_graded_from_percentage(self, client, teacher_headers, exam, students):
        resp = client.post(
            f"{API}/scores",
            json={
                "assessmentId": exam["id"],
                "scores": [
                    {"studentId": students[0]["id"], "score": 45, "teacherNotes": "Excellent work"},
                    {"studentId": students[1]["id"], "score": 31},
                    {"studentId": students[2]["id"], "score": 10},
                ],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 200
        body = resp.json()
        assert (body["created"], body["updated"], body["failed"]) == (3, 0, 0)

        by_student = {r["student_id"]: r for r in body["results"]}
        assert by_student[students[0]["id"]]["percentage"] == 90.0
        assert by_student[students[0]["id"]]["grade"] == "A"
        assert by_student[students[1]["id"]]["grade"] == "B-"  # 62%
        assert by_student[students[2]["id"]]["grade"] == "E"  # 20%

    def test_resubmission_updates(self, client, teacher_headers, exam, students):
        payload = {"assessmentId": exam["id"], "scores": [{"studentId": students[0]["id"], "score": 20}]}
        client.post(f"{API}/scores", json=payload, headers=teacher_headers)
        payload["scores"][0]["score"] = 40
        body = client.post(f"{API}/scores", json=payload, headers=teacher_headers).json()
        assert (body["created"], body["updated"]) == (0, 1)

        rows = client.get(f"{API}/scores", params={"assessmentId": exam["id"]}, headers=teacher_headers).json()
        assert [(r["score"], r["grade"]) for r in rows] == [(40.0, "A")]

    def test_bad_entries_reported_not_fatal(self, client, admin_headers, teacher_headers, exam, students):
        outsider = client.post(
            f"{API}/students",
            json={"admission_number": "ADM100", "first_name": "Dennis", "last_name": "Omondi"},
            headers=admin_headers,
        ).json()
        body = client.post(
            f"{API}/scores",
            json={
                "assessmentId": exam["id"],
                "scores": [
                    {"studentId": students[0]["id"], "score": 51},
                    {"studentId": outsider["id"], "score": 30},
                    {"studentId": students[1]["id"], "score": 25},
                ],
            },
            headers=teacher_headers,
        ).json()
        assert (body["created"], body["failed"]) == (1, 2)
        errors = {e["student_id"]: e["error"] for e in body["errors"]}
        assert "between 0 and 50" in errors[students[0]["id"]]
        assert "stream" in errors[outsider["id"]]

    def test_mismatched_subject_rejected(self, client, teacher_headers, exam, students):
        resp = client.post(
            f"{API}/scores",
            json={
                "assessmentId": exam["id"],
                "subjectId": "another-subject",
                "scores": [{"studentId": students[0]["id"], "score": 10}],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 400

    def test_submission_is_audited(self, client, admin_headers, teacher_headers, exam, students):
        client.post(
            f"{API}/scores",
            json={"assessmentId": exam["id"], "scores": [{"studentId": students[0]["id"], "score": 10}]},
            headers=teacher_headers,
        )
        logs = client.get(f"{API}/audit-logs", params={"search": "SCORES_SUBMITTED"}, headers=admin_headers).json()
        assert logs["total"] == 1
        assert logs["items"][0]["role"] == "TEACHER"

    def test_student_results_mean_grade(self, client, admin_headers, teacher_headers, exam, students, academics):
        client.post(
            f"{API}/scores",
            json={"assessmentId": exam["id"], "scores": [{"studentId": students[0]["id"], "score": 35}]},
            headers=teacher_headers,
        )
        results = client.get(
            f"{API}/results/student/{students[0]['id']}",
            params={"termId": academics["term_id"]},
            headers=admin_headers,
        ).json()
        assert results["subjects"][0]["average"] == 70.0
        assert results["subjects"][0]["grade"] == "B+"
        assert results["mean_score"] == 70.0
        assert results["mean_grade"] == "B+"
        assert results["mean_points"] == 10

    def test_subject_with_scores_cannot_be_deleted(self, client, admin_headers, teacher_headers, exam, students):
        client.post(
            f"{API}/scores",
            json={"assessmentId": exam["id"], "scores": [{"studentId": students[0]["id"], "score": 40}]},
            headers=teacher_headers,
        )
        resp = client.delete(f"{API}/subjects/{exam['subject_id']}", headers=admin_headers)
        assert resp.status_code == 409
        assert "assessments" in resp.json()["detail"]

        results = client.get(f"{API}/results/student/{students[0]['id']}", headers=admin_headers).json()
        assert [s["grade"] for s in results["subjects"]] == ["A"]


class TestCbcResults:
    @pytest.fixture
    def cbc_assessment(self, client, teacher_headers, academics, strand):
        resp = client.post(
            f"{API}/cbc/assessments",
            json={
                "title": "Project: Tool Rack",
                "subjectId": academics["subject_id"],
                "termId": academics["term_id"],
                "streamId": academics["stream_id"],
                "strandId": strand["strand_id"],
                "subStrandId": strand["sub_strand_id"],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_levels_and_scores(self, client, teacher_headers, cbc_assessment, students):
        body = client.post(
            f"{API}/cbc/results",
            json={
                "cbcAssessmentId": cbc_assessment["id"],
                "results": [
                    {"studentId": students[0]["id"], "score": 3.8, "comment": "Neat joints"},
                    {"studentId": students[1]["id"], "level": "ae"},
                    {"studentId": students[2]["id"], "level": "EE", "score": 2.0},
                ],
            },
            headers=teacher_headers,
        ).json()
        assert (body["created"], body["failed"]) == (2, 1)

        rows = client.get(
            f"{API}/cbc/results", params={"cbcAssessmentId": cbc_assessment["id"]}, headers=teacher_headers
        ).json()
        assert {(r["student_name"], r["level"], r["score"]) for r in rows} == {
            ("Amani Mwangi", "EE", 3.8),
            ("Baraka Njoroge", "AE", 2.0),
        }

    def test_inactive_student_rejected(self, client, admin_headers, teacher_headers, cbc_assessment, students):
        client.put(f"{API}/students/{students[2]['id']}", json={"status": "INACTIVE"}, headers=admin_headers)
        body = client.post(
            f"{API}/cbc/results",
            json={
                "cbcAssessmentId": cbc_assessment["id"],
                "results": [
                    {"studentId": students[0]["id"], "level": "ME"},
                    {"studentId": students[2]["id"], "level": "EE"},
                ],
            },
            headers=teacher_headers,
        ).json()
        assert (body["created"], body["failed"]) == (1, 1)
        assert body["errors"][0]["student_id"] == students[2]["id"]
        assert "not active" in body["errors"][0]["error"]

    def test_sub_strand_must_match_strand(self, client, admin_headers, teacher_headers, academics, strand):
        other = client.post(
            f"{API}/cbc/strands",
            json={"subject_id": academics["subject_id"], "code": "3.0", "name": "Drawing"},
            headers=admin_headers,
        ).json()
        resp = client.post(
            f"{API}/cbc/assessments",
            json={
                "title": "Mismatch",
                "subjectId": academics["subject_id"],
                "termId": academics["term_id"],
                "streamId": academics["stream_id"],
                "strandId": other["id"],
                "subStrandId": strand["sub_strand_id"],
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 400


class TestLessonPlans:
    @pytest.fixture
    def plan(self, client, teacher_headers, academics):
        resp = client.post(
            f"{API}/lessons",
            json={
                "subjectId": academics["subject_id"],
                "streamId": academics["stream_id"],
                "termId": academics["term_id"],
                "title": "Measuring tools",
                "objectives": "Identify and use a try square",
                "lessonDate": "2026-02-10",
            },
            headers=teacher_headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    def test_draft_submit_approve(self, client, admin_headers, teacher_headers, plan):
        assert plan["status"] == "DRAFT"

        submitted = client.post(f"{API}/lessons/{plan['id']}/submit", headers=teacher_headers).json()
        assert submitted["status"] == "SUBMITTED"

        # submitted plans are locked
        resp = client.put(f"{API}/lessons/{plan['id']}", json={"title": "Changed"}, headers=teacher_headers)
        assert resp.status_code == 409

        approved = client.post(
            f"{API}/lessons/{plan['id']}/review", json={"approve": True, "comment": "Good"}, headers=admin_headers
        ).json()
        assert approved["status"] == "APPROVED"

        resp = client.post(f"{API}/lessons/{plan['id']}/review", json={"approve": False}, headers=admin_headers)
        assert resp.status_code == 409

    def test_rejected_plan_can_be_revised(self, client, admin_headers, teacher_headers, plan):
        client.post(f"{API}/lessons/{plan['id']}/submit", headers=teacher_headers)
        rejected = client.post(
            f"{API}/lessons/{plan['id']}/review",
            json={"approve": False, "comment": "Add an assessment activity"},
            headers=admin_headers,
        ).json()
        assert rejected["status"] == "REJECTED"
        assert rejected["review_comment"] == "Add an assessment activity"

        revised = client.put(
            f"{API}/lessons/{plan['id']}", json={"notes": "Quiz at the end"}, headers=teacher_headers
        )
        assert revised.status_code == 200
        resubmitted = client.post(f"{API}/lessons/{plan['id']}/submit", headers=teacher_headers).json()
        assert resubmitted["status"] == "SUBMITTED"
        assert resubmitted["review_comment"] is None

    def test_draft_cannot_be_reviewed(self, client, admin_headers, plan):
        resp = client.post(f"{API}/lessons/{plan['id']}/review", json={"approve": True}, headers=admin_headers)
        assert resp.status_code == 409

    def test_visibility(self, client, admin_headers, teacher_headers, plan):
        assert [p["id"] for p in client.get(f"{API}/lessons", headers=teacher_headers).json()] == [plan["id"]]
        assert client.get(f"{API}/lessons", params={"status": "approved"}, headers=admin_headers).json() == []
        assert client.get(f"{API}/lessons/{plan['id']}", headers=admin_headers).status_code == 200

    def test_delete_draft(self, client, teacher_headers, plan):
        assert client.delete(f"{API}/lessons/{plan['id']}", headers=teacher_headers).status_code == 204
        assert client.get(f"{API}/lessons/{plan['id']}", headers=teacher_headers).status_code == 404

    def test_admin_cannot_author(self, client, admin_headers, academics):
        resp = client.post(
            f"{API}/lessons",
            json={
                "subjectId": academics["subject_id"],
                "streamId": academics["stream_id"],
                "title": "x",
                "objectives": "y",
                "lessonDate": "2026-02-10",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 403
