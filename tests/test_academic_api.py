"""API tests for academic years/terms, classes/streams, subjects and grading systems."""

import pytest

from conftest import API

pytestmark = pytest.mark.api


class TestAcademicCalendar:
    def test_create_year_and_terms(self, client, admin_headers):
        year = client.post(
            f"{API}/academic/years",
            json={"year_name": "2031", "start_date": "2031-01-01", "end_date": "2031-12-31"},
            headers=admin_headers,
        )
        assert year.status_code == 201
        year_id = year.json()["id"]

        term = client.post(
            f"{API}/academic/terms",
            json={
                "academic_year_id": year_id,
                "term_name": "Term 1",
                "term_number": 1,
                "start_date": "2031-01-06",
                "end_date": "2031-04-04",
            },
            headers=admin_headers,
        )
        assert term.status_code == 201
        terms = client.get(f"{API}/academic/years/{year_id}/terms", headers=admin_headers).json()
        assert [t["term_name"] for t in terms] == ["Term 1"]

    def test_term_outside_year_rejected(self, client, admin_headers):
        year_id = client.get(f"{API}/academic/years/active", headers=admin_headers).json()["id"]
        resp = client.post(
            f"{API}/academic/terms",
            json={
                "academic_year_id": year_id,
                "term_name": "Term 4",
                "term_number": 4,
                "start_date": "1999-01-01",
                "end_date": "1999-03-01",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_duplicate_term_number_conflicts(self, client, admin_headers):
        active = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
        t1 = next(t for t in active["terms"] if t["term_number"] == 1)
        resp = client.post(
            f"{API}/academic/terms",
            json={
                "academic_year_id": active["id"],
                "term_name": "Another Term 1",
                "term_number": 1,
                "start_date": t1["start_date"],
                "end_date": t1["end_date"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_only_one_current_term(self, client, admin_headers):
        active = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
        term2 = next(t for t in active["terms"] if t["term_number"] == 2)

        resp = client.put(f"{API}/academic/terms/{term2['id']}", json={"is_current": True}, headers=admin_headers)
        assert resp.status_code == 200

        active = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
        assert active["current_term"]["id"] == term2["id"]
        assert [t["term_number"] for t in active["terms"] if t["is_current"]] == [2]

    def test_new_current_year_releases_old_term(self, client, admin_headers):
        old = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
        assert old["current_term"] is not None

        resp = client.post(
            f"{API}/academic/years",
            json={"year_name": "2099", "start_date": "2099-01-01", "end_date": "2099-12-31", "is_current": True},
            headers=admin_headers,
        )
        assert resp.status_code == 201

        active = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
        assert active["year_name"] == "2099"
        assert active["current_term"] is None

        years = client.get(f"{API}/academic/years-with-terms", headers=admin_headers).json()
        current_terms = [t for y in years for t in y["terms"] if t["is_current"]]
        assert current_terms == []

    def test_end_before_start_rejected(self, client, admin_headers):
        resp = client.post(
            f"{API}/academic/years",
            json={"year_name": "2032", "start_date": "2032-12-31", "end_date": "2032-01-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_curricula(self, client, admin_headers):
        assert [c["code"] for c in client.get(f"{API}/academic/curricula", headers=admin_headers).json()] == ["CBC"]
        resp = client.post(
            f"{API}/academic/curricula",
            json={"name": "8-4-4 System", "code": "8-4-4"},
            headers=admin_headers,
        )
        assert resp.status_code == 201

    def test_calendar_changes_need_admin(self, client, teacher_headers):
        resp = client.post(
            f"{API}/academic/years",
            json={"year_name": "2033", "start_date": "2033-01-01", "end_date": "2033-12-31"},
            headers=teacher_headers,
        )
        assert resp.status_code == 403


class TestClassesAndStreams:
    def test_class_lifecycle(self, client, admin_headers):
        klass = client.post(f"{API}/classes", json={"class_name": "Grade 8", "class_level": 8}, headers=admin_headers)
        assert klass.status_code == 201
        class_id = klass.json()["id"]

        for name in ("North", "South"):
            assert client.post(
                f"{API}/streams", json={"class_id": class_id, "name": name}, headers=admin_headers
            ).status_code == 201
        dup = client.post(f"{API}/streams", json={"class_id": class_id, "name": "North"}, headers=admin_headers)
        assert dup.status_code == 409

        streams = client.get(f"{API}/streams", params={"classId": class_id}, headers=admin_headers).json()
        assert [s["name"] for s in streams] == ["North", "South"]

        renamed = client.put(f"{API}/classes/{class_id}", json={"class_name": "Grade 8A"}, headers=admin_headers)
        assert renamed.json()["class_name"] == "Grade 8A"

        assert client.delete(f"{API}/classes/{class_id}", headers=admin_headers).status_code in (200, 204)
        assert client.get(f"{API}/classes/{class_id}/streams", headers=admin_headers).status_code == 404

    def test_duplicate_class_name_conflicts(self, client, admin_headers, academics):
        resp = client.post(f"{API}/classes", json={"class_name": "Grade 7", "class_level": 7}, headers=admin_headers)
        assert resp.status_code == 409

    def test_cannot_delete_class_with_students(self, client, admin_headers, academics, students):
        resp = client.delete(f"{API}/classes/{academics['class_id']}", headers=admin_headers)
        assert resp.status_code == 409
        resp = client.delete(f"{API}/streams/{academics['stream_id']}", headers=admin_headers)
        assert resp.status_code == 409

    def test_schools_are_isolated(self, client, admin_headers, academics):
        from conftest import bearer, setup_payload

        other = client.post(
            f"{API}/setup",
            json=setup_payload(slug="hillside-school", code="HSS001", email="head@hillside.ac.ke"),
        ).json()
        other_headers = bearer(other["access_token"])

        assert client.get(f"{API}/classes", headers=other_headers).json() == []
        resp = client.get(f"{API}/classes/{academics['class_id']}/streams", headers=other_headers)
        assert resp.status_code == 404


class TestSubjects:
    def test_subject_crud(self, client, admin_headers):
        created = client.post(
            f"{API}/subjects",
            json={"code": "hsc", "name": "Home Science", "category": "Optional"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        subject = created.json()
        assert subject["code"] == "HSC"

        optional = client.get(f"{API}/subjects/category/Optional", headers=admin_headers).json()
        assert [s["code"] for s in optional] == ["HSC"]

        dup = client.post(f"{API}/subjects", json={"code": "HSC", "name": "Again"}, headers=admin_headers)
        assert dup.status_code == 409

        updated = client.put(f"{API}/subjects/{subject['id']}", json={"name": "Home Economics"}, headers=admin_headers)
        assert updated.json()["name"] == "Home Economics"
        assert client.delete(f"{API}/subjects/{subject['id']}", headers=admin_headers).status_code in (200, 204)

    def test_strands_and_sub_strands(self, client, admin_headers, academics):
        strand = client.post(
            f"{API}/cbc/strands",
            json={"subject_id": academics["subject_id"], "code": "1.0", "name": "Foundations"},
            headers=admin_headers,
        )
        assert strand.status_code == 201
        sub = client.post(
            f"{API}/cbc/strands/{strand.json()['id']}/sub-strands",
            json={"code": "1.1", "name": "Safety in the workshop"},
            headers=admin_headers,
        )
        assert sub.status_code == 201

        strands = client.get(
            f"{API}/cbc/strands", params={"subjectId": academics["subject_id"]}, headers=admin_headers
        ).json()
        assert strands[0]["sub_strands"][0]["name"] == "Safety in the workshop"


class TestGradingSystems:
    def test_default_subject_scale(self, client, admin_headers):
        system = client.get(f"{API}/grading/default", params={"type": "subject"}, headers=admin_headers).json()
        assert system["name"] == "Standard 12-Point Scale"
        assert len(system["scales"]) == 12

    def test_create_and_switch_default(self, client, admin_headers):
        created = client.post(
            f"{API}/grading/systems",
            json={
                "name": "Pass/Fail",
                "type": "subject",
                "scales": [
                    {"grade": "P", "min_score": 50, "max_score": 100, "points": 1},
                    {"grade": "F", "min_score": 0, "max_score": 49, "points": 0},
                ],
            },
            headers=admin_headers,
        )
        assert created.status_code == 201
        system_id = created.json()["id"]

        resp = client.post(f"{API}/grading/systems/{system_id}/default", headers=admin_headers)
        assert resp.status_code == 200

        defaults = [
            s for s in client.get(f"{API}/grading/systems", params={"type": "subject"}, headers=admin_headers).json()
            if s["is_default"]
        ]
        assert [s["id"] for s in defaults] == [system_id]

    def test_overlapping_scales_rejected(self, client, admin_headers):
        resp = client.post(
            f"{API}/grading/systems",
            json={
                "name": "Broken",
                "type": "subject",
                "scales": [
                    {"grade": "A", "min_score": 60, "max_score": 100},
                    {"grade": "B", "min_score": 40, "max_score": 65},
                ],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_edit_scale_and_remark(self, client, admin_headers):
        system = client.get(f"{API}/grading/default", params={"type": "cbc"}, headers=admin_headers).json()
        ee = next(s for s in system["scales"] if s["grade"] == "EE")

        resp = client.patch(
            f"{API}/grading/scales/remarks",
            json={"scale_id": ee["id"], "description": "Consistently exceeds"},
            headers=admin_headers,
        )
        assert resp.json()["remarks"] == "Consistently exceeds"

        resp = client.put(f"{API}/grading/scale/{ee['id']}", json={"min_score": 3.0}, headers=admin_headers)
        assert resp.status_code == 400  # would overlap ME (2.50-3.49)

        resp = client.put(f"{API}/grading/scale/{ee['id']}", json={"min_score": 3.6}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["min_score"] == 3.6
