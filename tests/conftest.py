"""Shared fixtures.

Every test gets a fresh in-memory SQLite database and a TestClient wired to
it. The ``school`` fixture onboards a CBC school through ``POST /setup`` so
tests start from the same bootstrapped state a real school does.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import school_api.models  # noqa: F401
from school_api.core.db import get_db
from school_api.main import app
from school_api.models.base import Base

API = "/api/v1"
PASSWORD = "Passw0rd!2024"


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def setup_payload(slug: str = "greenfield-academy", code: str = "GFA001", email: str = "head@greenfield.ac.ke", **overrides) -> dict:
    payload = {
        "school_code": code,
        "name": "Greenfield Academy",
        "email": f"info@{slug}.ac.ke",
        "slug": slug,
        "curriculum_type": "CBC",
        "admin": {
            "email": email,
            "password": PASSWORD,
            "first_name": "Grace",
            "last_name": "Wanjiku",
        },
    }
    payload.update(overrides)
    return payload


def login(client: TestClient, email: str, slug: str = "greenfield-academy", password: str = PASSWORD) -> dict:
    resp = client.post(f"{API}/auth/login", json={"email": email, "password": password, "slug": slug})
    assert resp.status_code == 200, resp.text
    return bearer(resp.json()["access_token"])


# =============================================================================
# Database / client
# =============================================================================


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# =============================================================================
# School and users
# =============================================================================


@pytest.fixture
def school(client):
    resp = client.post(f"{API}/setup", json=setup_payload())
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def admin_headers(school):
    return bearer(school["access_token"])


@pytest.fixture
def academics(client, admin_headers):
    """Current term, one class with a stream, and a non-seeded subject."""
    active = client.get(f"{API}/academic/years/active", headers=admin_headers).json()
    klass = client.post(
        f"{API}/classes", json={"class_name": "Grade 7", "class_level": 7}, headers=admin_headers
    ).json()
    stream = client.post(
        f"{API}/streams", json={"class_id": klass["id"], "name": "East"}, headers=admin_headers
    ).json()
    subject = client.post(
        f"{API}/subjects",
        json={"code": "PRE", "name": "Pre-Technical Studies", "category": "Core"},
        headers=admin_headers,
    ).json()
    return {
        "year_id": active["id"],
        "term_id": active["current_term"]["id"],
        "class_id": klass["id"],
        "stream_id": stream["id"],
        "subject_id": subject["id"],
    }


@pytest.fixture
def teacher(client, admin_headers, academics):
    """A teacher assigned to the academics subject/stream for the current term."""
    created = client.post(
        f"{API}/auth/teachers",
        json={
            "email": "otieno@greenfield.ac.ke",
            "password": PASSWORD,
            "first_name": "Brian",
            "last_name": "Otieno",
            "tsc_number": "TSC-558812",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text
    resp = client.post(
        f"{API}/teachers/assign-subject",
        json={
            "teacher_id": created.json()["id"],
            "stream_id": academics["stream_id"],
            "subject_ids": [academics["subject_id"]],
            "term_id": academics["term_id"],
        },
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    return {**created.json(), "headers": login(client, "otieno@greenfield.ac.ke")}


@pytest.fixture
def teacher_headers(teacher):
    return teacher["headers"]


def _create_user(client, admin_headers, email: str, role: str, first_name: str, last_name: str) -> dict:
    resp = client.post(
        f"{API}/auth/users",
        json={
            "email": email,
            "password": PASSWORD,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def bursar_headers(client, admin_headers):
    _create_user(client, admin_headers, "bursar@greenfield.ac.ke", "BURSAR", "Peter", "Kamau")
    return login(client, "bursar@greenfield.ac.ke")


@pytest.fixture
def parent(client, admin_headers):
    user = _create_user(client, admin_headers, "achieng.parent@gmail.co.ke", "PARENT", "Mary", "Achieng")
    return {**user, "headers": login(client, "achieng.parent@gmail.co.ke")}


@pytest.fixture
def students(client, admin_headers, academics):
    """Three active learners in the academics stream."""
    out = []
    for adm, first, last in [("ADM001", "Amani", "Mwangi"), ("ADM002", "Baraka", "Njoroge"), ("ADM003", "Chebet", "Kiprop")]:
        resp = client.post(
            f"{API}/students",
            json={
                "admission_number": adm,
                "first_name": first,
                "last_name": last,
                "stream_id": academics["stream_id"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201, resp.text
        out.append(resp.json())
    return out


FEE_ITEMS = [
    {"itemName": "Tuition", "amount": 15000, "category": "TUITION"},
    {"itemName": "Activity Fee", "amount": 2000, "category": "COCURRICULAR"},
    {"itemName": "Bus", "amount": 5000, "isOptional": True, "category": "OTHER"},
]


@pytest.fixture
def structure(client, bursar_headers, academics):
    """Unpublished Grade 7 fee structure: 17,000 billable plus an optional 5,000 bus fee."""
    resp = client.post(
        f"{API}/finance/fee-structures",
        json={
            "name": "Grade 7 Term 1",
            "classId": academics["class_id"],
            "termId": academics["term_id"],
            "items": FEE_ITEMS,
        },
        headers=bursar_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def invoices(client, bursar_headers, academics, students, structure):
    """Publish the structure and bill every learner for the term."""
    client.post(f"{API}/finance/fee-structures/{structure['id']}/publish", headers=bursar_headers)
    resp = client.post(
        f"{API}/finance/invoices/generate", json={"termId": academics["term_id"]}, headers=bursar_headers
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["invoices"]


def pay(client, headers, student_id, amount, method="MPESA", ref=None, **extra):
    body = {"studentId": student_id, "amount": amount, "method": method, **extra}
    if ref:
        body["transactionRef"] = ref
    return client.post(f"{API}/finance/payments", json=body, headers=headers)
