import os
import tempfile
import uuid
import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Ensure tests always use SQLite to avoid requiring Postgres drivers
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_gighire.db")

from gighire import crud
from gighire.applications import ApplicationService
from gighire.database import Base, get_db
from gighire.dependencies import get_notifier
from gighire.identity import Actor
from gighire.main import app
from gighire.models import Job
from gighire.notifications import NotificationDispatcher


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, event_type, payload):
        self.sent.append((event_type, payload))

    @property
    def event_types(self):
        return [event_type for event_type, _ in self.sent]


class FailingNotifier:
    def send(self, event_type, payload):
        raise RuntimeError("push gateway unavailable")


@pytest.fixture(scope="session")
def test_db_url():
    # Use a temporary SQLite file to persist across tests within a session
    db_fd, db_path = tempfile.mkstemp(prefix="test_gighire_", suffix=".db")
    os.close(db_fd)
    url = f"sqlite:///{db_path}"
    yield url
    try:
        os.remove(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture()
def db_session(test_db_url):
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    # Create all tables
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
    # Ensure file handles are released on Windows
    engine.dispose()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def client(db_session, notifier):
    # Override the dependency to use the test session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def service(db_session, notifier):
    return ApplicationService(db_session, dispatcher=NotificationDispatcher(db_session, notifier))


# --- domain factories ---

@pytest.fixture()
def make_seeker(db_session):
    def _make(full_name="Sam Seeker"):
        user, seeker = crud.register_account(
            db_session, f"seeker-{uuid.uuid4().hex[:8]}@example.com", "password123", "seeker", full_name=full_name
        )
        return Actor.from_user(user), seeker
    return _make


@pytest.fixture()
def make_company(db_session):
    def _make(company_name="Acme Cafe"):
        user, company = crud.register_account(
            db_session, f"company-{uuid.uuid4().hex[:8]}@example.com", "password123", "company", company_name=company_name
        )
        return Actor.from_user(user), company
    return _make


@pytest.fixture()
def make_job(db_session):
    def _make(company, job_status="published", hiring_type="Instant Hire", **fields):
        job = Job(
            company_id=company.id,
            user_id=company.user_id,
            role_name=fields.pop("role_name", "Barista"),
            company_name=company.company_name,
            job_summary="Morning shifts",
            brand_location_id="loc-1",
            hiring_type=hiring_type,
            pay_per_hour=5.5,
            hours_per_day=6,
            start_date=date(2030, 1, 1),
            payment_terms="weekly",
            work_type="hourly",
            job_status=job_status,
            **fields,
        )
        db_session.add(job)
        db_session.commit()
        return job
    return _make


# --- HTTP helpers ---

@pytest.fixture()
def auth_headers(client):
    def _register(user_type="seeker", email=None, password="password123", **extra):
        email = email or f"{user_type}-{uuid.uuid4().hex[:8]}@example.com"
        body = {"email": email, "password": password, "userType": user_type, **extra}
        if user_type == "company":
            body.setdefault("companyName", "Acme Cafe")
        r = client.post("/api/register", json=body)
        assert r.status_code == 201, r.text
        token = client.post(
            "/api/login",
            data={"username": email, "password": password},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        ).json()["access_token"]
        return {"Authorization": f"Bearer {token}"}, r.json()["profileId"]
    return _register


@pytest.fixture()
def failing_notifier():
    return FailingNotifier()
