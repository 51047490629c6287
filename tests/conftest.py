import json
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt as jose_jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from collegeplan import models
from collegeplan.config import ReminderSettings, get_reminder_settings
from collegeplan.database import Base, get_db
from collegeplan.domain.reminders.router import get_email_sender
from collegeplan.email_service import ResendEmailSender
from collegeplan.main import app

FIXED_NOW = datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc)
JWT_SECRET = "test-jwt-secret"
SERVICE_KEY = "test-service-role-key"

PROVIDER_REJECTION = '{"statusCode":422,"name":"validation_error","message":"Invalid `to` field."}'


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def settings():
    return ReminderSettings(
        database_url="sqlite://",
        service_role_key=SERVICE_KEY,
        jwt_secret=JWT_SECRET,
        resend_api_key="re_test_key",
        resend_api_url="https://resend.test",
        email_domain="example.org",
        from_name="DreamPlane",
    )


class FakeResendAPI:
    """Stands in for the Resend REST API behind an httpx.MockTransport"""

    def __init__(self, reject=(), status_code=422, body=PROVIDER_REJECTION):
        self.reject = set(reject)
        self.status_code = status_code
        self.body = body
        self.sent = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.sent.append(payload)
        if payload["to"][0] in self.reject:
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(200, json={"id": f"msg-{len(self.sent)}"})

    @property
    def recipients(self):
        return [payload["to"][0] for payload in self.sent]

    def sender(self, settings: ReminderSettings) -> ResendEmailSender:
        return ResendEmailSender.from_settings(settings, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def resend_api():
    return FakeResendAPI()


def make_profile(db, full_name, email, user_type="student"):
    profile = models.Profile(full_name=full_name, email=email, user_type=user_type)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def make_todo(db, owner, title, due_date, completed=False):
    todo = models.Todo(title=title, due_date=due_date, completed=completed, author_id=owner.id)
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


def make_reminder_email(db, student, email, name=None):
    reminder_email = models.StudentReminderEmail(student_id=student.id, email=email, name=name)
    db.add(reminder_email)
    db.commit()
    return reminder_email


def assign_counselor(db, counselor, student):
    db.add(models.CounselorStudentRelationship(counselor_id=counselor.id, student_id=student.id))
    db.commit()


def days_from_now(days: int) -> date:
    return (FIXED_NOW + timedelta(days=days)).date()


def make_token(profile, secret=JWT_SECRET):
    claims = {
        "sub": profile.id,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jose_jwt.encode(claims, secret, algorithm="HS256")


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session, settings, resend_api):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reminder_settings] = lambda: settings
    app.dependency_overrides[get_email_sender] = lambda: resend_api.sender(settings)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def counselor(db_session):
    return make_profile(db_session, "Carla Counselor", "carla@example.org", user_type="counselor")


@pytest.fixture
def admin(db_session):
    return make_profile(db_session, "Ada Admin", "ada@example.org", user_type="admin")
