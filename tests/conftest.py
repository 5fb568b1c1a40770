import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DB_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["OTP_HASH_ROUNDS"] = "4"
os.environ["SMTP_SERVER"] = ""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.db.base import Base
from core.db.dependencies import get_db
from api.v1.auth.routes import get_mail_service
from api.v1.auth.users import UserDirectory
from main import app
from models.user import UserRole, ApplicationStatus


class FakeClock:
    def __init__(self, start=datetime(2026, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class FakeMailer:
    """Records OTP emails instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.raise_error = False

    def send_otp_email(self, email, user_name, otp):
        if self.raise_error:
            raise RuntimeError("mail provider down")
        if self.fail:
            return False
        self.sent.append({"email": email, "user_name": user_name, "otp": otp})
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def approved_user(db):
    return UserDirectory(db).create(
        name="Ada Lovelace",
        email="ada@example.com",
        role=UserRole.user,
        application_status=ApplicationStatus.approved,
    )


@pytest.fixture
def pending_user(db):
    return UserDirectory(db).create(name="Pat Pending", email="pat@example.com")


@pytest.fixture
def client(session_factory, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_service] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()
