import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("FRONTEND_URL", "https://quiz.example.com")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "123456789")
os.environ.setdefault("CLOUDINARY_API_SECRET", "cloud-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.core.rate_limit import LIMITERS  # noqa: E402
from app.models import registry  # noqa: E402,F401
from app.models.user_db.user_db_crud import create_user  # noqa: E402
from app.services import email as email_service  # noqa: E402
from main import app  # noqa: E402

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def other_db():
    """A second, independent session, as a concurrent request would hold."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    for limiter in LIMITERS:
        limiter.reset()
    yield
    for limiter in LIMITERS:
        limiter.reset()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Captures outgoing email instead of talking to SMTP."""
    sent = []

    async def fake_send_email(to_email, subject, body, html=None):
        sent.append({"to": to_email, "subject": subject, "body": body, "html": html})

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def make_user(db):
    def _make_user(email="owner@example.com", password="password123", full_name="Quiz Owner", role="user"):
        user = create_user(db, email, password, full_name, role=role)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", full_name="Admin", role="admin")


@pytest.fixture
def stranger(make_user):
    return make_user(email="stranger@example.com", full_name="Someone Else")

