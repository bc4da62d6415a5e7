"""
Pytest fixtures for testing
"""
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.pool import StaticPool

from workhub.config import Settings
from workhub.infrastructure.db.session import Base
from workhub.infrastructure.db.models import AuthUser, Profile, Report, UserIdentity
from workhub.infrastructure.identity import hash_password

TEST_PASSWORD = "secret123"


def _create_schema(engine) -> None:
    # SQLite doesn't support JSONB, remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that need two independent connections."""
    engine = create_engine(f"sqlite:///{tmp_path / 'workhub.db'}")
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        APP_URL="https://workhub.example.com/",
        LINE_LOGIN_CHANNEL_ID="1650000000",
        LINE_LOGIN_CHANNEL_SECRET="login-secret",
        LINE_CHANNEL_ACCESS_TOKEN="bot-token",
        LINE_CHANNEL_SECRET="channel-secret",
        GOOGLE_CLIENT_ID="google-client",
        GOOGLE_CLIENT_SECRET="google-secret",
        CRON_SECRET="cron-secret",
        ADMIN_SIGNUP_SECRET="admin-code",
    )


@pytest.fixture
def make_user(db_session):
    """Factory: auth user + profile, returns the profile."""
    def _make(
        name: str,
        role: str = "member",
        email: str | None = None,
        is_active: bool = True,
        line_user_id: str | None = None,
    ) -> Profile:
        email = email or f"{name.lower()}@example.com"
        auth_user = AuthUser(email=email, password_hash=hash_password(TEST_PASSWORD))
        db_session.add(auth_user)
        db_session.flush()
        profile = Profile(
            id=auth_user.id,
            email=email,
            name=name,
            role=role,
            is_active=is_active,
            line_user_id=line_user_id,
            line_linked_at=datetime.now(timezone.utc) if line_user_id else None,
        )
        db_session.add(profile)
        if line_user_id:
            db_session.add(UserIdentity(provider="line", provider_uid=line_user_id, user_id=auth_user.id))
        db_session.commit()
        return profile
    return _make


@pytest.fixture
def make_report(db_session):
    """Factory: stored report with raw task dicts."""
    def _make(user_id: str, report_date: date, yesterday=None, today=None, notes=None) -> Report:
        report = Report(
            user_id=user_id,
            report_date=report_date,
            yesterday_tasks=yesterday or [],
            today_tasks=today or [],
            notes=notes,
            submitted_at=datetime.now(timezone.utc),
        )
        db_session.add(report)
        db_session.commit()
        return report
    return _make


@pytest.fixture
def app(db_session, settings):
    from workhub.api.deps import get_db, get_settings
    from workhub.main import create_app

    application = create_app()

    def _db():
        yield db_session

    application.dependency_overrides[get_db] = _db
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(client):
    """Log a user in through the password endpoint."""
    def _login(profile: Profile):
        resp = client.post("/auth/login", data={"email": profile.email, "password": TEST_PASSWORD})
        assert resp.status_code == 200
        return client
    return _login
