from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import intake_backend.models  # noqa: F401  (registers tables)
from intake_backend.config import Settings
from intake_backend.db import Base, get_db
from intake_backend.main import create_app
from intake_backend.models import User
from intake_backend.services.auth_service import AuthUser, hash_password, sign_access_token
from intake_backend.services.lead_store import SqlAlchemyLeadStore

FILE_SECRET = "test-file-upload-secret"
JWT_SECRET = "test-jwt-secret-at-least-32-characters!"
PNG_BYTES = bytes.fromhex("89504e470d0a1a0a") + b"\x00" * 24


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        FILE_UPLOAD_SECRET=FILE_SECRET,
        FILE_UPLOAD_BASE_DIR=tmp_path / "uploads",
        PUBLIC_BASE_URL="http://testserver",
        JWT_SECRET=JWT_SECRET,
        DATABASE_URL="sqlite://",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db) -> SqlAlchemyLeadStore:
    return SqlAlchemyLeadStore(db)


@pytest.fixture
def client(settings, session_factory) -> Iterator[TestClient]:
    app = create_app(settings, init_database=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


def _make_user(db: Session, *, name: str, email: str, role: str, password: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password(password, rounds=4), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db) -> User:
    return _make_user(db, name="Admin User", email="admin@example.com", role="admin", password="admin-pass")


@pytest.fixture
def regular_user(db) -> User:
    return _make_user(db, name="Regular User", email="user@example.com", role="user", password="user-pass")


def bearer_for(user: User) -> Dict[str, str]:
    token = sign_access_token(
        AuthUser(id=user.id, role=user.role, email=user.email, name=user.name),
        secret=JWT_SECRET,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user) -> Dict[str, str]:
    return bearer_for(admin_user)


@pytest.fixture
def user_headers(regular_user) -> Dict[str, str]:
    return bearer_for(regular_user)


def intake_payload(**overrides) -> Dict:
    deadline = datetime.now(timezone.utc) + timedelta(days=20)
    payload = {
        "goal": "E-commerce website",
        "deadline": deadline.isoformat(),
        "isDeadlineFlexible": False,
        "features": ["Landing page", "Shopping cart", "Payment checkout", "User login"],
        "otherRequirements": "Needs to sync inventory",
        "budgetMin": 10000,
        "budgetMax": 15000,
        "budgetTier": "Professional",
        "contactName": "Sarah Johnson",
        "contactEmail": "sarah@artisanjewelry.com",
        "preferredContact": "email",
        "additionalNotes": "Launch before the holidays",
        "addOns": [],
        "attachments": ["1700000000000_0123456789abcdef.png"],
        "source": "website",
    }
    payload.update(overrides)
    return payload
