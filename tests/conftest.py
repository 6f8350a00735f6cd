import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from devforum.core.security import create_access_token, hash_password
from devforum.crud import post as post_crud
from devforum.db.base import Base
from devforum.db.models.user import User
from devforum.db.session import get_db

PASSWORD = "pass123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(name, role="user"):
        user = User(
            name=name,
            email=f"{name.lower()}@example.com",
            password=PASSWORD_HASH,
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_post(db_session):
    def _make_post(author, title="Segfault in loop", content="Check your bounds.", tags=None):
        return post_crud.create_post(
            db_session,
            author_id=author.id,
            title=title,
            content=content,
            tags=tags or ["c"],
        )

    return _make_post


@pytest.fixture
def auth_header():
    def _auth_header(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_header
