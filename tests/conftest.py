"""
Shared pytest fixtures for the publisher platform test suite.

The service is pointed at an in-memory SQLite database before it is imported;
the schema is recreated for every test.
"""

import itertools
import os
from datetime import timedelta

os.environ["PUBLISHER_DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")

import pytest
from fastapi.testclient import TestClient

from publisher_service.app import app
from publisher_service.auth import AuthContext, create_access_token
from publisher_service.db import Base, SessionLocal, engine
from publisher_service.models import Like, Post, Role, User, utcnow


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role=Role.USER, name=None):
        n = next(counter)
        user = User(
            name=name or f"user{n}",
            email=f"user{n}@example.com",
            role=role,
            password_hash="not-a-real-hash",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def publisher(make_user):
    return make_user(Role.PUBLISHER, name="Alice Publisher")


@pytest.fixture
def reader(make_user):
    return make_user(Role.USER, name="Bob Reader")


@pytest.fixture
def make_post(db):
    counter = itertools.count(1)

    def _make(publisher, title=None, created_at=None, content="Body text"):
        n = next(counter)
        post = Post(
            title=title or f"Post {n}",
            content=content,
            publisher_id=publisher.id,
            created_at=created_at or utcnow(),
        )
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make


@pytest.fixture
def make_like(db):
    def _make(user, post, created_at=None):
        like = Like(user_id=user.id, post_id=post.id, created_at=created_at or utcnow())
        db.add(like)
        db.commit()
        db.refresh(like)
        return like

    return _make


@pytest.fixture
def make_posts(make_post):
    """Create `count` posts one minute apart, oldest first."""

    def _make(publisher, count, start=None):
        start = start or utcnow() - timedelta(hours=count)
        return [make_post(publisher, created_at=start + timedelta(minutes=i)) for i in range(count)]

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers


@pytest.fixture
def context_for():
    def _context(user):
        return AuthContext(user_id=user.id, role=user.role, name=user.name)

    return _context
