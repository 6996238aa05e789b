"""Shared fixtures: an in-memory document store and authenticated users."""

import asyncio
import os
import uuid

os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from core.database import get_db
from core.security import create_access_token
from main import app
from models.user import User


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db():
    return AsyncMongoMockClient()[f"workquest_test_{uuid.uuid4().hex}"]


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_user(db, role="employee", full_name=None, **fields) -> User:
    user = User(
        full_name=full_name or f"{role.title()} User",
        email=f"{uuid.uuid4().hex[:8]}@workquest.io",
        role=role,
        **fields
    )
    run(db.users.insert_one(user.model_dump(by_alias=True)))
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin(db):
    return add_user(db, role="admin", full_name="Alice Admin")


@pytest.fixture
def manager(db):
    return add_user(db, role="manager", full_name="Mario Manager")


@pytest.fixture
def employee(db):
    return add_user(db, role="employee", full_name="Eva Employee")
