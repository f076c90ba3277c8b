"""Shared fixtures: a fresh in-memory database per test and signed-in clients."""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ.pop("MESSAGE_SENDER_NAME", None)
os.environ.pop("MESSAGE_SENDER_PITCH", None)

import pytest
from fastapi.testclient import TestClient

import auth
import main
from database import Base, SessionLocal, engine
from store import DataStore, StoreError


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    main.workspaces.clear()
    main.flashes.clear()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return DataStore(db)


@pytest.fixture
def owner(db):
    return auth.sign_up(db, "owner@example.com", "secret123").id


@pytest.fixture
def other_owner(db):
    return auth.sign_up(db, "other@example.com", "secret123").id


class FailingStore(DataStore):
    """Store whose every call fails the way an unreachable database would."""

    def __init__(self):
        pass

    def select(self, table, owner_id, **kwargs):
        raise StoreError("select", table, "connection refused")

    def select_one(self, table, owner_id, record_id):
        raise StoreError("select", table, "connection refused")

    def insert(self, table, owner_id, fields):
        raise StoreError("insert", table, "connection refused")

    def update(self, table, owner_id, record_id, fields):
        raise StoreError("update", table, "connection refused")

    def delete(self, table, owner_id, record_id):
        raise StoreError("delete", table, "connection refused")


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def client():
    return TestClient(main.app)


def _sign_in(client, email, password="secret123"):
    response = client.post("/api/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201
    response = client.post("/api/auth/signin", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def signed_in(client):
    _sign_in(client, "jane@example.com")
    return client


@pytest.fixture
def second_client():
    other = TestClient(main.app)
    _sign_in(other, "sam@example.com")
    return other
