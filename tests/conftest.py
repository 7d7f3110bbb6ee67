"""
Shared pytest fixtures.

Uses a SQLite database file so no external services are required for
tests, and a scripted generation backend instead of the real model.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_diarybuddy.db")
os.environ.setdefault("GEMINI_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from diarybuddy.db.base import Base, get_db
from diarybuddy.deps import get_conversation, get_store
from diarybuddy.main import app
from diarybuddy.models import Entry, Preference
from diarybuddy.services.session import ConversationSession
from diarybuddy.services.store import RecordStore

from tests.fakes import FakeGenerator

SQLITE_URL = "sqlite:///./test_diarybuddy.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def store(db):
    """A RecordStore over empty tables."""
    db.query(Entry).delete()
    db.query(Preference).delete()
    db.commit()
    return RecordStore(TestingSessionLocal)


@pytest.fixture()
def generator():
    return FakeGenerator()


@pytest.fixture()
def conversation(store, generator):
    return ConversationSession(store=store, generator=generator)


@pytest.fixture()
def client(store, conversation):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_conversation] = lambda: conversation
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
