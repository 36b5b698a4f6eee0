import os

# must be set before moveops.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test_secret")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "120")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from moveops.main import app
from moveops.db import get_session, make_engine


def memory_engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="session")
def client():
    engine = memory_engine()

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def session():
    engine = memory_engine()
    with Session(engine) as s:
        yield s
    engine.dispose()


class StepClock:
    """Deterministic clock: every call moves one minute forward."""

    def __init__(self, start: datetime = datetime(2026, 5, 4, 8, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return StepClock()
