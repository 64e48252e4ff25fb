from __future__ import annotations

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core import database
from app.core.config import settings
from app.main import app
from fakes import FakeSupabase


@pytest.fixture
def db(monkeypatch) -> FakeSupabase:
    fake = FakeSupabase()
    monkeypatch.setattr(database, "_supabase_client", fake)
    monkeypatch.setattr(settings, "AUTH_MODE", "mock")
    return fake


@pytest.fixture
def client(db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def future_day() -> date:
    return date.today() + timedelta(days=7)
