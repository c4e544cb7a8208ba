# tests/conftest.py
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from config import settings
from database import ExpectedReturn, get_db
from main import app


class FakeProcedureClient:
    """Stands in for ProcedureClient: records calls, replays canned results."""

    def __init__(self):
        self.calls: List[Tuple[str, Dict[str, Any], ExpectedReturn]] = []
        self.results: Dict[str, Any] = {}

    def execute(self, routine, parameters, expected_return=ExpectedReturn.SINGLE):
        self.calls.append((routine, dict(parameters), expected_return))
        result = self.results.get(routine)
        if isinstance(result, Exception):
            raise result
        return result

    def last_params(self) -> Dict[str, Any]:
        return self.calls[-1][1]


@pytest.fixture
def fake_db():
    return FakeProcedureClient()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_db] = lambda: fake_db
    app.state.permission_checker = None
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
        app.state.permission_checker = None


@pytest.fixture
def enforce_movement_rules(monkeypatch):
    monkeypatch.setattr(settings, "ENFORCE_MOVEMENT_RULES", True)


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()
