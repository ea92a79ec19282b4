import os

# Pas de Redis en tests: le lifespan désactive fastapi-limiter
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Generator, Dict, Any
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from backend.app import app as fastapi_app
from backend.utils.security import require_user
from fakes import FakeStore, FakeStripe

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def fake_user() -> Dict[str, Any]:
    return {
        "id": "test-user",
        "email": "test@example.com",
        "metadata": {"full_name": "Test User"},
        "token": "fake-token",
    }

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app, fake_user):
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def anonymous_client(app, client):
    """Client sans override d'authentification (vraie dépendance require_user)."""
    app.dependency_overrides.pop(require_user, None)
    yield client

# Aucun test n'atteint un vrai Supabase
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture
def store(monkeypatch) -> FakeStore:
    return FakeStore().install(monkeypatch)

@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    return FakeStripe().install(monkeypatch)
