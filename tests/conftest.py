"""Shared fixtures: every test gets its own data directory and a fresh store."""

import pytest
from fastapi.testclient import TestClient

from hostel_orders.core.config import get_settings
from hostel_orders.database import DocumentStore, get_document_store, reset_document_store

ADMIN_PIN = "4321"


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.setenv("ADMIN_PIN", ADMIN_PIN)
    monkeypatch.setenv("EXCEL_EXPORT_ENABLED", "false")
    get_settings.cache_clear()
    reset_document_store()
    yield
    get_settings.cache_clear()
    reset_document_store()


@pytest.fixture
def store() -> DocumentStore:
    return get_document_store()


@pytest.fixture
def client():
    from hostel_orders.main import app

    with TestClient(app) as test_client:
        yield test_client


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
