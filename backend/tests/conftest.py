import json

import pytest
from fastapi.testclient import TestClient

from fakes import SERVICE_ACCOUNT, FakeSdk
from firestore_console.config import Settings
from firestore_console.dependencies import get_conn_mgr
from firestore_console.main import app
from firestore_console.services.documents import DocumentService
from firestore_console.services.firebase import ConnectionManager


@pytest.fixture
def settings():
    return Settings(service_account_json=json.dumps(SERVICE_ACCOUNT), databases=["(default)", "analytics"])


@pytest.fixture
def sdk():
    return FakeSdk()


@pytest.fixture
def conn_mgr(settings, sdk):
    return ConnectionManager(settings, sdk=sdk)


@pytest.fixture
def documents(conn_mgr):
    return DocumentService(conn_mgr)


@pytest.fixture
def client(conn_mgr):
    app.dependency_overrides[get_conn_mgr] = lambda: conn_mgr
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
