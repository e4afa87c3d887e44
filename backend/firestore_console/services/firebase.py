import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import auth, credentials, tenant_mgt
from google.cloud import firestore

from ..config import DEFAULT_DATABASE_ID, Settings
from ..errors import ConfigurationError, QueryError, StoreUnavailableError, store_errors

logger = logging.getLogger(__name__)

APP_NAME = "firestore-console"
REQUIRED_FIELDS = ("project_id", "private_key", "client_email")


def normalize_database_id(database_id: Optional[str]) -> str:
    if not database_id or database_id.strip() in ("", DEFAULT_DATABASE_ID):
        return DEFAULT_DATABASE_ID
    return database_id.strip()


def load_service_account(settings: Settings) -> Dict[str, Any]:
    """Read and check the service-account key from the environment-provided settings."""
    raw = settings.service_account_json
    if not raw and settings.service_account_file:
        try:
            raw = Path(settings.service_account_file).read_text("utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read FIREBASE_SERVICE_ACCOUNT_FILE: {e}") from e
    if not raw:
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT environment variable is not set")

    try:
        info = json.loads(raw)
    except ValueError as e:
        raise ConfigurationError("Failed to parse FIREBASE_SERVICE_ACCOUNT. Make sure it's valid JSON.") from e
    if not isinstance(info, dict):
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT must be a JSON object")

    missing = [k for k in REQUIRED_FIELDS if not info.get(k)]
    if missing:
        raise ConfigurationError(
            "FIREBASE_SERVICE_ACCOUNT is missing required fields (%s)" % ", ".join(missing)
        )
    return info


class FirebaseSdk:
    """Thin adapter over firebase_admin so the manager can be exercised without Google."""

    def initialize_app(self, service_account: Dict[str, Any]):
        try:
            return firebase_admin.get_app(APP_NAME)
        except ValueError:
            pass
        return firebase_admin.initialize_app(credentials.Certificate(service_account), name=APP_NAME)

    # new client per call; ConnectionManager holds the only cache
    def firestore_client(self, app, database_id: str):
        return firestore.Client(
            project=app.project_id,
            credentials=app.credential.get_credential(),
            database=database_id,
        )

    def auth_client(self, app, tenant_id: Optional[str] = None):
        if tenant_id:
            return tenant_mgt.TenantAwareAuthClient(app, tenant_id)
        return auth.Client(app)

    def list_tenants(self, app) -> List[Any]:
        return list(tenant_mgt.list_tenants(app=app).iterate_all())


@dataclass
class ResolvedHandle:
    client: Any
    database_id: str
    requested_id: str
    fell_back: bool = False


class ConnectionManager:
    """
    Owns the Firebase app and the per-database Firestore clients.
    One instance per application, handed to routes through a dependency.
    """

    def __init__(self, settings: Settings, sdk: Optional[FirebaseSdk] = None) -> None:
        self._settings = settings
        self._sdk = sdk or FirebaseSdk()
        self._init_lock = threading.Lock()
        self._lock = threading.Lock()
        self._app = None
        self._project_id: Optional[str] = None
        self._handles: Dict[str, Any] = {}
        self._auth_clients: Dict[str, Any] = {}

    def validate_credentials(self) -> None:
        load_service_account(self._settings)

    def app(self):
        if self._app is not None:
            return self._app
        with self._init_lock:
            if self._app is None:
                info = load_service_account(self._settings)
                try:
                    self._app = self._sdk.initialize_app(info)
                except ValueError as e:
                    # credentials.Certificate rejects malformed keys with ValueError
                    raise ConfigurationError(f"Invalid service account: {e}") from e
                self._project_id = info["project_id"]
                logger.info("Firebase Admin initialized for project %s", self._project_id)
        return self._app

    def _build_handle(self, app, key: str):
        client = self._sdk.firestore_client(app, key)
        self._handles[key] = client
        if key == DEFAULT_DATABASE_ID:
            logger.info("Created Firestore instance for default database")
        else:
            logger.info("Created Firestore instance for database: %s", key)
        return client

    def get_handle(self, database_id: Optional[str] = None) -> ResolvedHandle:
        key = normalize_database_id(database_id)
        app = self.app()
        with self._lock:
            client = self._handles.get(key)
            if client is not None:
                return ResolvedHandle(client, key, key)
            try:
                return ResolvedHandle(self._build_handle(app, key), key, key)
            except Exception as e:
                if key == DEFAULT_DATABASE_ID:
                    raise StoreUnavailableError(f"Cannot open default database: {e}") from e
                logger.warning("Error getting Firestore database (%s), falling back to default: %s", key, e)

            default = self._handles.get(DEFAULT_DATABASE_ID)
            if default is None:
                try:
                    default = self._build_handle(app, DEFAULT_DATABASE_ID)
                except Exception as e:
                    raise StoreUnavailableError(f"Cannot open default database: {e}") from e
            return ResolvedHandle(default, DEFAULT_DATABASE_ID, key, fell_back=True)

    def auth_client(self, tenant_id: Optional[str] = None):
        key = tenant_id or ""
        app = self.app()
        with self._lock:
            client = self._auth_clients.get(key)
            if client is None:
                try:
                    client = self._sdk.auth_client(app, tenant_id or None)
                except ValueError as e:
                    raise QueryError(f"Invalid tenant id: {tenant_id}") from e
                self._auth_clients[key] = client
            return client

    def list_tenants(self) -> List[Any]:
        app = self.app()
        with store_errors("fetch tenants"):
            return self._sdk.list_tenants(app)

    def clear_cache(self) -> int:
        with self._lock:
            dropped = len(self._handles)
            self._handles.clear()
            self._auth_clients.clear()
        logger.info("Cleared %d cached Firestore handle(s)", dropped)
        return dropped

    def cached_database_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._handles.keys())

    def status(self) -> Dict[str, Any]:
        return {
            "initialized": self._app is not None,
            "projectId": self._project_id,
            "databases": self.cached_database_ids(),
        }
