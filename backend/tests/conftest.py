"""
Shared test fixtures and configuration.
"""

import os
import tempfile
from datetime import datetime, timezone

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("ID_ENCRYPTION_KEY", "test-id-encryption-key")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "caretrack_test_data"))
os.environ["STORAGE_TYPE"] = "local"
os.environ["LLM_API_KEY"] = ""
os.environ["LOG_FILE_ENABLED"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from caretrack.main import app  # noqa: E402
from caretrack.services import InsightGenerator  # noqa: E402
from caretrack.storage import LocalDocumentStore  # noqa: E402
from caretrack.utils.auth import create_access_token  # noqa: E402
from caretrack.utils.crypt import encrypt  # noqa: E402

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(tmp_path):
    return LocalDocumentStore(str(tmp_path / "data"))


@pytest.fixture
def client(tmp_path):
    """TestClient with a private store and a model-less insight generator."""
    with TestClient(app) as test_client:
        app.state.store = LocalDocumentStore(str(tmp_path / "api_data"))
        app.state.insight_generator = InsightGenerator()
        yield test_client


@pytest.fixture
def auth_headers():
    token = create_access_token(data={"sub": "user-1"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_token():
    return encrypt("patient-1")


@pytest.fixture
def user_token():
    return encrypt("user-1")
