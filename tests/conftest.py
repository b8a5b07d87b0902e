# tests/conftest.py
from __future__ import annotations

import os
import tempfile

# must be set before roomy.config is imported anywhere
_TMP = tempfile.mkdtemp(prefix="roomy-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/roomy-test.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["APP_ENV"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from roomy import models  # noqa: E402,F401
from roomy.client.http import ApiClient  # noqa: E402
from roomy.db import Base, engine  # noqa: E402
from roomy.main import create_app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


@pytest.fixture
def api() -> ApiClient:
    return ApiClient(http=TestClient(create_app(), base_url="http://testserver/api"), actor="tester@roomy.local")
