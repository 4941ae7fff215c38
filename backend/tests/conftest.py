from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fileshare.config import Settings
from fileshare.main import create_app

UPLOAD_LIMIT = 64 * 1024


@pytest.fixture()
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def config(upload_dir) -> Settings:
    return Settings(
        BLOB_STORE_TYPE="local",
        BLOB_STORE_PATH=str(upload_dir),
        METADATA_STORE_TYPE="memory",
        MAX_UPLOAD_BYTES=UPLOAD_LIMIT,
        MULTIPART_OVERHEAD_BYTES=4096,
        ALLOWED_MIME_TYPES="",
        FRONTEND_DIR="",
    )


@pytest.fixture()
def client(config) -> TestClient:
    with TestClient(create_app(config)) as c:
        yield c
