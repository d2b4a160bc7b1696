# tests/conftest.py
from __future__ import annotations

import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import MongoStore
from main import create_app
from uploads import AttachmentStore


@pytest.fixture
def store() -> MongoStore:
    return MongoStore(name="checkout_test", client=mongomock.MongoClient())


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def attachments(upload_dir) -> AttachmentStore:
    return AttachmentStore(str(upload_dir))


@pytest.fixture
def client(store, attachments):
    app = create_app(Settings(upload_dir=attachments.directory), store=store, attachments=attachments)
    with TestClient(app) as c:
        yield c
