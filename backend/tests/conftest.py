import asyncio
import io

import boto3
import pytest
from fastapi.testclient import TestClient
from loguru import logger
from moto import mock_aws
from PIL import Image

from portfolio.config import settings
from portfolio.database import Database
from portfolio.limiter import limiter
from portfolio.main import app
from portfolio.repositories.users import UserRepository
from portfolio.services.auth import create_access_token, hash_password

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"


def _run(coro):
    # Own loop: never touches the loop pytest-asyncio installs for async tests
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _encode(fmt: str, size=(100, 100), color="red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def image_bytes():
    """Factory: image_bytes("PNG", size=(w, h)) -> encoded bytes."""
    return _encode


@pytest.fixture
def png_bytes():
    return _encode("PNG")


@pytest.fixture
def jpeg_bytes():
    return _encode("JPEG")


@pytest.fixture
def s3_client():
    """Provide a mocked S3 client with a test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name=settings.AWS_REGION)
        client.create_bucket(Bucket=settings.S3_BUCKET)
        yield client


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "portfolio.db"
    monkeypatch.setattr(settings, "DATABASE_PATH", str(path))
    return path


@pytest.fixture
def database(db_path):
    db = Database(db_path)
    _run(db.init())
    return db


@pytest.fixture
def admin_user(database):
    return _run(
        UserRepository(database).create(
            name="Admin",
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            role="ADMIN",
        )
    )


@pytest.fixture
def auth_headers(admin_user):
    token = create_access_token(admin_user.id, admin_user.email, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(s3_client, database):
    """TestClient with the lifespan running against moto S3 and a temp database."""
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    limiter.reset()


@pytest.fixture
def log_records():
    """Collect loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
