"""Pytest fixtures for the waste report service tests."""

import base64
import io
import os
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

# Required settings must exist before the package is imported
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("GOOGLE_API_KEY", "test-api-key")

TEST_EMAIL = "alice@wastewatch.org"
TEST_USER_ID = "64b7f0c2a1e4d3b2c1a09f8e"


@pytest.fixture
def settings():
    """Settings with every optional verification policy disabled."""
    from wastereport.config import Settings

    return Settings(
        _env_file=None,
        MONGO_URI="mongodb://localhost:27017",
        GOOGLE_API_KEY="test-api-key",
        OPTIMIZE_IMAGES=False,
    )


@pytest.fixture
def user_doc() -> dict:
    return {"_id": TEST_USER_ID, "email": TEST_EMAIL, "name": "Alice"}


@pytest.fixture
def mock_users(user_doc) -> MagicMock:
    """Mock of the user CRUD module."""
    users = MagicMock()
    users.get_user_by_email = AsyncMock(return_value=user_doc)
    users.create_user = AsyncMock(return_value=user_doc)
    return users


@pytest.fixture
def session_store():
    from wastereport.services.identity import SessionStore

    return SessionStore()


@pytest.fixture
def logged_in_session(session_store) -> str:
    from wastereport.services.identity import USER_EMAIL_KEY, USER_ROLE_KEY

    session_id = session_store.create_session()
    session_store.set(session_id, USER_EMAIL_KEY, TEST_EMAIL)
    session_store.set(session_id, USER_ROLE_KEY, "reporter")
    return session_id


@pytest.fixture
def identity(session_store, logged_in_session, mock_users):
    from wastereport.services.identity import SessionIdentity

    return SessionIdentity(session_store, logged_in_session, users=mock_users)


@pytest.fixture
def created_report() -> dict:
    return {
        "_id": "64b7f0c2a1e4d3b2c1a0aaaa",
        "user_id": TEST_USER_ID,
        "location": "Main Street 12",
        "waste_type": "plastic",
        "amount": "2kg",
        "image_url": None,
        "verification_result": None,
        "status": "pending",
        "created_at": datetime(2024, 5, 17, 14, 32, 9),
    }


@pytest.fixture
def mock_report_store(created_report) -> MagicMock:
    """Mock of the report CRUD module."""
    store = MagicMock()
    store.create_report = AsyncMock(return_value=created_report)
    store.get_recent_reports = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_classifier() -> AsyncMock:
    return AsyncMock(return_value='{"wasteType":"plastic","quantity":"2kg","confidence":87}')


@pytest.fixture
def make_workflow(identity, mock_classifier, mock_report_store, settings):
    """Build a VerificationWorkflow wired to mocks; keyword args override them."""
    from wastereport.services.verification_workflow import VerificationWorkflow

    def build(**overrides):
        kwargs = {
            "identity": identity,
            "classifier": mock_classifier,
            "report_store": mock_report_store,
            "settings": settings,
        }
        kwargs.update(overrides)
        return VerificationWorkflow(**kwargs)

    return build


def make_png(width: int = 4, height: int = 4, color=(200, 30, 30)) -> bytes:
    from PIL import Image

    output = io.BytesIO()
    Image.new("RGB", (width, height), color).save(output, format="PNG")
    return output.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def uploaded_image(png_bytes):
    from wastereport.models import UploadedImage

    return UploadedImage(content=png_bytes, content_type="image/png", filename="waste.png")


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")
