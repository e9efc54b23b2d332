"""Shared pytest fixtures."""
import base64
import os
import tempfile
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import AsyncMock

# Must be set before config is imported
os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="veo-agent-logs-"))
os.environ["VIDEO_POLL_INTERVAL_SECONDS"] = "0"

import pytest
from PIL import Image

from auth.services import key_state
from conversations.services import reset_session
from videos.blobs import blob_store

TEST_API_KEY = "test-key"
VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc123:download?alt=media"


def create_test_image(color=(255, 0, 0), size=(64, 64)) -> str:
    """Create a simple PNG and return it base64 encoded."""
    img = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


@pytest.fixture(autouse=True)
def fresh_session():
    """Every test starts with a selected key, an empty blob store and the welcome message."""
    key_state.select(TEST_API_KEY)
    blob_store.clear()
    reset_session()
    yield
    blob_store.clear()


@pytest.fixture
def png_base64():
    return create_test_image()


@pytest.fixture
def make_operation():
    def _make(done=False, error=None, uris=None, name="operations/veo-1"):
        response = None
        if uris is not None:
            response = SimpleNamespace(
                generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri)) for uri in uris]
            )
        return SimpleNamespace(name=name, done=done, error=error, response=response)
    return _make


@pytest.fixture
def fake_client():
    """
    Build a stand-in for genai.Client.

    The first operation is returned by generate_videos, the rest by
    successive operations.get calls.
    """
    def _make(*operations):
        return SimpleNamespace(aio=SimpleNamespace(
            models=SimpleNamespace(generate_videos=AsyncMock(return_value=operations[0])),
            operations=SimpleNamespace(get=AsyncMock(side_effect=list(operations[1:]))),
        ))
    return _make
