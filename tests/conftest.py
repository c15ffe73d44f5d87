"""
Pytest configuration and fixtures
"""
import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from matchup_parser.config import Settings
from matchup_parser.errors import ErrorKind, Result
from matchup_parser.history import HistoryStore
from matchup_parser.kv import MemoryBackend
from matchup_parser.main import create_app

ALPHA_BETA_TEXT = (
    'Week 2\n```json\n{"matchups":[{"homeTeam":"Alpha","homeScore":100,'
    '"awayTeam":"Beta","awayScore":85}]}\n```'
)


class FakeVision:
    """Stands in for the vision model: returns canned text and records calls"""

    model = "fake-vision"

    def __init__(self, text=ALPHA_BETA_TEXT, error=None, raises=None):
        self.text = text
        self.error = error
        self.raises = raises
        self.calls = []

    def extract_text(self, image, mime):
        self.calls.append((image, mime))
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return Result.failure(ErrorKind.UPSTREAM_CALL_FAILED, self.error)
        return Result.success(self.text)


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (64, 32), (20, 40, 80)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return HistoryStore(backend, capacity=5)


@pytest.fixture
def vision():
    return FakeVision()


@pytest.fixture
def settings():
    return Settings(openai_api_key="test-key", kv_backend="memory", log_level="WARNING")


@pytest.fixture
def client(settings, vision, store):
    app = create_app(settings, vision=vision, store=store)
    return TestClient(app, raise_server_exceptions=False)
