"""Shared test fixtures for stylevision tests."""

import pytest

from stylevision.config import Settings

from helpers import make_frame, recording_sleep


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return recording_sleep(sleeps)


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        replicate_api_key="replicate-key",
        hairstyle_transfer_version="v-123",
        image_models=["model-a", "model-b", "model-c"],
        tryon_request_gap=0.5,
    )


@pytest.fixture
def no_ai_keys(monkeypatch):
    for name in ("GEMINI_API_KEY", "NEXT_PUBLIC_GEMINI_API_KEY", "REPLICATE_API_KEY", "HAIRSTYLE_TRANSFER_VERSION"):
        monkeypatch.delenv(name, raising=False)
