"""Shared pytest fixtures and configuration."""

import base64
import io

import pytest
from PIL import Image

from shorts_factory.core.config import Settings
from shorts_factory.core.logging_config import get_logger
from shorts_factory.models.schemas import ExecutionMode


def make_png(width: int = 32, height: int = 48, color: str = "red") -> bytes:
    """Encode a small solid-colour PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def settings(tmp_path):
    """Create test settings with every writable path under tmp_path."""
    return Settings(
        execution_mode=ExecutionMode.LOCAL,
        scratch_root=str(tmp_path / "scratch"),
        local_output_dir=str(tmp_path / "outputs"),
        job_storage_path=str(tmp_path / "jobs"),
        supabase_url=None,
        supabase_service_role_key=None,
        openai_api_key=None,
        flux_api_key=None,
        cleanup_secret_token=None,
    )


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_uri(png_bytes):
    return to_data_uri(png_bytes, "image/png")


@pytest.fixture
def audio_data_uri():
    """Inline narration audio (content is never decoded as audio in tests)."""
    return to_data_uri(b"ID3\x03\x00fake-mp3-frames", "audio/mpeg")


@pytest.fixture
def sample_srt():
    return (
        "1\n00:00:00,000 --> 00:00:02,500\nFirst line\n\n"
        "2\n00:00:02,500 --> 00:00:05,750\nSecond line\nwraps here\n"
    )


@pytest.fixture
def image_uri_factory():
    """Build PNG data URIs of a given colour and size."""

    def factory(color: str = "red", width: int = 32, height: int = 48) -> str:
        return to_data_uri(make_png(width, height, color), "image/png")

    return factory
