"""Tests for Asset Materializer service."""

import base64
import io
import struct
import zlib
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from shorts_factory.models.schemas import CompositionRequest, ImageInput
from shorts_factory.services.asset_materializer import AssetMaterializer
from shorts_factory.utils.error_handler import AssetFetchError, InputValidationError


def http_response(status_code=200, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.content = content
    return response


def png_chunk(kind, payload=b""):
    body = kind + payload
    return struct.pack(">I", len(payload)) + body + struct.pack(">I", zlib.crc32(body))


def png_header(width, height):
    """Encode a PNG that declares the given size but carries no pixel data."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + png_chunk(b"IHDR", ihdr) + png_chunk(b"IDAT") + png_chunk(b"IEND")


@pytest.fixture
def workspace_dir(tmp_path):
    path = tmp_path / "workspace"
    path.mkdir()
    return path


def make_request(audio, images, captions=None):
    return CompositionRequest(audio=audio, audio_duration_seconds=5.0, caption_track=captions, images=images)


def test_materializes_inline_assets_in_order(settings, logger, workspace_dir, audio_data_uri, image_uri_factory, sample_srt):
    """Test images are written in order-key order with audio and captions beside them."""
    images = [
        ImageInput(order=2, source=image_uri_factory("green")),
        ImageInput(order=1, source=image_uri_factory("red", width=40)),
        ImageInput(order=3, source=image_uri_factory("blue")),
    ]
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    assets = materializer.materialize(make_request(audio_data_uri, images, sample_srt), workspace_dir)

    assert [p.name for p in assets.image_files] == ["image_000.png", "image_001.png", "image_002.png"]
    assert all(p.parent == workspace_dir and p.stat().st_size > 0 for p in assets.image_files)
    # order=1 was the 40px-wide image
    with Image.open(assets.image_files[0]) as first:
        assert first.size == (40, 48)
    assert assets.audio_file.name == "narration.mp3"
    assert assets.audio_file.read_bytes().startswith(b"ID3")
    assert assets.caption_file.read_text(encoding="utf-8") == sample_srt


def test_blank_captions_are_skipped(settings, logger, workspace_dir, audio_data_uri, png_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    assets = materializer.materialize(
        make_request(audio_data_uri, [ImageInput(order=1, source=png_data_uri)], "  \n"), workspace_dir
    )

    assert assets.caption_file is None
    assert not (workspace_dir / "captions.srt").exists()


def test_downloads_remote_images(settings, logger, workspace_dir, audio_data_uri, png_bytes):
    """Test http(s) images are fetched through the session with the configured timeout."""
    session = MagicMock()
    session.get.return_value = http_response(200, png_bytes)
    materializer = AssetMaterializer(settings, logger, session=session)

    assets = materializer.materialize(
        make_request(audio_data_uri, [ImageInput(order=1, source="https://cdn.example.com/a.png")]), workspace_dir
    )

    session.get.assert_called_once_with("https://cdn.example.com/a.png", timeout=settings.image_fetch_timeout_seconds)
    assert assets.image_files[0].read_bytes() == png_bytes


def test_fetch_status_error_fails_whole_batch(settings, logger, workspace_dir, audio_data_uri, png_data_uri):
    session = MagicMock()
    session.get.return_value = http_response(404)
    materializer = AssetMaterializer(settings, logger, session=session)
    images = [
        ImageInput(order=1, source=png_data_uri),
        ImageInput(order=2, source="https://cdn.example.com/missing.png"),
    ]

    with pytest.raises(AssetFetchError, match="404"):
        materializer.materialize(make_request(audio_data_uri, images), workspace_dir)


def test_network_error_is_asset_fetch_error(settings, logger, workspace_dir, audio_data_uri):
    session = MagicMock()
    session.get.side_effect = requests.exceptions.Timeout("read timed out")
    materializer = AssetMaterializer(settings, logger, session=session)

    with pytest.raises(AssetFetchError) as exc_info:
        materializer.materialize(
            make_request(audio_data_uri, [ImageInput(order=1, source="http://slow.example.com/a.png")]), workspace_dir
        )

    assert exc_info.value.category.value == "input"


def test_undecodable_image_is_input_error(settings, logger, workspace_dir, audio_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())
    images = [ImageInput(order=1, source="data:image/png;base64,bm90IGFuIGltYWdl")]

    with pytest.raises(InputValidationError, match="not a valid image"):
        materializer.materialize(make_request(audio_data_uri, images), workspace_dir)


def test_bad_base64_is_input_error(settings, logger, workspace_dir, audio_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())
    images = [ImageInput(order=1, source="data:image/png;base64,@@@not-base64@@@")]

    with pytest.raises(InputValidationError, match="could not be decoded"):
        materializer.materialize(make_request(audio_data_uri, images), workspace_dir)


def test_unsupported_image_source_is_input_error(settings, logger, workspace_dir, audio_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    with pytest.raises(InputValidationError, match="neither a URL"):
        materializer.materialize(
            make_request(audio_data_uri, [ImageInput(order=1, source="ftp://host/a.png")]), workspace_dir
        )


def test_audio_must_be_inline(settings, logger, workspace_dir, png_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    with pytest.raises(InputValidationError, match="data: URI"):
        materializer.materialize(
            make_request("https://cdn.example.com/a.mp3", [ImageInput(order=1, source=png_data_uri)]), workspace_dir
        )


def test_jpeg_gets_jpg_extension(settings, logger, workspace_dir, audio_data_uri):
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), "white").save(buffer, format="JPEG")
    uri = "data:;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    assets = materializer.materialize(make_request(audio_data_uri, [ImageInput(order=1, source=uri)]), workspace_dir)

    assert assets.image_files[0].suffix == ".jpg"


def test_decompression_bomb_is_input_error(settings, logger, workspace_dir, audio_data_uri):
    """Test an image declaring 20000x20000 pixels is rejected as input, not leaked as a Pillow error."""
    uri = "data:image/png;base64," + base64.b64encode(png_header(20000, 20000)).decode("ascii")
    materializer = AssetMaterializer(settings, logger, session=MagicMock())

    with pytest.raises(InputValidationError, match="not a valid image"):
        materializer.materialize(make_request(audio_data_uri, [ImageInput(order=1, source=uri)]), workspace_dir)


def test_unexpected_image_failure_stays_in_error_taxonomy(settings, logger, workspace_dir, audio_data_uri, png_data_uri):
    materializer = AssetMaterializer(settings, logger, session=MagicMock())
    materializer._verify_image = MagicMock(side_effect=RuntimeError("codec exploded"))

    with pytest.raises(AssetFetchError, match="codec exploded") as exc_info:
        materializer.materialize(make_request(audio_data_uri, [ImageInput(order=1, source=png_data_uri)]), workspace_dir)

    assert exc_info.value.category.value == "input"


def test_any_success_status_is_accepted(settings, logger, workspace_dir, audio_data_uri, png_bytes):
    """Test a non-200 success response from the image host still counts as fetched."""
    session = MagicMock()
    session.get.return_value = http_response(203, png_bytes)
    materializer = AssetMaterializer(settings, logger, session=session)

    assets = materializer.materialize(
        make_request(audio_data_uri, [ImageInput(order=1, source="https://cdn.example.com/a.png")]), workspace_dir
    )

    assert assets.image_files[0].read_bytes() == png_bytes
