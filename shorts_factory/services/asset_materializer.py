"""Asset Materializer - writes a request's audio, images and captions into its workspace."""

import io
from pathlib import Path
from typing import Any, Optional

import requests
from PIL import Image, UnidentifiedImageError

from shorts_factory.core.config import Settings
from shorts_factory.core.constants import AUDIO_FILE_STEM, CAPTION_FILE_NAME, IMAGE_FILE_PREFIX
from shorts_factory.models.schemas import CompositionRequest, ImageInput, WorkspaceAssets
from shorts_factory.utils.error_handler import AssetFetchError, CompositionError, InputValidationError
from shorts_factory.utils.io_utils import decode_data_uri, extension_for, is_data_uri
from shorts_factory.utils.parallel_executor import ParallelExecutor

_PIL_EXTENSIONS = {"PNG": "png", "JPEG": "jpg", "WEBP": "webp", "GIF": "gif", "BMP": "bmp"}


class AssetMaterializer:
    """Resolves inline data and remote URLs into local files."""

    def __init__(self, settings: Settings, logger: Any, session: Optional[requests.Session] = None):
        """
        Initialize asset materializer.

        Args:
            settings: Application settings
            logger: Logger instance
            session: Optional requests session for image downloads
        """
        self.settings = settings
        self.logger = logger
        self.session = session or requests.Session()
        self.timeout = settings.image_fetch_timeout_seconds
        self.parallel_executor = ParallelExecutor(settings, logger)

    def materialize(self, request: CompositionRequest, workspace_dir: Path) -> WorkspaceAssets:
        """
        Materialize every input of an image-mode request under ``workspace_dir``.

        Images are fetched/decoded concurrently; the first failure aborts the
        whole batch, so a video is never built from a partial image set.

        Args:
            request: Composition request
            workspace_dir: Fresh, request-scoped directory

        Returns:
            WorkspaceAssets with image files in display order

        Raises:
            InputValidationError: If audio or image data cannot be decoded
            AssetFetchError: If an image URL cannot be downloaded
        """
        audio_file = self._write_audio(request.audio, workspace_dir)
        caption_file = self._write_captions(request.caption_track, workspace_dir)

        images = request.ordered_images()
        tasks = [self._image_task(image, index, workspace_dir) for index, image in enumerate(images)]
        names = [f"image_{index}(order={image.order})" for index, image in enumerate(images)]
        self.logger.info(f"Materializing {len(images)} images...")
        image_files = self.parallel_executor.run_all_or_nothing(tasks, task_names=names)

        return WorkspaceAssets(
            root=workspace_dir,
            audio_file=audio_file,
            caption_file=caption_file,
            image_files=image_files,
        )

    def _write_audio(self, audio: str, workspace_dir: Path) -> Path:
        if not audio or not audio.strip():
            raise InputValidationError("Narration audio is required")
        if not is_data_uri(audio):
            raise InputValidationError("Narration audio must be an inline data: URI")
        try:
            data, mime_type = decode_data_uri(audio)
        except ValueError as e:
            raise InputValidationError(f"Narration audio could not be decoded: {e}") from e

        path = workspace_dir / f"{AUDIO_FILE_STEM}.{extension_for(mime_type, 'mp3')}"
        path.write_bytes(data)
        self.logger.debug(f"Wrote narration audio ({len(data)} bytes) to {path.name}")
        return path

    def _write_captions(self, caption_track: Optional[str], workspace_dir: Path) -> Optional[Path]:
        if not caption_track or not caption_track.strip():
            self.logger.info("No caption track, captions will be skipped")
            return None
        path = workspace_dir / CAPTION_FILE_NAME
        path.write_text(caption_track, encoding="utf-8")
        return path

    def _image_task(self, image: ImageInput, index: int, workspace_dir: Path):
        def materialize_image() -> Path:
            try:
                data = self._load_image_bytes(image, index)
                extension = self._verify_image(data, index)
                path = workspace_dir / f"{IMAGE_FILE_PREFIX}{index:03d}.{extension}"
                path.write_bytes(data)
            except CompositionError:
                raise
            except Exception as e:
                # Anything unexpected still surfaces as this image's input failure.
                raise AssetFetchError(f"Image {index} (order {image.order}) could not be materialized: {e}") from e
            return path

        return materialize_image

    def _load_image_bytes(self, image: ImageInput, index: int) -> bytes:
        source = image.source.strip()
        if is_data_uri(source):
            try:
                data, _ = decode_data_uri(source)
            except ValueError as e:
                raise InputValidationError(f"Image {index} (order {image.order}) could not be decoded: {e}") from e
            return data

        if not source.startswith(("http://", "https://")):
            raise InputValidationError(f"Image {index} (order {image.order}) is neither a URL nor a data: URI")

        try:
            response = self.session.get(source, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise AssetFetchError(f"Network error fetching image {index} (order {image.order}): {e}") from e

        if not response.ok:
            raise AssetFetchError(
                f"Fetching image {index} (order {image.order}) returned status {response.status_code}"
            )
        return response.content

    def _verify_image(self, data: bytes, index: int) -> str:
        """Check the bytes decode as an image and return a file extension for them."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                image_format = img.format
                img.verify()
        except (Image.DecompressionBombError, UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise InputValidationError(f"Image {index} is not a valid image: {e}") from e
        return _PIL_EXTENSIONS.get(image_format or "", "png")
