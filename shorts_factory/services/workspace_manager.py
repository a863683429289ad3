"""Workspace Lifecycle Manager - per-request scratch directories and final hand-off."""

import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from shorts_factory.core.config import Settings
from shorts_factory.models.schemas import ExecutionMode
from shorts_factory.services.storage_client import StorageClient
from shorts_factory.utils.error_handler import PublishError
from shorts_factory.utils.io_utils import new_job_id


class WorkspaceManager:
    """
    Owns the scratch directory of each request.

    ``workspace()`` always removes the directory on exit, whether the body
    succeeded or raised. ``publish()`` moves the finished video out of the
    workspace first: to storage in managed mode, to a stable local path in
    local mode.
    """

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        mode: ExecutionMode,
        storage: Optional[StorageClient] = None,
    ):
        """
        Initialize workspace manager.

        Args:
            settings: Application settings
            logger: Logger instance
            mode: Execution mode (local keeps the video on disk, managed uploads it)
            storage: Storage client, required in managed mode
        """
        self.settings = settings
        self.logger = logger
        self.mode = ExecutionMode(mode)
        self.storage = storage
        self.scratch_root = Path(settings.scratch_root)
        self.local_output_dir = Path(settings.local_output_dir)

        if self.mode == ExecutionMode.MANAGED and storage is None:
            raise ValueError("Managed execution mode requires a storage client")

    @contextmanager
    def workspace(self, job_id: Optional[str] = None) -> Iterator[Path]:
        """
        Create a fresh directory for one request and remove it afterwards.

        Args:
            job_id: Directory name (a new unique id when omitted)

        Yields:
            Path to the workspace directory
        """
        job_id = job_id or new_job_id()
        path = self.scratch_root / job_id
        self.scratch_root.mkdir(parents=True, exist_ok=True)
        # exist_ok=False: a workspace is never shared or reused.
        path.mkdir()
        self.logger.debug(f"Created workspace {path}")
        try:
            yield path
        finally:
            self.cleanup(path)

    def cleanup(self, path: Path) -> None:
        """Remove a workspace directory; failures are logged, never raised."""
        try:
            shutil.rmtree(path)
            self.logger.debug(f"Removed workspace {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Failed to remove workspace {path}: {e}")

    def publish(self, artifact_path: Path, job_id: str) -> str:
        """
        Hand the finished video off according to the execution mode.

        Args:
            artifact_path: Rendered MP4 inside the workspace
            job_id: Request identifier, used for the destination name

        Returns:
            Public URL (managed) or local file path (local)

        Raises:
            PublishError: If the upload or the local move fails
        """
        if self.mode == ExecutionMode.MANAGED:
            key = f"videos/{job_id}.mp4"
            try:
                data = Path(artifact_path).read_bytes()
            except OSError as e:
                raise PublishError(f"Could not read rendered video {artifact_path}: {e}") from e
            try:
                url = self.storage.upload(data, key, content_type="video/mp4")
            except PublishError:
                raise
            except Exception as e:
                raise PublishError(f"Upload of {key} failed: {e}") from e
            self.logger.info(f"Published video to {url}")
            self._remove_file(Path(artifact_path))
            return url

        destination = self.local_output_dir / f"{job_id}.mp4"
        try:
            self.local_output_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(artifact_path), str(destination))
        except OSError as e:
            raise PublishError(f"Could not move rendered video to {destination}: {e}") from e
        self.logger.info(f"Video saved to {destination}")
        return str(destination)

    def _remove_file(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            self.logger.warning(f"Failed to remove local copy {path}: {e}")
