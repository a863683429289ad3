"""Background Dispatcher - hands background-video jobs to the rendering worker."""

from typing import Any, Optional

import requests

from shorts_factory.core.config import Settings
from shorts_factory.models.schemas import JobRecord, JobStatus
from shorts_factory.storage.repository import JobRepository
from shorts_factory.utils.error_handler import InputValidationError, RenderError
from shorts_factory.utils.io_utils import new_job_id


class BackgroundDispatcher:
    """Records a job and dispatches it to the worker; does not wait for the render."""

    def __init__(self, settings: Settings, logger: Any, repository: Optional[JobRepository] = None):
        """
        Initialize background dispatcher.

        Args:
            settings: Application settings
            logger: Logger instance
            repository: Job repository (created from settings when omitted)
        """
        self.settings = settings
        self.logger = logger
        self.repository = repository or JobRepository(settings, logger)
        self.worker_url = settings.background_worker_url

    def dispatch(self, audio_url: str, background_url: Optional[str] = None) -> str:
        """
        Record a "processing" job and send it to the worker.

        Args:
            audio_url: Narration audio URL
            background_url: Background video URL (the configured default when omitted)

        Returns:
            The new job ID

        Raises:
            InputValidationError: If no audio URL is given
            RenderError: If the worker rejects the job or cannot be reached
        """
        if not audio_url or not audio_url.strip():
            raise InputValidationError("Narration audio URL is required")

        job_id = new_job_id()
        record = JobRecord(
            job_id=job_id,
            status=JobStatus.PROCESSING,
            audio_url=audio_url,
            background_url=background_url or self.settings.default_background_video_url,
            output_path=f"/tmp/{job_id}.mp4",
            max_duration_seconds=self.settings.background_max_duration_seconds,
        )
        self.repository.save_job(record)

        payload = {
            "audioUrl": record.audio_url,
            "backgroundUrl": record.background_url,
            "outputPath": record.output_path,
            "duration": record.max_duration_seconds,
        }
        self.logger.info(f"Dispatching background job {job_id} to {self.worker_url}")
        try:
            response = requests.post(
                self.worker_url, json=payload, timeout=self.settings.worker_request_timeout_seconds
            )
        except requests.exceptions.RequestException as e:
            self.repository.update_status(job_id, JobStatus.FAILED, error=str(e))
            raise RenderError(f"Could not reach rendering worker: {e}") from e

        if not response.ok:
            message = f"Rendering worker returned status {response.status_code}"
            self.repository.update_status(job_id, JobStatus.FAILED, error=message)
            raise RenderError(message, diagnostics=response.text[:2000])

        return job_id
