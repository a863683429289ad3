"""Storage repository for background-video job records."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from shorts_factory.core.config import Settings
from shorts_factory.models.schemas import JobRecord, JobStatus


class JobRepository:
    """Repository for storing and loading job records as JSON files."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize the repository.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.storage_path = Path(settings.job_storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def save_job(self, record: JobRecord) -> None:
        """
        Save a job record to storage.

        Args:
            record: Job record to save
        """
        file_path = self.storage_path / f"{record.job_id}.json"
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(record.model_dump_json(indent=2))

        self.logger.info(f"Job {record.job_id} saved with status {record.status.value}")

    def load_job(self, job_id: str) -> Optional[JobRecord]:
        """
        Load a job record from storage.

        Args:
            job_id: Job identifier

        Returns:
            Job record if found, None otherwise
        """
        file_path = self.storage_path / f"{job_id}.json"

        if not file_path.exists():
            self.logger.warning(f"Job not found: {job_id}")
            return None

        with open(file_path, "r", encoding="utf-8") as f:
            record_dict = json.load(f)

        return JobRecord(**record_dict)

    def update_status(self, job_id: str, status: JobStatus, error: Optional[str] = None) -> Optional[JobRecord]:
        """
        Update the status of an existing job.

        Args:
            job_id: Job identifier
            status: New status
            error: Optional error message

        Returns:
            Updated record, or None if the job does not exist
        """
        record = self.load_job(job_id)
        if record is None:
            return None
        record.status = status
        record.error = error
        record.updated_at = datetime.now(timezone.utc)
        self.save_job(record)
        return record

    def list_jobs(self) -> list[str]:
        """
        List all job IDs.

        Returns:
            List of job IDs
        """
        job_ids = [f.stem for f in self.storage_path.glob("*.json")]
        self.logger.info(f"Found {len(job_ids)} jobs")
        return job_ids
