"""Tests for job record repository."""

import pytest

from shorts_factory.models.schemas import JobRecord, JobStatus
from shorts_factory.storage.repository import JobRepository


@pytest.fixture
def repository(settings, logger):
    """Create repository with temp storage."""
    return JobRepository(settings, logger)


@pytest.fixture
def sample_record():
    return JobRecord(
        job_id="job_1",
        audio_url="https://cdn.example.com/voice.mp3",
        background_url="https://cdn.example.com/bg.mp4",
        output_path="/tmp/job_1.mp4",
        max_duration_seconds=60,
    )


def test_save_and_load_job(repository, sample_record):
    """Test that a saved job can be loaded back."""
    repository.save_job(sample_record)

    loaded = repository.load_job("job_1")

    assert loaded is not None
    assert loaded.job_id == "job_1"
    assert loaded.status == JobStatus.PROCESSING
    assert loaded.background_url == sample_record.background_url


def test_load_nonexistent_job(repository):
    assert repository.load_job("nope") is None


def test_update_status(repository, sample_record):
    repository.save_job(sample_record)

    updated = repository.update_status("job_1", JobStatus.FAILED, error="worker down")

    assert updated.status == JobStatus.FAILED
    assert repository.load_job("job_1").error == "worker down"
    assert updated.updated_at >= sample_record.created_at


def test_update_status_of_unknown_job(repository):
    assert repository.update_status("ghost", JobStatus.COMPLETED) is None


def test_list_jobs(repository, sample_record):
    repository.save_job(sample_record)
    repository.save_job(sample_record.model_copy(update={"job_id": "job_2"}))

    assert sorted(repository.list_jobs()) == ["job_1", "job_2"]
