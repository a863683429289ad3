"""Tests for Background Dispatcher service."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from shorts_factory.models.schemas import JobStatus
from shorts_factory.services.background_dispatcher import BackgroundDispatcher
from shorts_factory.storage.repository import JobRepository
from shorts_factory.utils.error_handler import InputValidationError, RenderError


@pytest.fixture
def repository(settings, logger):
    return JobRepository(settings, logger)


@pytest.fixture
def dispatcher(settings, logger, repository):
    return BackgroundDispatcher(settings, logger, repository=repository)


def test_dispatch_records_job_and_posts_payload(settings, dispatcher, repository):
    """Test dispatch saves a processing record and sends the worker payload."""
    with patch(
        "shorts_factory.services.background_dispatcher.requests.post", return_value=MagicMock(ok=True)
    ) as mock_post:
        job_id = dispatcher.dispatch("https://cdn.example.com/voice.mp3")

    record = repository.load_job(job_id)
    assert record.status == JobStatus.PROCESSING
    assert record.background_url == settings.default_background_video_url

    assert mock_post.call_args.args[0] == settings.background_worker_url
    assert mock_post.call_args.kwargs["json"] == {
        "audioUrl": "https://cdn.example.com/voice.mp3",
        "backgroundUrl": settings.default_background_video_url,
        "outputPath": f"/tmp/{job_id}.mp4",
        "duration": 60,
    }


def test_dispatch_uses_given_background(dispatcher, repository):
    with patch("shorts_factory.services.background_dispatcher.requests.post", return_value=MagicMock(ok=True)):
        job_id = dispatcher.dispatch("https://cdn.example.com/voice.mp3", "https://cdn.example.com/bg.mp4")

    assert repository.load_job(job_id).background_url == "https://cdn.example.com/bg.mp4"


def test_dispatch_requires_audio(dispatcher):
    with pytest.raises(InputValidationError):
        dispatcher.dispatch("   ")


def test_unreachable_worker_marks_job_failed(dispatcher, repository):
    with patch(
        "shorts_factory.services.background_dispatcher.requests.post",
        side_effect=requests.exceptions.ConnectionError("refused"),
    ):
        with pytest.raises(RenderError, match="Could not reach"):
            dispatcher.dispatch("https://cdn.example.com/voice.mp3")

    records = [repository.load_job(job_id) for job_id in repository.list_jobs()]
    assert len(records) == 1
    assert records[0].status == JobStatus.FAILED
    assert "refused" in records[0].error


def test_worker_error_status_marks_job_failed(dispatcher, repository):
    response = MagicMock(ok=False, status_code=503, text="busy")

    with patch("shorts_factory.services.background_dispatcher.requests.post", return_value=response):
        with pytest.raises(RenderError, match="503"):
            dispatcher.dispatch("https://cdn.example.com/voice.mp3")

    [job_id] = repository.list_jobs()
    assert repository.load_job(job_id).status == JobStatus.FAILED
