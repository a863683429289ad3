"""FastAPI routes for video composition."""

from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field, model_validator

from shorts_factory.core.config import settings
from shorts_factory.core.logging_config import get_logger
from shorts_factory.models.schemas import (
    BackgroundJobRequest,
    CleanupResponse,
    ComposeVideoResponse,
    CompositionRequest,
    DispatchJobResponse,
    ErrorCategory,
    ExecutionMode,
    ImageInput,
    JobRecord,
)
from shorts_factory.pipelines.compose_video import build_composer
from shorts_factory.services.background_dispatcher import BackgroundDispatcher
from shorts_factory.services.image_client import ImageClient
from shorts_factory.services.narration_client import DEFAULT_NARRATION_SECONDS, NarrationClient
from shorts_factory.services.scene_planner import ScenePlanner, ScenePrompt
from shorts_factory.services.storage_client import SupabaseStorageClient, cleanup_expired_videos
from shorts_factory.storage.repository import JobRepository
from shorts_factory.utils.error_handler import CompositionError, format_error_message, get_failure_suggestion
from shorts_factory.utils.io_utils import new_job_id

router = APIRouter(prefix="/videos", tags=["videos"])

STATUS_BY_CATEGORY = {
    ErrorCategory.INPUT: 400,
    ErrorCategory.RENDER: 502,
    ErrorCategory.STORAGE: 500,
}


class NarrationRequest(BaseModel):
    """Script to narrate."""

    text: str = Field(..., min_length=1)
    voice: Optional[str] = Field(default=None, description="OpenAI voice (default from settings)")


class NarrationResponse(BaseModel):
    """Narration audio, its captions and duration, in the compose request's wire shape."""

    model_config = ConfigDict(populate_by_name=True)

    audio_url: str = Field(..., alias="audioUrl")
    subtitles: str
    audio_duration: float = Field(..., alias="audioDuration")


class ScenesRequest(BaseModel):
    """Script to split into scene prompts, sized by its narration length."""

    model_config = ConfigDict(populate_by_name=True)

    script: str = Field(..., min_length=1)
    audio_duration: Optional[float] = Field(default=None, alias="audioDuration")
    art_style: Optional[str] = Field(default=None, alias="artStyle")


class ScenesResponse(BaseModel):
    scenes: list[ScenePrompt]


class ImagesRequest(BaseModel):
    """Prompts to turn into stills in display order, or a script to derive them from."""

    model_config = ConfigDict(populate_by_name=True)

    prompts: Optional[list[str]] = Field(default=None, min_length=1)
    script: Optional[str] = Field(default=None, min_length=1)
    audio_duration: Optional[float] = Field(default=None, alias="audioDuration")
    art_style: Optional[str] = Field(default=None, alias="artStyle")

    @model_validator(mode="after")
    def check_prompt_source(self) -> "ImagesRequest":
        if not self.prompts and not self.script:
            raise ValueError("Either prompts or script is required")
        return self


class ImagesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_images: list[ImageInput] = Field(..., alias="generatedImages")


def _raise_http(operation: str, error: CompositionError, logger) -> None:
    logger.error(format_error_message(operation, error, suggestion=get_failure_suggestion(error)))
    raise HTTPException(status_code=STATUS_BY_CATEGORY[error.category], detail=error.to_dict()) from error


@router.post("/compose", response_model=ComposeVideoResponse)
def compose_video(request: CompositionRequest) -> ComposeVideoResponse:
    """
    Compose an image-mode video.

    Runs synchronously: materialize → plan → compile → render → publish.
    """
    job_id = new_job_id()
    logger = get_logger(__name__, job_id=job_id)
    composer = build_composer(settings, logger)

    try:
        artifact = composer.compose(request, job_id=job_id)
    except CompositionError as e:
        _raise_http("Composing video", e, logger)

    return ComposeVideoResponse(
        job_id=artifact.job_id,
        url=artifact.public_url or str(artifact.local_path),
        duration_seconds=artifact.duration_seconds,
    )


@router.post("/merge", response_model=DispatchJobResponse)
def merge_background_video(request: BackgroundJobRequest) -> DispatchJobResponse:
    """Dispatch a background-video job and return its ID without waiting."""
    logger = get_logger(__name__, mode="background")
    dispatcher = BackgroundDispatcher(settings, logger)
    try:
        job_id = dispatcher.dispatch(request.audio_url, request.background_video_url)
    except CompositionError as e:
        _raise_http("Dispatching background job", e, logger)
    return DispatchJobResponse(job_id=job_id)


@router.get("/jobs/{job_id}", response_model=JobRecord)
def get_job(job_id: str) -> JobRecord:
    """Get the record of a background-video job."""
    logger = get_logger(__name__, job_id=job_id)
    record = JobRepository(settings, logger).load_job(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return record


@router.post("/narration", response_model=NarrationResponse)
def generate_narration(request: NarrationRequest) -> NarrationResponse:
    """Synthesize narration audio and SRT captions for a script."""
    logger = get_logger(__name__)
    try:
        client = NarrationClient(settings, logger)
        result = client.synthesize(request.text, voice=request.voice)
    except Exception as e:
        logger.error(format_error_message("Generating narration", e))
        raise HTTPException(status_code=500, detail=f"Narration generation failed: {str(e)}")

    return NarrationResponse(
        audio_url=result.data_uri,
        subtitles=result.subtitles,
        audio_duration=result.duration_seconds,
    )


def _plan_scenes(script: str, audio_duration: Optional[float], art_style: Optional[str], logger) -> list[ScenePrompt]:
    try:
        planner = ScenePlanner(settings, logger)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    try:
        return planner.plan_scenes(script, audio_duration or DEFAULT_NARRATION_SECONDS, style=art_style)
    except Exception as e:
        logger.error(format_error_message("Planning scenes", e))
        raise HTTPException(status_code=502, detail=f"Scene planning failed: {str(e)}")


@router.post("/scenes", response_model=ScenesResponse)
def plan_scenes(request: ScenesRequest) -> ScenesResponse:
    """Split a script into one image prompt per scene of its narration."""
    logger = get_logger(__name__)
    return ScenesResponse(scenes=_plan_scenes(request.script, request.audio_duration, request.art_style, logger))


@router.post("/images", response_model=ImagesResponse)
def generate_images(request: ImagesRequest) -> ImagesResponse:
    """
    Generate one still per prompt as inline data URIs.

    Without explicit prompts the script is first split into scene prompts,
    which already carry the art style.
    """
    logger = get_logger(__name__)
    try:
        client = ImageClient(settings, logger)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if request.prompts:
        images = client.generate_images(request.prompts, style=request.art_style)
    else:
        scenes = _plan_scenes(request.script, request.audio_duration, request.art_style, logger)
        images = client.generate_images([scene.prompt for scene in scenes])
    if not images:
        raise HTTPException(status_code=502, detail="No images could be generated")
    return ImagesResponse(generated_images=images)


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_videos(authorization: Optional[str] = Header(default=None)) -> CleanupResponse:
    """Delete stored videos older than the retention window."""
    if settings.cleanup_secret_token and authorization != f"Bearer {settings.cleanup_secret_token}":
        raise HTTPException(status_code=401, detail="Unauthorized")
    if settings.execution_mode != ExecutionMode.MANAGED:
        raise HTTPException(status_code=400, detail="Cleanup is only available in managed mode")

    logger = get_logger(__name__, task="cleanup")
    storage = SupabaseStorageClient(settings, logger)
    try:
        counts = cleanup_expired_videos(storage, settings.video_retention_days, logger)
    except CompositionError as e:
        _raise_http("Cleaning up videos", e, logger)
    return CleanupResponse(retention_days=settings.video_retention_days, **counts)
