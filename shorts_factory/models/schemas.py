"""Pydantic models and schemas for the video composition pipeline."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Enums
# ============================================================================


class ExecutionMode(str, Enum):
    """Where the finished video ends up."""

    LOCAL = "local"
    MANAGED = "managed"


class PanDirection(str, Enum):
    """Corner the zoomed viewport is pinned to while zooming in."""

    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


class ErrorCategory(str, Enum):
    """Failure category reported to callers."""

    INPUT = "input"
    RENDER = "render"
    STORAGE = "storage"


class JobStatus(str, Enum):
    """Lifecycle status of a background-video job."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ============================================================================
# Request Models
# ============================================================================


class ImageInput(BaseModel):
    """One still image in display order."""

    model_config = ConfigDict(populate_by_name=True)

    order: int = Field(..., description="Display sequence key")
    source: str = Field(..., alias="imageUrl", description="http(s) URL or data: URI")
    prompt: Optional[str] = Field(default=None, description="Prompt the image was generated from (informational)")


class CompositionRequest(BaseModel):
    """Input to the composition pipeline (image mode or background-video mode)."""

    model_config = ConfigDict(populate_by_name=True)

    audio: str = Field(..., alias="audioUrl", description="Narration audio as a data: URI (or URL in background mode)")
    audio_duration_seconds: Optional[float] = Field(
        default=None, alias="audioDuration", description="Authoritative narration duration in seconds"
    )
    caption_track: Optional[str] = Field(default=None, alias="subtitles", description="SRT caption track")
    images: list[ImageInput] = Field(default_factory=list, alias="generatedImages", description="Ordered still images")
    background_video_url: Optional[str] = Field(
        default=None, alias="backgroundVideoUrl", description="Background video for background-video mode"
    )

    def ordered_images(self) -> list[ImageInput]:
        """Images sorted by order; ties keep their input order."""
        return sorted(self.images, key=lambda image: image.order)


class BackgroundJobRequest(BaseModel):
    """Background-video mode request as received over HTTP."""

    model_config = ConfigDict(populate_by_name=True)

    audio_url: str = Field(..., alias="audioUrl", description="Narration audio URL")
    background_video_url: Optional[str] = Field(
        default=None, alias="backgroundVideoUrl", description="Background video URL (default used when omitted)"
    )


# ============================================================================
# Pipeline Models
# ============================================================================


class WorkspaceAssets(BaseModel):
    """Local copies of a request's inputs inside its workspace."""

    root: Path = Field(..., description="Workspace directory")
    audio_file: Path = Field(..., description="Narration audio file")
    caption_file: Optional[Path] = Field(default=None, description="SRT file, absent when no captions")
    image_files: list[Path] = Field(default_factory=list, description="Image files in display order")


class TimingPlan(BaseModel):
    """Uniform per-image schedule that spans the narration exactly."""

    image_count: int = Field(..., ge=1)
    audio_duration_seconds: float = Field(..., gt=0)
    per_image_duration_seconds: float = Field(..., gt=0)
    per_image_frame_count: int = Field(..., ge=1)
    transition_overlap_seconds: float = Field(...)
    fps: int = Field(...)
    output_duration_cap_seconds: float = Field(..., description="Audio duration plus a fixed pad")

    @property
    def transition_count(self) -> int:
        return max(0, self.image_count - 1)


class MotionPlan(BaseModel):
    """Pan/zoom trajectory for one image."""

    index: int = Field(..., ge=0, description="Position in display order")
    direction: PanDirection
    zoom_start: float
    zoom_end: float
    frame_count: int = Field(..., ge=1)

    @property
    def zoom_increment_per_frame(self) -> float:
        return (self.zoom_end - self.zoom_start) / self.frame_count


class TransitionLink(BaseModel):
    """Cross-fade between the merged stream so far and the next clip."""

    index: int = Field(..., ge=1, description="1-indexed link number")
    left_label: str
    right_label: str
    output_label: str
    offset_seconds: float = Field(..., description="Fade start on the merged timeline")
    duration_seconds: float


class TransitionChain(BaseModel):
    """Ordered cross-fades; final_label names the merged video stream."""

    links: list[TransitionLink] = Field(default_factory=list)
    final_label: str


class RenderArtifact(BaseModel):
    """Finished video, either stored remotely or kept on local disk."""

    job_id: str
    duration_seconds: float
    local_path: Optional[Path] = None
    public_url: Optional[str] = None


# ============================================================================
# Job Records & Responses
# ============================================================================


class JobRecord(BaseModel):
    """Persisted record of a dispatched background-video job."""

    job_id: str
    status: JobStatus = JobStatus.PROCESSING
    audio_url: str
    background_url: str
    output_path: str
    max_duration_seconds: int
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    error: Optional[str] = None


class ComposeVideoResponse(BaseModel):
    """Response for an image-mode composition."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    url: str = Field(..., description="Public URL (managed mode) or local path (local mode)")
    duration_seconds: float = Field(..., alias="durationSeconds")


class DispatchJobResponse(BaseModel):
    """Response for a background-video dispatch."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")


class CleanupResponse(BaseModel):
    """Result of a retention sweep over stored videos."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    deleted: int
    kept: int
    errors: int
    retention_days: int = Field(..., alias="retentionDays")
