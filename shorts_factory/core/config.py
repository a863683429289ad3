"""Application configuration using pydantic-settings."""

import tempfile
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shorts_factory.models.schemas import ExecutionMode


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    Render geometry, timing and caption style are fixed constants and live in
    shorts_factory.core.constants, not here.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Faceless Shorts Factory", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")

    # ========================================================================
    # Execution Environment
    # ========================================================================
    execution_mode: ExecutionMode = Field(
        default=ExecutionMode.LOCAL,
        description="'local' keeps the final video under LOCAL_OUTPUT_DIR, 'managed' uploads it and deletes the local copy",
    )
    scratch_root: str = Field(
        default=str(Path(tempfile.gettempdir()) / "shorts_factory"),
        description="Parent directory for per-request workspaces",
    )
    local_output_dir: str = Field(
        default="outputs/videos", description="Where finished videos are kept in local mode"
    )

    # ========================================================================
    # Render Engine Settings
    # ========================================================================
    ffmpeg_binary: str = Field(default="ffmpeg", description="Path or name of the ffmpeg executable")
    video_preset: str = Field(default="veryfast", description="libx264 preset")
    video_crf: int = Field(default=23, description="libx264 constant rate factor (lower is better quality)")
    audio_bitrate: str = Field(default="192k", description="AAC audio bitrate")
    render_log_max_bytes: int = Field(
        default=32 * 1024 * 1024,
        description="Maximum bytes of engine output kept for diagnostics (tail is retained)",
    )

    # ========================================================================
    # Asset Download Settings
    # ========================================================================
    image_fetch_timeout_seconds: float = Field(default=30.0, description="Timeout per image download")
    max_parallel_downloads: int = Field(
        default=0,
        description="Maximum concurrent image downloads (0 = one worker per image)",
    )

    # ========================================================================
    # Storage Settings
    # ========================================================================
    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_service_role_key: Optional[str] = Field(default=None, description="Supabase service role key")
    video_storage_bucket: str = Field(default="generated-videos", description="Storage bucket for finished videos")
    video_retention_days: int = Field(default=7, description="Days to keep uploaded videos before cleanup")
    cleanup_secret_token: Optional[str] = Field(
        default=None, description="Bearer token required by the cleanup endpoint (optional)"
    )
    job_storage_path: str = Field(default="storage/jobs", description="Storage path for job records")

    # ========================================================================
    # Narration & Image Generation Settings
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key for narration and scene prompts")
    tts_model: str = Field(default="tts-1", description="OpenAI TTS model")
    tts_voice: str = Field(default="alloy", description="Default OpenAI TTS voice")
    transcription_model: str = Field(default="whisper-1", description="OpenAI transcription model")
    llm_model: str = Field(default="gpt-4o", description="OpenAI chat model that splits scripts into scene prompts")
    llm_temperature: float = Field(default=0.7, description="Sampling temperature for scene prompts")
    flux_api_key: Optional[str] = Field(default=None, description="Black Forest Labs API key")
    flux_api_url: str = Field(default="https://api.bfl.ai/v1/flux-2-pro", description="FLUX generation endpoint")
    flux_max_poll_attempts: int = Field(default=60, description="Polling attempts (one per second) per image")

    # ========================================================================
    # Background Video Mode
    # ========================================================================
    background_worker_url: str = Field(
        default="http://localhost:3000/process",
        description="Rendering worker endpoint for background-video jobs",
    )
    default_background_video_url: str = Field(
        default="https://github.com/mateus-pulsar/static-video-hosting/releases/download/0.0.1/minecraft_1.mp4",
        description="Background video used when a request does not name one",
    )
    background_max_duration_seconds: int = Field(default=60, description="Max duration sent to the worker")
    worker_request_timeout_seconds: float = Field(default=15.0, description="Timeout for the worker dispatch call")


# Global settings instance
settings = Settings()
