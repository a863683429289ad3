"""Narration client - OpenAI text-to-speech plus SRT transcription."""

import base64
from typing import Any, Optional

from openai import OpenAI
from pydantic import BaseModel, Field

from shorts_factory.core.config import Settings
from shorts_factory.services.subtitles import srt_end_seconds

# Used when no transcript is available to measure the narration.
DEFAULT_NARRATION_SECONDS = 30.0


class NarrationResult(BaseModel):
    """Synthesized narration ready to feed a composition request."""

    audio_bytes: bytes = Field(..., repr=False)
    data_uri: str = Field(..., repr=False)
    subtitles: str = Field(default="", description="SRT captions, empty when transcription failed")
    duration_seconds: float


class NarrationClient:
    """Generates narration audio and its caption track."""

    def __init__(self, settings: Settings, logger: Any, client: Optional[OpenAI] = None):
        """
        Initialize narration client.

        Args:
            settings: Application settings
            logger: Logger instance
            client: Optional preconfigured OpenAI client
        """
        self.settings = settings
        self.logger = logger
        if client is None:
            if not settings.openai_api_key:
                raise ValueError("OpenAI API key not configured")
            client = OpenAI(api_key=settings.openai_api_key)
        self.client = client

    def synthesize(self, text: str, voice: Optional[str] = None) -> NarrationResult:
        """
        Generate speech for ``text`` and transcribe it into SRT captions.

        The narration duration is the end of the last caption cue; without a
        transcript it falls back to DEFAULT_NARRATION_SECONDS.

        Args:
            text: Narration script
            voice: OpenAI voice name (defaults to settings.tts_voice)

        Returns:
            NarrationResult
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        voice = voice or self.settings.tts_voice
        self.logger.info(f"Generating narration with {self.settings.tts_model}/{voice} for {len(text)} characters...")
        try:
            response = self.client.audio.speech.create(
                model=self.settings.tts_model,
                voice=voice,
                input=text,
            )
        except Exception as e:
            raise Exception(f"OpenAI TTS API error: {e}") from e

        audio_bytes = response.content
        data_uri = f"data:audio/mp3;base64,{base64.b64encode(audio_bytes).decode('ascii')}"
        self.logger.info("Narration generated successfully")

        subtitles = self.transcribe(audio_bytes)
        duration = srt_end_seconds(subtitles) or DEFAULT_NARRATION_SECONDS
        return NarrationResult(
            audio_bytes=audio_bytes,
            data_uri=data_uri,
            subtitles=subtitles,
            duration_seconds=duration,
        )

    def transcribe(self, audio_bytes: bytes) -> str:
        """
        Transcribe narration audio to SRT.

        Captions are optional, so any failure is logged and an empty track returned.
        """
        try:
            srt = self.client.audio.transcriptions.create(
                model=self.settings.transcription_model,
                file=("audio.mp3", audio_bytes),
                response_format="srt",
            )
        except Exception as e:
            self.logger.warning(f"Transcription failed, continuing without subtitles: {e}")
            return ""
        self.logger.info("Subtitles generated successfully")
        return srt if isinstance(srt, str) else str(srt)
