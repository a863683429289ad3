"""Scene Planner - splits a narration script into ordered image prompts with an LLM."""

import json
import math
from typing import Any, Optional

from openai import OpenAI
from pydantic import BaseModel, Field

from shorts_factory.core.config import Settings
from shorts_factory.core.constants import MIN_SCENE_COUNT, SECONDS_PER_SCENE

DEFAULT_ART_STYLE = "cinematic, photorealistic"


class ScenePrompt(BaseModel):
    """One image prompt covering a slice of the narration."""

    order: int = Field(..., description="1-based display position")
    prompt: str = Field(..., min_length=1)
    timestamp: Optional[str] = Field(default=None, description="Approximate span, e.g. 0:05-0:10")


def scene_count(audio_duration_seconds: float) -> int:
    """Number of images for a narration: one per SECONDS_PER_SCENE, at least MIN_SCENE_COUNT."""
    if audio_duration_seconds is None or not math.isfinite(audio_duration_seconds) or audio_duration_seconds <= 0:
        return MIN_SCENE_COUNT
    return max(MIN_SCENE_COUNT, math.ceil(audio_duration_seconds / SECONDS_PER_SCENE))


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence (```json ... ```) wrapped around a model reply."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class ScenePlanner:
    """Asks an OpenAI chat model for exactly one prompt per scene."""

    def __init__(self, settings: Settings, logger: Any, client: Optional[OpenAI] = None):
        """
        Initialize scene planner.

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

    def plan_scenes(
        self,
        script: str,
        audio_duration_seconds: float,
        style: Optional[str] = None,
    ) -> list[ScenePrompt]:
        """
        Break ``script`` into ``scene_count(audio_duration_seconds)`` ordered prompts.

        Args:
            script: Narration script
            audio_duration_seconds: Narration length, which fixes the scene count
            style: Art style written into every prompt

        Returns:
            ScenePrompt list in display order, exactly scene_count long

        Raises:
            ValueError: If the script is empty or the reply has too few usable prompts
            Exception: If the OpenAI call fails
        """
        if not script or not script.strip():
            raise ValueError("Script cannot be empty")

        count = scene_count(audio_duration_seconds)
        style = style or DEFAULT_ART_STYLE
        self.logger.info(
            f"Audio duration: {audio_duration_seconds}s, planning {count} scenes with {self.settings.llm_model}"
        )

        try:
            response = self.client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": self._system_prompt(count, style)},
                    {"role": "user", "content": f"Break this script into exactly {count} image prompts:\n\n{script}"},
                ],
                temperature=self.settings.llm_temperature,
            )
        except Exception as e:
            raise Exception(f"OpenAI chat API error: {e}") from e

        content = response.choices[0].message.content or "[]"
        scenes = self._parse_scenes(content)

        if len(scenes) < count:
            raise ValueError(f"Expected {count} scene prompts, model returned {len(scenes)}")
        if len(scenes) > count:
            self.logger.warning(f"Model returned {len(scenes)} scene prompts, keeping the first {count}")
            scenes = scenes[:count]

        self.logger.info(f"Planned {len(scenes)} scene prompts")
        return scenes

    def _system_prompt(self, count: int, style: str) -> str:
        return f"""You are a visual storytelling expert. Break a script into exactly {count} sequential image prompts for AI image generation. Each image is shown for about {SECONDS_PER_SCENE:g} seconds.

Each image prompt should:
- Capture a key moment or scene from that part of the script
- Be detailed enough for an AI image generator to create a compelling visual
- Include the art style: "{style}"
- Keep one consistent visual style throughout
- Describe composition, lighting, mood and subject

Return a JSON array with exactly {count} objects:
[
  {{"order": 1, "prompt": "detailed image prompt", "timestamp": "0:00-0:05"}},
  ...
]

Return ONLY the JSON array, no other text."""

    def _parse_scenes(self, content: str) -> list[ScenePrompt]:
        try:
            data = json.loads(strip_code_fences(content))
        except json.JSONDecodeError as e:
            self.logger.error(f"Scene prompts are not valid JSON: {content[:200]!r}")
            raise ValueError("Failed to parse scene prompts from model response") from e

        # Accept a bare array or an object wrapping one
        if isinstance(data, dict):
            data = data.get("prompts") or data.get("scenes") or []
        if not isinstance(data, list):
            raise ValueError("Failed to parse scene prompts from model response")

        scenes = []
        for position, item in enumerate(data, start=1):
            if isinstance(item, str):
                item = {"prompt": item}
            if not isinstance(item, dict) or not str(item.get("prompt") or "").strip():
                self.logger.warning(f"Skipping unusable scene prompt at position {position}")
                continue
            scenes.append(
                ScenePrompt(
                    order=item.get("order") or position,
                    prompt=str(item["prompt"]).strip(),
                    timestamp=item.get("timestamp"),
                )
            )

        # Ties keep reply order
        scenes.sort(key=lambda scene: scene.order)
        return scenes
