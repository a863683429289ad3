"""FLUX image client - generates portrait stills for image-mode videos."""

import base64
import time
from typing import Any, Optional

import requests

from shorts_factory.core.config import Settings
from shorts_factory.models.schemas import ImageInput
from shorts_factory.utils.error_handler import format_error_message

IMAGE_WIDTH = 720
IMAGE_HEIGHT = 1280


class ImageClient:
    """Client for Black Forest Labs FLUX: submit a prompt, poll, download."""

    def __init__(self, settings: Settings, logger: Any, poll_interval_seconds: float = 1.0):
        """
        Initialize the image client.

        Args:
            settings: Application settings
            logger: Logger instance
            poll_interval_seconds: Delay between polls of a pending generation
        """
        self.settings = settings
        self.logger = logger
        self.api_key = settings.flux_api_key
        self.api_url = settings.flux_api_url
        self.max_poll_attempts = settings.flux_max_poll_attempts
        self.poll_interval_seconds = poll_interval_seconds

        if not self.api_key:
            raise ValueError("FLUX_API_KEY not configured. Set FLUX_API_KEY in .env file.")

    def generate_image(self, prompt: str) -> bytes:
        """
        Generate one image and return its bytes.

        Raises:
            Exception: If submission, polling or download fails
        """
        headers = {"Content-Type": "application/json", "x-key": self.api_key}
        payload = {
            "prompt": prompt,
            "width": IMAGE_WIDTH,
            "height": IMAGE_HEIGHT,
            "output_format": "png",
            "safety_tolerance": 2,
        }

        response = requests.post(self.api_url, json=payload, headers=headers, timeout=30)
        if response.status_code != 200:
            raise Exception(f"FLUX request failed: status {response.status_code} - {response.text[:500]}")

        polling_url = response.json().get("polling_url")
        if not polling_url:
            raise Exception("FLUX response has no polling_url")

        sample_url = self._poll(polling_url)

        image_response = requests.get(sample_url, timeout=60)
        if image_response.status_code != 200:
            raise Exception(f"Downloading generated image failed: status {image_response.status_code}")
        return image_response.content

    def _poll(self, polling_url: str) -> str:
        for attempt in range(self.max_poll_attempts):
            time.sleep(self.poll_interval_seconds)
            response = requests.get(polling_url, headers={"x-key": self.api_key}, timeout=30)
            if response.status_code != 200:
                self.logger.warning(f"Poll {attempt + 1} failed with status {response.status_code}")
                continue

            data = response.json()
            status = data.get("status")
            if status == "Ready":
                self.logger.debug(f"Image ready after {attempt + 1} polls")
                return data["result"]["sample"]
            if status == "Error":
                raise Exception(f"FLUX generation failed: {data}")

        raise Exception(f"FLUX generation not ready after {self.max_poll_attempts} polls")

    def generate_images(self, prompts: list[str], style: Optional[str] = None) -> list[ImageInput]:
        """
        Generate one image per prompt, in order.

        A prompt whose generation fails is logged and left out, so the result
        can be shorter than ``prompts``.

        Args:
            prompts: Image prompts in display order
            style: Optional art style appended to every prompt

        Returns:
            ImageInput list with inline data: URIs
        """
        images = []
        for order, prompt in enumerate(prompts, start=1):
            full_prompt = f"{prompt}, {style}" if style else prompt
            self.logger.info(f"Generating image {order}/{len(prompts)}...")
            try:
                data = self.generate_image(full_prompt)
            except Exception as e:
                self.logger.error(format_error_message("Generating image", e, context={"order": order}))
                continue
            images.append(
                ImageInput(
                    order=order,
                    source=f"data:image/png;base64,{base64.b64encode(data).decode('ascii')}",
                    prompt=prompt,
                )
            )

        self.logger.info(f"Successfully generated {len(images)}/{len(prompts)} images")
        return images
