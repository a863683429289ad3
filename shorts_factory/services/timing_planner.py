"""Timing Planner - splits the narration duration evenly across images."""

import math
from typing import Any

from shorts_factory.core.config import Settings
from shorts_factory.core.constants import FPS, OUTPUT_DURATION_PAD_SECONDS, TRANSITION_OVERLAP_SECONDS
from shorts_factory.models.schemas import TimingPlan
from shorts_factory.utils.error_handler import InputValidationError


class TimingPlanner:
    """Computes per-image display duration and frame count."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize timing planner.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.fps = FPS
        self.transition_overlap_seconds = TRANSITION_OVERLAP_SECONDS

    def plan(self, image_count: int, audio_duration_seconds: float) -> TimingPlan:
        """
        Build a TimingPlan whose overlapped image sequence spans the audio exactly.

        Every cross-fade overlaps two neighbouring clips, so N clips of duration d
        with N-1 overlaps cover ``N*d - (N-1)*overlap`` seconds; solving that for
        the audio duration gives d. A single image has no overlap and simply
        lasts as long as the audio.

        Args:
            image_count: Number of images (must be at least 1)
            audio_duration_seconds: Narration duration (must be positive)

        Returns:
            TimingPlan

        Raises:
            InputValidationError: If there are no images, the duration is not positive,
                or several images would each be no longer than one cross-fade
        """
        if image_count < 1:
            raise InputValidationError("Image mode requires at least one image")
        if audio_duration_seconds is None or not math.isfinite(audio_duration_seconds) or audio_duration_seconds <= 0:
            raise InputValidationError(f"Audio duration must be a positive number, got {audio_duration_seconds!r}")

        overlap = self.transition_overlap_seconds
        if image_count == 1:
            per_image = float(audio_duration_seconds)
        else:
            per_image = (audio_duration_seconds + (image_count - 1) * overlap) / image_count
            # Each clip must outlast its cross-fade or the xfade offsets stop increasing.
            if per_image <= overlap:
                raise InputValidationError(
                    f"Audio of {audio_duration_seconds:.3f}s is too short to cross-fade {image_count} images; "
                    f"it must be longer than the {overlap}s transition"
                )

        frame_count = math.ceil(per_image * self.fps)

        plan = TimingPlan(
            image_count=image_count,
            audio_duration_seconds=audio_duration_seconds,
            per_image_duration_seconds=per_image,
            per_image_frame_count=frame_count,
            transition_overlap_seconds=overlap,
            fps=self.fps,
            output_duration_cap_seconds=audio_duration_seconds + OUTPUT_DURATION_PAD_SECONDS,
        )
        self.logger.info(
            f"Timing plan: {image_count} images x {per_image:.3f}s ({frame_count} frames @ {self.fps}fps), "
            f"overlap {overlap}s, audio {audio_duration_seconds:.3f}s"
        )
        return plan
