"""Motion & Transition Planner - Ken Burns directions and the cross-fade chain."""

import random
from typing import Any, Callable, Optional, Sequence

from shorts_factory.core.config import Settings
from shorts_factory.core.constants import ZOOM_END, ZOOM_START
from shorts_factory.models.schemas import MotionPlan, PanDirection, TimingPlan, TransitionChain, TransitionLink

DirectionChooser = Callable[[Sequence[PanDirection]], PanDirection]

DIRECTIONS: tuple[PanDirection, ...] = tuple(PanDirection)

# Viewport origin for each direction, as zoompan expressions over the input
# size (iw, ih) and the current zoom. Pinning the origin to a corner while the
# viewport shrinks reads as a pan toward the opposite corner.
PAN_OFFSETS: dict[PanDirection, tuple[str, str]] = {
    PanDirection.TOP_LEFT: ("0", "0"),
    PanDirection.TOP_RIGHT: ("iw-iw/zoom", "0"),
    PanDirection.BOTTOM_LEFT: ("0", "ih-ih/zoom"),
    PanDirection.BOTTOM_RIGHT: ("iw-iw/zoom", "ih-ih/zoom"),
}


def clip_label(index: int) -> str:
    """Stream label of the motion clip for image ``index`` (0-based)."""
    return f"v{index}"


def merged_label(link_index: int) -> str:
    """Stream label produced by cross-fade link ``link_index`` (1-based)."""
    return f"x{link_index}"


def pan_offsets(direction: PanDirection) -> tuple[str, str]:
    """Return the (x, y) zoompan expressions for a direction."""
    return PAN_OFFSETS[direction]


class MotionPlanner:
    """Picks a pan/zoom direction per image and links the clips with cross-fades."""

    def __init__(self, settings: Settings, logger: Any, chooser: Optional[DirectionChooser] = None):
        """
        Initialize motion planner.

        Args:
            settings: Application settings
            logger: Logger instance
            chooser: Picks one direction from the candidates (defaults to random.choice)
        """
        self.settings = settings
        self.logger = logger
        self.chooser = chooser or random.choice

    def plan_motions(self, timing: TimingPlan) -> list[MotionPlan]:
        """Draw one direction per image, independently (repeats allowed)."""
        motions = []
        for index in range(timing.image_count):
            direction = PanDirection(self.chooser(DIRECTIONS))
            motions.append(
                MotionPlan(
                    index=index,
                    direction=direction,
                    zoom_start=ZOOM_START,
                    zoom_end=ZOOM_END,
                    frame_count=timing.per_image_frame_count,
                )
            )
        self.logger.debug(f"Motion directions: {[m.direction.value for m in motions]}")
        return motions

    def plan_transitions(self, timing: TimingPlan) -> TransitionChain:
        """
        Build the cross-fade chain in image order.

        Link i fades the merged stream of clips 0..i-1 into clip i. Its offset
        is measured on the merged timeline, which is i clips long minus the i-1
        overlaps already consumed, and the fade starts one overlap before that
        end: ``d*i - overlap*i``.
        """
        if timing.image_count == 1:
            return TransitionChain(links=[], final_label=clip_label(0))

        d = timing.per_image_duration_seconds
        overlap = timing.transition_overlap_seconds
        links = []
        previous = clip_label(0)
        for i in range(1, timing.image_count):
            output = merged_label(i)
            links.append(
                TransitionLink(
                    index=i,
                    left_label=previous,
                    right_label=clip_label(i),
                    output_label=output,
                    offset_seconds=d * i - overlap * i,
                    duration_seconds=overlap,
                )
            )
            previous = output

        return TransitionChain(links=links, final_label=previous)

    def plan(self, timing: TimingPlan) -> tuple[list[MotionPlan], TransitionChain]:
        return self.plan_motions(timing), self.plan_transitions(timing)
