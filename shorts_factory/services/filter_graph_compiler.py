"""Filter Graph Compiler - turns timing and motion plans into one ffmpeg invocation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from shorts_factory.core.config import Settings
from shorts_factory.core.constants import (
    AUDIO_CODEC,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CAPTION_ALIGNMENT,
    CAPTION_BACK_COLOUR,
    CAPTION_BORDER_STYLE,
    CAPTION_FONT_NAME,
    CAPTION_FONT_SIZE,
    CAPTION_MARGIN_H,
    CAPTION_MARGIN_V,
    CAPTION_OUTLINE,
    CAPTION_PRIMARY_COLOUR,
    CAPTION_SHADOW,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
    PIXEL_FORMAT,
    TRANSITION_NAME,
    VIDEO_CODEC,
)
from shorts_factory.models.schemas import MotionPlan, TimingPlan, TransitionChain, WorkspaceAssets
from shorts_factory.services.motion_planner import clip_label, pan_offsets
from shorts_factory.utils.error_handler import RenderError
from shorts_factory.utils.filter_graph import Filter, FilterGraph, Quoted, escape_filter_path, format_number

CAPTIONED_LABEL = "vout"

CAPTION_STYLE = ",".join(
    [
        f"FontName={CAPTION_FONT_NAME}",
        f"FontSize={CAPTION_FONT_SIZE}",
        f"PrimaryColour={CAPTION_PRIMARY_COLOUR}",
        f"BackColour={CAPTION_BACK_COLOUR}",
        f"OutlineColour={CAPTION_BACK_COLOUR}",
        f"BorderStyle={CAPTION_BORDER_STYLE}",
        f"Outline={CAPTION_OUTLINE}",
        f"Shadow={CAPTION_SHADOW}",
        f"Alignment={CAPTION_ALIGNMENT}",
        f"MarginL={CAPTION_MARGIN_H}",
        f"MarginR={CAPTION_MARGIN_H}",
        f"MarginV={CAPTION_MARGIN_V}",
    ]
)


@dataclass
class RenderCommand:
    """Everything the render engine needs for one single-pass render."""

    graph: FilterGraph
    image_inputs: list[Path]
    audio_input: Path
    video_label: str
    duration_cap_seconds: float
    output_path: Path
    video_preset: str
    video_crf: int
    audio_bitrate: str

    @property
    def audio_input_index(self) -> int:
        return len(self.image_inputs)

    @property
    def has_captions(self) -> bool:
        return bool(self.graph.filters_named("subtitles"))

    def to_args(self, binary: str = "ffmpeg") -> list[str]:
        """Serialize to an argument vector for subprocess; the engine only reports errors."""
        args = [binary, "-hide_banner", "-loglevel", "error", "-y"]
        for image in self.image_inputs:
            args += ["-i", str(image)]
        args += ["-i", str(self.audio_input)]
        args += [
            "-filter_complex", self.graph.render(),
            "-map", f"[{self.video_label}]",
            "-map", f"{self.audio_input_index}:a",
            "-c:v", VIDEO_CODEC,
            "-preset", self.video_preset,
            "-crf", str(self.video_crf),
            "-pix_fmt", PIXEL_FORMAT,
            "-c:a", AUDIO_CODEC,
            "-b:a", self.audio_bitrate,
            "-t", format_number(self.duration_cap_seconds),
            "-movflags", "+faststart",
            str(self.output_path),
        ]
        return args


class FilterGraphCompiler:
    """Builds the per-image, cross-fade and caption stages as one filter graph."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize filter graph compiler.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger

    def compile(
        self,
        assets: WorkspaceAssets,
        timing: TimingPlan,
        motions: list[MotionPlan],
        chain: TransitionChain,
        output_path: Path,
    ) -> RenderCommand:
        """
        Compile a RenderCommand for the image-composition mode.

        The result depends only on the arguments: stream labels come from image
        indices and directions are taken from ``motions`` as given.

        Args:
            assets: Materialized workspace files
            timing: Timing plan for the images
            motions: One motion plan per image, in display order
            chain: Cross-fade chain over the motion clips
            output_path: Where the engine writes the MP4

        Returns:
            RenderCommand

        Raises:
            RenderError: If an asset is missing or the plans do not match the assets
        """
        self._check_assets(assets)
        if len(motions) != len(assets.image_files) or timing.image_count != len(assets.image_files):
            raise RenderError(
                f"Plan/asset mismatch: {len(assets.image_files)} images, {len(motions)} motion plans, "
                f"timing for {timing.image_count}"
            )

        graph = FilterGraph()

        for motion in sorted(motions, key=lambda m: m.index):
            graph.add([f"{motion.index}:v"], self._motion_filters(motion, timing), [clip_label(motion.index)])

        for link in chain.links:
            graph.add(
                [link.left_label, link.right_label],
                [
                    Filter.make(
                        "xfade",
                        transition=TRANSITION_NAME,
                        duration=link.duration_seconds,
                        offset=link.offset_seconds,
                    )
                ],
                [link.output_label],
            )

        video_label = chain.final_label
        if assets.caption_file is not None:
            graph.add([video_label], [self._caption_filter(assets.caption_file)], [CAPTIONED_LABEL])
            video_label = CAPTIONED_LABEL

        command = RenderCommand(
            graph=graph,
            image_inputs=list(assets.image_files),
            audio_input=assets.audio_file,
            video_label=video_label,
            duration_cap_seconds=timing.output_duration_cap_seconds,
            output_path=output_path,
            video_preset=self.settings.video_preset,
            video_crf=self.settings.video_crf,
            audio_bitrate=self.settings.audio_bitrate,
        )
        self.logger.debug(f"Compiled filter graph with {len(graph.chains)} chains (captions={command.has_captions})")
        return command

    def _check_assets(self, assets: WorkspaceAssets) -> None:
        if not assets.image_files:
            raise RenderError("No image files to compile")
        required = [assets.audio_file, *assets.image_files]
        if assets.caption_file is not None:
            required.append(assets.caption_file)
        missing = [str(path) for path in required if not Path(path).is_file()]
        if missing:
            raise RenderError(f"Asset files missing before compilation: {', '.join(missing)}")

    def _motion_filters(self, motion: MotionPlan, timing: TimingPlan) -> list[Filter]:
        """Upscale onto the canvas, zoom/pan there, then downscale to the output size."""
        x_expr, y_expr = pan_offsets(motion.direction)
        zoom_expr = (
            f"min(zoom+{format_number(motion.zoom_increment_per_frame)},{format_number(motion.zoom_end)})"
        )
        return [
            Filter.make(
                "scale",
                w=CANVAS_WIDTH,
                h=CANVAS_HEIGHT,
                force_original_aspect_ratio="decrease",
            ),
            Filter.make(
                "pad",
                w=CANVAS_WIDTH,
                h=CANVAS_HEIGHT,
                x="(ow-iw)/2",
                y="(oh-ih)/2",
                color="black",
            ),
            Filter.make("setsar", sar=1),
            Filter.make(
                "zoompan",
                z=Quoted(zoom_expr),
                x=Quoted(x_expr),
                y=Quoted(y_expr),
                d=motion.frame_count,
                s=f"{CANVAS_WIDTH}x{CANVAS_HEIGHT}",
                fps=timing.fps,
            ),
            Filter.make("scale", w=OUTPUT_WIDTH, h=OUTPUT_HEIGHT),
            Filter.make("setsar", sar=1),
            Filter.make("format", pix_fmts=PIXEL_FORMAT),
        ]

    def _caption_filter(self, caption_file: Path) -> Filter:
        return Filter.make(
            "subtitles",
            filename=Quoted(escape_filter_path(str(caption_file))),
            force_style=Quoted(CAPTION_STYLE),
        )
