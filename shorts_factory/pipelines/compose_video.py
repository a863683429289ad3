"""Composition pipeline orchestrator - request -> assets -> plans -> render -> publish."""

import argparse
import base64
import mimetypes
import sys
import time
from pathlib import Path
from typing import Any, Optional

from shorts_factory.core.config import Settings, settings
from shorts_factory.core.constants import OUTPUT_FILE_NAME
from shorts_factory.core.logging_config import get_logger, setup_logging
from shorts_factory.models.schemas import CompositionRequest, ExecutionMode, ImageInput, RenderArtifact
from shorts_factory.services.asset_materializer import AssetMaterializer
from shorts_factory.services.filter_graph_compiler import FilterGraphCompiler
from shorts_factory.services.motion_planner import MotionPlanner
from shorts_factory.services.render_executor import RenderExecutor
from shorts_factory.services.storage_client import SupabaseStorageClient
from shorts_factory.services.subtitles import parse_srt
from shorts_factory.services.timing_planner import TimingPlanner
from shorts_factory.services.workspace_manager import WorkspaceManager
from shorts_factory.utils.error_handler import (
    CompositionError,
    InputValidationError,
    format_error_message,
    get_failure_suggestion,
)
from shorts_factory.utils.io_utils import new_job_id


class VideoComposer:
    """Runs one image-mode composition request end to end."""

    def __init__(
        self,
        settings: Settings,
        logger: Any,
        workspace_manager: WorkspaceManager,
        materializer: Optional[AssetMaterializer] = None,
        timing_planner: Optional[TimingPlanner] = None,
        motion_planner: Optional[MotionPlanner] = None,
        compiler: Optional[FilterGraphCompiler] = None,
        executor: Optional[RenderExecutor] = None,
    ):
        """
        Initialize the composer.

        Args:
            settings: Application settings
            logger: Logger instance
            workspace_manager: Owns scratch directories and the final hand-off
            materializer, timing_planner, motion_planner, compiler, executor:
                Optional stage overrides (built from settings when omitted)
        """
        self.settings = settings
        self.logger = logger
        self.workspace_manager = workspace_manager
        self.materializer = materializer or AssetMaterializer(settings, logger)
        self.timing_planner = timing_planner or TimingPlanner(settings, logger)
        self.motion_planner = motion_planner or MotionPlanner(settings, logger)
        self.compiler = compiler or FilterGraphCompiler(settings, logger)
        self.executor = executor or RenderExecutor(settings, logger)

    def compose(self, request: CompositionRequest, job_id: Optional[str] = None) -> RenderArtifact:
        """
        Render ``request`` and publish the result.

        All-or-nothing: either a RenderArtifact is returned or one
        CompositionError is raised. The workspace is removed in both cases.

        Args:
            request: Image-mode composition request
            job_id: Optional request identifier (a fresh one when omitted)

        Returns:
            RenderArtifact

        Raises:
            CompositionError: InputValidationError, AssetFetchError, RenderError or PublishError
        """
        job_id = job_id or new_job_id()
        self._validate(request)
        request = self._drop_empty_captions(request)

        self.logger.info("=" * 60)
        self.logger.info(f"Starting composition {job_id}")
        self.logger.info(
            f"Images: {len(request.images)}, audio: {request.audio_duration_seconds:.2f}s, "
            f"captions: {bool(request.caption_track)}, mode: {self.workspace_manager.mode.value}"
        )
        self.logger.info("=" * 60)
        start_time = time.time()

        # Invalid input fails here, before any disk or network work.
        timing = self.timing_planner.plan(len(request.images), request.audio_duration_seconds)
        motions, chain = self.motion_planner.plan(timing)

        with self.workspace_manager.workspace(job_id) as workspace_dir:
            self.logger.info("Step 1: Materializing assets...")
            assets = self.materializer.materialize(request, workspace_dir)

            self.logger.info("Step 2: Compiling filter graph...")
            command = self.compiler.compile(assets, timing, motions, chain, workspace_dir / OUTPUT_FILE_NAME)

            self.logger.info("Step 3: Rendering...")
            output_path = self.executor.execute(command)

            self.logger.info("Step 4: Publishing...")
            location = self.workspace_manager.publish(output_path, job_id)

        if self.workspace_manager.mode == ExecutionMode.MANAGED:
            artifact = RenderArtifact(
                job_id=job_id, duration_seconds=timing.output_duration_cap_seconds, public_url=location
            )
        else:
            artifact = RenderArtifact(
                job_id=job_id, duration_seconds=timing.output_duration_cap_seconds, local_path=Path(location)
            )

        self.logger.info(f"✅ Composition {job_id} complete in {time.time() - start_time:.2f}s: {location}")
        return artifact

    def _validate(self, request: CompositionRequest) -> None:
        if request.background_video_url and request.images:
            raise InputValidationError("A request is either image mode or background-video mode, not both")
        if not request.images:
            raise InputValidationError("Image mode requires at least one image")
        if not request.audio or not request.audio.strip():
            raise InputValidationError("Narration audio is required")
        if request.audio_duration_seconds is None:
            raise InputValidationError("Audio duration is required")

    def _drop_empty_captions(self, request: CompositionRequest) -> CompositionRequest:
        if request.caption_track and request.caption_track.strip():
            cues = parse_srt(request.caption_track)
            if cues:
                self.logger.debug(f"Caption track has {len(cues)} cues")
                return request
            self.logger.warning("Caption track has no parseable cues, rendering without captions")
        return request.model_copy(update={"caption_track": None})


def build_composer(settings: Settings, logger: Any, mode: Optional[ExecutionMode] = None) -> VideoComposer:
    """Wire a VideoComposer from settings; the execution mode is read only here."""
    mode = ExecutionMode(mode or settings.execution_mode)
    storage = SupabaseStorageClient(settings, logger) if mode == ExecutionMode.MANAGED else None
    workspace_manager = WorkspaceManager(settings, logger, mode=mode, storage=storage)
    return VideoComposer(settings, logger, workspace_manager)


def _file_to_data_uri(path: Path, default_mime: str) -> str:
    mime_type = mimetypes.guess_type(path.name)[0] or default_mime
    return f"data:{mime_type};base64,{base64.b64encode(path.read_bytes()).decode('ascii')}"


def main():
    """Main entrypoint: compose a video from local files."""
    parser = argparse.ArgumentParser(
        description="Faceless Shorts Factory - compose a vertical video from narration and images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--audio", type=str, required=True, help="Narration audio file (mp3/wav)")
    parser.add_argument(
        "--duration",
        type=float,
        required=True,
        help="Narration duration in seconds (authoritative output length)",
    )
    parser.add_argument(
        "--image",
        type=str,
        action="append",
        required=True,
        help="Image file, repeat for each image in display order",
    )
    parser.add_argument("--captions", type=str, default=None, help="Optional SRT caption file")
    parser.add_argument(
        "--mode",
        type=str,
        default=None,
        choices=[mode.value for mode in ExecutionMode],
        help="Execution mode (default: EXECUTION_MODE setting)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Optional log file path")
    args = parser.parse_args()

    setup_logging(log_level=settings.log_level, log_file=Path(args.log_file) if args.log_file else None)
    job_id = new_job_id()
    logger = get_logger(__name__, job_id=job_id)

    try:
        request = CompositionRequest(
            audio=_file_to_data_uri(Path(args.audio), "audio/mpeg"),
            audio_duration_seconds=args.duration,
            caption_track=Path(args.captions).read_text(encoding="utf-8") if args.captions else None,
            images=[
                ImageInput(order=order, source=_file_to_data_uri(Path(image), "image/png"))
                for order, image in enumerate(args.image, start=1)
            ],
        )
    except OSError as e:
        logger.error(format_error_message("Reading input files", e))
        return 1

    try:
        composer = build_composer(settings, logger, mode=ExecutionMode(args.mode) if args.mode else None)
        artifact = composer.compose(request, job_id=job_id)
    except CompositionError as e:
        logger.error(format_error_message("Composing video", e, {"job_id": job_id}, get_failure_suggestion(e)))
        if e.diagnostics:
            logger.debug(f"Engine diagnostics:\n{e.diagnostics}")
        return 1

    print(artifact.public_url or artifact.local_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
