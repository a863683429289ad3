"""Render Executor - runs the media engine once for a compiled render."""

import subprocess
import time
from pathlib import Path
from typing import Any

from shorts_factory.core.config import Settings
from shorts_factory.services.filter_graph_compiler import RenderCommand
from shorts_factory.utils.error_handler import RenderError


class RenderExecutor:
    """Invokes ffmpeg as a child process and checks the produced file."""

    def __init__(self, settings: Settings, logger: Any):
        """
        Initialize render executor.

        Args:
            settings: Application settings
            logger: Logger instance
        """
        self.settings = settings
        self.logger = logger
        self.binary = settings.ffmpeg_binary
        self.max_log_bytes = settings.render_log_max_bytes

    def execute(self, command: RenderCommand) -> Path:
        """
        Render ``command`` and return the output path.

        There are no retries here; any failure is reported once with the
        engine's own output attached. The command runs the engine at
        ``-loglevel error`` so the captured output stays small, and
        ``render_log_max_bytes`` trims it once the process has exited.

        Args:
            command: Compiled render command

        Returns:
            Path to the rendered MP4

        Raises:
            RenderError: On non-zero exit, missing binary, or missing/empty output
        """
        args = command.to_args(self.binary)
        output_path = Path(command.output_path)
        self.logger.info(
            f"Rendering {len(command.image_inputs)} images -> {output_path.name} "
            f"(cap {command.duration_cap_seconds:.2f}s, captions={command.has_captions})"
        )
        self.logger.debug(f"Filter graph: {command.graph.render()}")

        start_time = time.time()
        try:
            result = subprocess.run(args, capture_output=True, check=False)
        except FileNotFoundError as e:
            raise RenderError(f"Render engine not found: {self.binary}") from e
        except OSError as e:
            raise RenderError(f"Could not start render engine {self.binary}: {e}") from e

        elapsed = time.time() - start_time
        diagnostics = self._diagnostics(result.stdout, result.stderr)

        if result.returncode != 0:
            self.logger.error(f"❌ Render engine exited with code {result.returncode} after {elapsed:.2f}s")
            raise RenderError(f"Render engine exited with code {result.returncode}", diagnostics=diagnostics)

        if not output_path.is_file() or output_path.stat().st_size == 0:
            self.logger.error(f"❌ Render engine exited cleanly but produced no output at {output_path}")
            raise RenderError(f"Render produced no output at {output_path}", diagnostics=diagnostics)

        size_mb = output_path.stat().st_size / 1024 / 1024
        self.logger.info(f"✅ Render complete in {elapsed:.2f}s ({size_mb:.2f} MB)")
        return output_path

    def _diagnostics(self, stdout: bytes, stderr: bytes) -> str:
        """Decode engine output, keeping at most max_log_bytes from the end."""
        combined = (stdout or b"") + (stderr or b"")
        if len(combined) > self.max_log_bytes:
            combined = combined[-self.max_log_bytes:]
        return combined.decode("utf-8", errors="replace")
