"""Pipeline orchestrators for Faceless Shorts Factory."""

from shorts_factory.pipelines.compose_video import VideoComposer, build_composer, main

__all__ = ["VideoComposer", "build_composer", "main"]
