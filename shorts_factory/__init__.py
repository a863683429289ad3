"""Faceless Shorts Factory - vertical short-video composition backend."""

__version__ = "1.0.0"
