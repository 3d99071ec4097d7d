"""llm-capture viewer - read-only HTTP API and browser page over the capture log."""

from .app import create_app, run_viewer

__all__ = ["create_app", "run_viewer"]
