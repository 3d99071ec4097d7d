"""Environment-driven settings shared by the interceptor, viewer and CLI."""

import os
from pathlib import Path
from typing import Mapping, Optional

CAPTURE_TOGGLE_ENV = "OPENCODE_LLM_CAPTURE"
CAPTURE_DIR_ENV = "OPENCODE_LLM_CAPTURE_DIR"
VIEWER_PORT_ENV = "OPENCODE_LLM_CAPTURE_PORT"

DEFAULT_VIEWER_PORT = 3000

# Checked in order; the first header present wins.
SESSION_HEADERS = (
    "x-opencode-debug-session",
    "x-opencode-session",
    "x-opencode-request",
)
INJECTED_SESSION_HEADER = SESSION_HEADERS[0]

LATEST_POINTER_NAME = "latest.json"
HEARTBEAT_NAME = "latest-plugin.json"


def capture_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when the capture toggle is the literal "true" or "1"."""
    env = os.environ if environ is None else environ
    return env.get(CAPTURE_TOGGLE_ENV) in ("true", "1")


def default_log_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Log root, from OPENCODE_LLM_CAPTURE_DIR or the per-user config dir."""
    env = os.environ if environ is None else environ
    override = env.get(CAPTURE_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "opencode" / "opencode-llm-capture" / "llm-dump"


def default_viewer_port(environ: Optional[Mapping[str, str]] = None) -> int:
    env = os.environ if environ is None else environ
    try:
        return int(env.get(VIEWER_PORT_ENV, DEFAULT_VIEWER_PORT))
    except ValueError:
        return DEFAULT_VIEWER_PORT
