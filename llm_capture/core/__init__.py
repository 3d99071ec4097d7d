"""llm-capture core - session layout, body snapshots and the on-disk log store."""

from .config import (
    CAPTURE_DIR_ENV,
    CAPTURE_TOGGLE_ENV,
    SESSION_HEADERS,
    capture_enabled,
    default_log_dir,
)
from .errors import LLMCaptureError, SessionAccessError, SessionNotFoundError
from .records import CaptureRecord, Heartbeat, LatestPointer
from .session import SessionResolver, utc_date
from .snapshot import BodySnapshot, classify_text, clone_response, snapshot_response
from .store import LogStore, SessionFile, SessionSummary, WriteResult

__all__ = [
    "BodySnapshot",
    "CAPTURE_DIR_ENV",
    "CAPTURE_TOGGLE_ENV",
    "CaptureRecord",
    "Heartbeat",
    "LLMCaptureError",
    "LatestPointer",
    "LogStore",
    "SESSION_HEADERS",
    "SessionAccessError",
    "SessionFile",
    "SessionNotFoundError",
    "SessionResolver",
    "SessionSummary",
    "WriteResult",
    "capture_enabled",
    "classify_text",
    "clone_response",
    "default_log_dir",
    "snapshot_response",
    "utc_date",
]
