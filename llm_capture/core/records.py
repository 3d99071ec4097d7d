"""Capture Record, Latest Pointer and Heartbeat data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def iso_timestamp(when: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T12:00:00.000Z."""
    when = when.astimezone(timezone.utc)
    return when.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class CaptureRecord:
    """One intercepted call.

    ``seq`` is the per-process call counter. It only orders files for humans;
    it resets on restart and is not a global identity.
    """
    seq: int
    timestamp: datetime
    duration_ms: int
    url: str
    method: str
    status: int
    status_text: str
    response_type: str
    request_headers: Dict[str, str] = field(default_factory=dict)
    request_body: Any = None
    response_headers: Dict[str, str] = field(default_factory=dict)
    response_body: Any = None

    @property
    def id(self) -> str:
        return f"{self.seq:04d}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": {
                "id": self.id,
                "timestamp": iso_timestamp(self.timestamp),
                "durationMs": self.duration_ms,
                "url": self.url,
                "method": self.method,
                "responseType": self.response_type,
            },
            "request": {
                "headers": self.request_headers,
                "body": self.request_body,
            },
            "response": {
                "status": self.status,
                "statusText": self.status_text,
                "headers": self.response_headers,
                "body": self.response_body,
            },
        }


@dataclass
class LatestPointer:
    """Summary of the most recent record in a session, overwritten on each write."""
    latest_file: str
    timestamp: datetime
    url: str
    status: int
    duration_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latestFile": self.latest_file,
            "timestamp": iso_timestamp(self.timestamp),
            "url": self.url,
            "status": self.status,
            "durationMs": self.duration_ms,
        }

    @classmethod
    def for_record(cls, filename: str, record: CaptureRecord) -> "LatestPointer":
        return cls(
            latest_file=filename,
            timestamp=datetime.now(timezone.utc),
            url=record.url,
            status=record.status,
            duration_ms=record.duration_ms,
        )


@dataclass
class Heartbeat:
    """Last interceptor load: when, and from which working directory."""
    timestamp: datetime
    directory: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": iso_timestamp(self.timestamp),
            "directory": self.directory,
        }
