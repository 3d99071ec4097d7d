"""Fake upstreams and file helpers for llm-capture tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx


def json_upstream(request: httpx.Request) -> httpx.Response:
    """Fake provider answering every call with {"ok": true}."""
    return httpx.Response(200, json={"ok": True})


def sse_upstream(request: httpx.Request) -> httpx.Response:
    """Fake provider streaming two SSE data lines."""
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        content=b'data: {"delta": "Hel"}\ndata: {"delta": "lo"}',
    )


class ChunkStream(httpx.AsyncByteStream):
    """Response stream yielding fixed raw chunks, optionally failing after them."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


BROKEN_SSE_CHUNK = b'data: {"delta": "Hel"}\n'


def broken_sse_upstream(request: httpx.Request) -> httpx.Response:
    """Fake provider whose SSE body breaks after the first event."""
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        stream=ChunkStream([BROKEN_SSE_CHUNK], httpx.ReadError("connection reset")),
    )


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def load_json(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text())


def record_files(session_dir: Path) -> List[Path]:
    return sorted(p for p in session_dir.glob("*.json") if not p.name.startswith("latest"))
