"""Body Snapshotter - serializable copies of request and response bodies.

Responses are inspected through a clone so the caller's own response stays
readable. Classification order matters: SSE payloads are checked before JSON
because each ``data:`` line may be JSON while the whole body is not.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional

import httpx

logger = logging.getLogger(__name__)

TEXT_PREVIEW_LIMIT = 5000
TRUNCATION_MARKER = "…(truncated)"
UNREADABLE_BODY = "(stream/unreadable body)"
SSE_MARKER = "data:"

EMPTY = "empty"
STREAM = "stream"
JSON = "json"
TEXT = "text"
ERROR = "error"


@dataclass
class BodySnapshot:
    """A classified body: ``type`` is one of empty, stream, json, text, error."""
    type: str
    snapshot: Any = None

    @property
    def ok(self) -> bool:
        return self.type != ERROR


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")


def parse_json_strict(text: str) -> Any:
    """json.loads without the NaN/Infinity extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def is_event_stream(text: str) -> bool:
    return text.startswith(SSE_MARKER) or ("\n" + SSE_MARKER) in text


def classify_text(text: Optional[str]) -> BodySnapshot:
    """Classify already-read body text.

    Every input maps to exactly one of empty, stream, json or text.
    """
    if not text:
        return BodySnapshot(EMPTY, None)

    if is_event_stream(text):
        lines = text.split("\n")
        return BodySnapshot(STREAM, {
            "type": "sse-stream",
            "preview": lines,
            "totalLines": len(lines),
            "truncated": False,
        })

    try:
        return BodySnapshot(JSON, parse_json_strict(text))
    except ValueError:
        pass

    if len(text) > TEXT_PREVIEW_LIMIT:
        text = text[:TEXT_PREVIEW_LIMIT] + TRUNCATION_MARKER
    return BodySnapshot(TEXT, text)


class ReplayStream(httpx.AsyncByteStream):
    """Raw chunks already pulled from a response, replayed in order.

    If the original read ended in an exception, the same exception is raised
    after the last chunk, so whoever reads the replay sees what the network
    produced.
    """

    def __init__(
        self,
        chunks: List[bytes],
        error: Optional[BaseException] = None,
        source: Optional[httpx.AsyncByteStream] = None
    ):
        self._chunks = chunks
        self._error = error
        self._source = source

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        if self._source is not None:
            await self._source.aclose()


def _request_of(response: httpx.Response) -> Optional[httpx.Request]:
    try:
        return response.request
    except RuntimeError:
        return None


async def _tee_stream(response: httpx.Response) -> ReplayStream:
    """Drain an unread response's raw stream and hand the caller a replay of it."""
    source = response.stream
    chunks: List[bytes] = []
    error: Optional[Exception] = None
    try:
        async for chunk in source:
            chunks.append(chunk)
    except Exception as e:
        error = e
    response.stream = ReplayStream(chunks, error, source)
    return ReplayStream(chunks, error)


async def clone_response(response: httpx.Response) -> httpx.Response:
    """Duplicate a response into an independent, fully-read copy.

    An unread (``stream=True``) response is teed: its raw chunks are pulled
    once and the caller's response replays them, ending with the same
    transport error if the upstream broke mid-body. The clone is then read,
    and raises that error too. An already-read response is copied from its
    decoded ``content``.
    """
    if not response.is_stream_consumed:
        replay = await _tee_stream(response)
        clone = httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=replay,
            request=_request_of(response),
        )
        await clone.aread()
        return clone

    body = await response.aread()
    headers = httpx.Headers(response.headers)
    # content is already decoded
    headers.pop("content-encoding", None)
    return httpx.Response(
        status_code=response.status_code,
        headers=headers,
        content=body,
        request=_request_of(response),
    )


async def snapshot_response(response: httpx.Response) -> BodySnapshot:
    """Snapshot a response body via a clone. Never raises."""
    try:
        clone = await clone_response(response)
        return classify_text(clone.text)
    except Exception as e:
        logger.debug("Response body snapshot failed: %s", e)
        return BodySnapshot(ERROR, {"readError": str(e)})


def snapshot_text_body(body: Any) -> Any:
    """Parse a str/bytes body as JSON, falling back to the raw string."""
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray)):
        if not body:
            return None
        body = bytes(body).decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return UNREADABLE_BODY
    if not body:
        return None
    try:
        return parse_json_strict(body)
    except ValueError:
        return body


def snapshot_request(request: httpx.Request) -> Any:
    """Snapshot an httpx.Request body without touching its stream.

    Buffered bodies (``json=``, ``content=bytes``) are already in memory and
    are parsed; streaming bodies are recorded as an opaque marker.
    """
    try:
        content = request.content
    except httpx.RequestNotRead:
        return UNREADABLE_BODY
    return snapshot_text_body(content)
