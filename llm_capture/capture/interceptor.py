"""Capture Interceptor - transparent recording wrapper around httpx.

Usage:
    interceptor = CaptureInterceptor(store=LogStore(log_dir))
    interceptor.install()        # patches httpx.AsyncClient.send once

    async with httpx.AsyncClient() as client:
        await client.post(url, json=payload,
                          headers={"x-opencode-debug-session": "ses_42"})
    # -> log_dir/ses_42/0001-200-<timestamp>.json

Capture only runs while OPENCODE_LLM_CAPTURE is "true" or "1". The wrapper
returns the same response object the real call produced and only lets the
real call's own exception propagate; everything else is logged and dropped.
"""

import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from ..core.config import capture_enabled, default_log_dir
from ..core.records import CaptureRecord
from ..core.session import SessionResolver
from ..core.snapshot import snapshot_response
from ..core.store import LogStore, WriteResult
from .target import CallTarget, find_session_token

logger = logging.getLogger(__name__)

# Set on the patched owner so repeated loads never stack wrappers.
INSTALL_MARKER = "__llm_capture_wrapped__"
ORIGINAL_ATTR = "__llm_capture_original__"


class PreparedCall:
    """What is known about a call before it is sent."""

    __slots__ = ("seq", "url", "method", "headers", "body", "session_dir")

    def __init__(self, seq, url, method, headers, body, session_dir):
        self.seq = seq
        self.url = url
        self.method = method
        self.headers = headers
        self.body = body
        self.session_dir = session_dir


class CaptureInterceptor:
    """Holds the per-process call counter and the installed wrapper.

    The counter and install flag are mutated without locks; this is safe on a
    single event loop because there is no await between read and write.
    """

    def __init__(
        self,
        store: Optional[LogStore] = None,
        resolver: Optional[SessionResolver] = None,
        *,
        owner: type = httpx.AsyncClient,
        attribute: str = "send",
        environ: Optional[Mapping[str, str]] = None
    ):
        self.store = store or LogStore(default_log_dir(environ))
        self.resolver = resolver or SessionResolver(self.store.base_dir)
        self._owner = owner
        self._attribute = attribute
        self._environ = environ
        self._counter = 0
        self._original: Optional[Callable] = None

    @property
    def calls(self) -> int:
        """Number of captured calls in this process."""
        return self._counter

    @property
    def installed(self) -> bool:
        return self._original is not None

    @property
    def enabled(self) -> bool:
        return capture_enabled(self._environ)

    def install(self) -> bool:
        """Wrap ``owner.attribute``. Returns False if it is already wrapped."""
        if getattr(self._owner, INSTALL_MARKER, False):
            logger.debug("%s.%s already wrapped, skipping", self._owner.__name__, self._attribute)
            return False

        original = getattr(self._owner, self._attribute)
        setattr(self._owner, self._attribute, self.wrap(original))
        setattr(self._owner, INSTALL_MARKER, True)
        setattr(self._owner, ORIGINAL_ATTR, original)
        self._original = original
        logger.debug("Installed capture wrapper on %s.%s", self._owner.__name__, self._attribute)
        return True

    def uninstall(self) -> bool:
        """Restore the unwrapped function installed by this interceptor."""
        if self._original is None:
            return False
        setattr(self._owner, self._attribute, self._original)
        for attr in (INSTALL_MARKER, ORIGINAL_ATTR):
            if attr in vars(self._owner):
                delattr(self._owner, attr)
        self._original = None
        return True

    def wrap(self, original: Callable) -> Callable:
        """Build the capturing replacement for ``original(client, target, ...)``."""

        @wraps(original)
        async def send(client, target, *args, **kwargs):
            if not capture_enabled(self._environ):
                return await original(client, target, *args, **kwargs)
            return await self._capture(original, client, target, args, kwargs)

        return send

    async def _capture(self, original, client, target, args, kwargs):
        self._counter += 1
        prepared = self._prepare(self._counter, target, kwargs)

        start = time.monotonic()
        response = await original(client, target, *args, **kwargs)
        duration_ms = int((time.monotonic() - start) * 1000)

        if prepared is not None:
            try:
                result = await self._record(prepared, response, duration_ms)
                if not result.ok:
                    logger.debug("Capture record not written: %s", result.error)
            except Exception:
                logger.debug("Capture failed for %s %s", prepared.method, prepared.url, exc_info=True)
        return response

    def _prepare(self, seq: int, target: Any, options: Dict[str, Any]) -> Optional[PreparedCall]:
        try:
            call = CallTarget.parse(target, options)
            url, method = call.url, call.method
        except Exception:
            logger.debug("Unrecognized call target, not capturing", exc_info=True)
            return None

        try:
            headers = call.headers()
        except Exception:
            logger.debug("Header snapshot failed", exc_info=True)
            headers = {}

        try:
            body = call.body()
        except Exception:
            logger.debug("Request body snapshot failed", exc_info=True)
            body = None

        session_dir = self.resolver.resolve(find_session_token(headers))
        return PreparedCall(seq, url, method, headers, body, session_dir)

    async def _record(
        self,
        prepared: PreparedCall,
        response: httpx.Response,
        duration_ms: int
    ) -> WriteResult:
        body = await snapshot_response(response)
        record = CaptureRecord(
            seq=prepared.seq,
            timestamp=datetime.now(timezone.utc),
            duration_ms=duration_ms,
            url=prepared.url,
            method=prepared.method,
            status=response.status_code,
            status_text=response.reason_phrase,
            response_type=body.type,
            request_headers=prepared.headers,
            request_body=prepared.body,
            response_headers=dict(response.headers.items()),
            response_body=body.snapshot,
        )
        return await self.store.write_record(prepared.session_dir, record)


_default_interceptor: Optional[CaptureInterceptor] = None


def get_interceptor() -> CaptureInterceptor:
    """Process-wide interceptor, created on first use."""
    global _default_interceptor
    if _default_interceptor is None:
        _default_interceptor = CaptureInterceptor()
    return _default_interceptor
