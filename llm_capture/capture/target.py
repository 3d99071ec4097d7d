"""The three shapes an outbound call's target can take.

``CallTarget.parse`` picks the variant once; each variant then knows how to
produce the URL, method, header snapshot and body snapshot for itself.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..core.config import SESSION_HEADERS
from ..core.snapshot import snapshot_request, snapshot_text_body


def lowercase_headers(headers: Any) -> Dict[str, str]:
    """Copy headers into a plain dict with lower-cased keys.

    Reads from a fresh ``httpx.Headers`` so the caller's object is untouched.
    """
    if headers is None:
        return {}
    copied = httpx.Headers(headers)
    return {key.lower(): value for key, value in copied.items()}


@dataclass
class CallTarget:
    """Base for the call-target variants."""
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str:
        raise NotImplementedError

    @property
    def method(self) -> str:
        return str(self.options.get("method") or "GET").upper()

    def headers(self) -> Dict[str, str]:
        return lowercase_headers(self.options.get("headers"))

    def body(self) -> Any:
        return snapshot_text_body(self.options.get("content"))

    @staticmethod
    def parse(
        value: Union[str, httpx.URL, httpx.Request],
        options: Optional[Mapping[str, Any]] = None
    ) -> "CallTarget":
        """Wrap a call argument in its variant.

        Raises:
            TypeError: If the value is not a str, httpx.URL or httpx.Request.
        """
        opts = dict(options or {})
        if isinstance(value, httpx.Request):
            return RequestObject(options=opts, request=value)
        if isinstance(value, httpx.URL):
            return UrlObject(options=opts, target=value)
        if isinstance(value, str):
            return UrlString(options=opts, target=value)
        raise TypeError(f"unsupported call target: {type(value).__name__}")


@dataclass
class UrlString(CallTarget):
    target: str = ""

    @property
    def url(self) -> str:
        return self.target


@dataclass
class UrlObject(CallTarget):
    target: Optional[httpx.URL] = None

    @property
    def url(self) -> str:
        return str(self.target)


@dataclass
class RequestObject(CallTarget):
    request: Optional[httpx.Request] = None

    @property
    def url(self) -> str:
        return str(self.request.url)

    @property
    def method(self) -> str:
        return self.request.method

    def headers(self) -> Dict[str, str]:
        return lowercase_headers(self.request.headers)

    def body(self) -> Any:
        return snapshot_request(self.request)


def find_session_token(headers: Mapping[str, str]) -> Optional[str]:
    """First session header present, in priority order."""
    for name in SESSION_HEADERS:
        value = headers.get(name)
        if value is not None:
            return value
    return None
