"""HTTP call interception for httpx."""

from .interceptor import CaptureInterceptor, get_interceptor
from .target import CallTarget, RequestObject, UrlObject, UrlString

__all__ = [
    "CallTarget",
    "CaptureInterceptor",
    "RequestObject",
    "UrlObject",
    "UrlString",
    "get_interceptor",
]
