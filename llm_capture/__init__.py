"""llm-capture - Record outbound LLM HTTP traffic per agent session.

Usage:
    # Host plugin entry point (installs the interceptor, returns hooks)
    from llm_capture import plugin
    hooks = await plugin(directory=os.getcwd())
    await hooks["chat.headers"]({"sessionID": "ses_42"}, {"headers": headers})

    # Manual install
    from llm_capture import get_interceptor
    get_interceptor().install()

Capture is off unless OPENCODE_LLM_CAPTURE is "true" or "1".

CLI:
    llm-capture serve              # Browser viewer on :3000
    llm-capture sessions           # List captured sessions
    llm-capture show ses_42        # Summarize a session's calls
"""

__version__ = "0.3.0"

from .capture.interceptor import CaptureInterceptor, get_interceptor
from .core.records import CaptureRecord, LatestPointer
from .core.session import SessionResolver
from .core.store import LogStore
from .integrations.opencode import chat_headers, plugin

__all__ = [
    "CaptureInterceptor",
    "CaptureRecord",
    "LatestPointer",
    "LogStore",
    "SessionResolver",
    "chat_headers",
    "get_interceptor",
    "plugin",
]
