"""OpenCode-style host integration: plugin bootstrap and header hook.

The host loads the plugin once per process and calls the ``chat.headers``
hook before every provider request. The hook stamps the session id onto the
outgoing headers so the interceptor can file the call under that session
without knowing anything about the host's session objects.

Example:
    hooks = await plugin(directory=os.getcwd())
    output = {"headers": {}}
    await hooks["chat.headers"]({"sessionID": "ses_42"}, output)
    # output["headers"] == {"x-opencode-debug-session": "ses_42"}
"""

import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..capture.interceptor import CaptureInterceptor, get_interceptor
from ..core.config import INJECTED_SESSION_HEADER
from ..core.store import LogStore

logger = logging.getLogger(__name__)

Hook = Callable[[Any, Any], Awaitable[None]]


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


async def chat_headers(input: Any, output: Any) -> None:
    """Add the session header unless one is already set (any case).

    ``input`` carries an optional ``sessionID``; ``output`` carries a mutable
    ``headers`` mapping. Never raises: a failure leaves the headers as they
    were and the host's call proceeds.
    """
    try:
        session_id = _get(input, "sessionID")
        if not session_id:
            return

        headers = _get(output, "headers")
        if headers is None:
            headers = {}
            if isinstance(output, dict):
                output["headers"] = headers
            else:
                output.headers = headers

        if any(str(k).lower() == INJECTED_SESSION_HEADER for k in headers):
            return
        headers[INJECTED_SESSION_HEADER] = str(session_id)
    except Exception:
        logger.debug("chat.headers hook failed", exc_info=True)


async def plugin(
    directory: Optional[Union[str, Path]] = None,
    *,
    log_dir: Optional[Union[str, Path]] = None,
    interceptor: Optional[CaptureInterceptor] = None
) -> Dict[str, Hook]:
    """Load the capture plugin.

    Creates the log root, records a heartbeat with the host's working
    directory, installs the interceptor (once per process) and returns the
    host hooks.

    Args:
        directory: Host working directory recorded in the heartbeat.
        log_dir: Log root; defaults to the interceptor's.
        interceptor: Interceptor to install; defaults to the process-wide one.
    """
    if interceptor is None:
        interceptor = get_interceptor() if log_dir is None else CaptureInterceptor(LogStore(log_dir))
    store = interceptor.store if log_dir is None else LogStore(log_dir)

    await store.ensure_dir(store.base_dir)
    result = await store.write_heartbeat(str(directory) if directory is not None else os.getcwd())
    if not result.ok:
        logger.debug("Heartbeat not written: %s", result.error)

    interceptor.install()
    return {"chat.headers": chat_headers}
