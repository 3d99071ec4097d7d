"""Exceptions raised by the log read side."""


class LLMCaptureError(Exception):
    """Base class for llm-capture errors."""


class SessionAccessError(LLMCaptureError):
    """Raised when a session id resolves outside the log root."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Access denied: {session_id!r} is outside the log directory")


class SessionNotFoundError(LLMCaptureError):
    """Raised when a session directory does not exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
