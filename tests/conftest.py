"""Shared fixtures for llm-capture tests."""

from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from llm_capture.capture.interceptor import CaptureInterceptor
from llm_capture.core.config import CAPTURE_TOGGLE_ENV
from llm_capture.core.records import CaptureRecord
from llm_capture.core.session import SessionResolver
from llm_capture.core.store import LogStore


@pytest.fixture
def base_timestamp() -> datetime:
    """Fixed base timestamp for reproducible tests."""
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "llm-dump"


@pytest.fixture
def store(log_dir: Path) -> LogStore:
    return LogStore(log_dir)


@pytest.fixture
def capture_on(monkeypatch):
    """Enable capture through the environment toggle."""
    monkeypatch.setenv(CAPTURE_TOGGLE_ENV, "true")


@pytest.fixture
def capture_off(monkeypatch):
    monkeypatch.delenv(CAPTURE_TOGGLE_ENV, raising=False)


@pytest.fixture
def client_class():
    """An httpx.AsyncClient subclass so patches never leak into httpx itself."""

    class IsolatedClient(httpx.AsyncClient):
        pass

    return IsolatedClient


@pytest.fixture
def interceptor(store: LogStore, base_timestamp: datetime, client_class):
    """Interceptor installed on the isolated client class."""
    resolver = SessionResolver(store.base_dir, clock=lambda: base_timestamp)
    interceptor = CaptureInterceptor(store, resolver, owner=client_class)
    interceptor.install()
    yield interceptor
    interceptor.uninstall()




@pytest.fixture
def sample_record(base_timestamp: datetime) -> CaptureRecord:
    return CaptureRecord(
        seq=7,
        timestamp=base_timestamp,
        duration_ms=120,
        url="https://api.example.com/v1/messages",
        method="POST",
        status=200,
        status_text="OK",
        response_type="json",
        request_headers={"content-type": "application/json", "x-opencode-debug-session": "ses_42"},
        request_body={"model": "m", "messages": []},
        response_headers={"content-type": "application/json"},
        response_body={"ok": True},
    )
