"""Tests for the host integration (llm_capture/integrations/opencode.py)."""

from pathlib import Path
from types import SimpleNamespace

import httpx
import pytest

from helpers import json_upstream, load_json, record_files
from llm_capture.capture.interceptor import CaptureInterceptor
from llm_capture.core.store import LogStore
from llm_capture.integrations.opencode import chat_headers, plugin


class TestChatHeaders:
    """Tests for the chat.headers hook."""

    @pytest.mark.asyncio
    async def test_sets_session_header(self):
        output = {"headers": {"authorization": "Bearer k"}}
        await chat_headers({"sessionID": "ses_42"}, output)
        assert output["headers"] == {
            "authorization": "Bearer k",
            "x-opencode-debug-session": "ses_42",
        }

    @pytest.mark.asyncio
    async def test_no_session_id_leaves_headers(self):
        output = {"headers": {}}
        await chat_headers({}, output)
        await chat_headers({"sessionID": None}, output)
        await chat_headers(None, output)
        assert output["headers"] == {}

    @pytest.mark.parametrize("existing", ["x-opencode-debug-session", "X-Opencode-Debug-Session", "X-OPENCODE-DEBUG-SESSION"])
    @pytest.mark.asyncio
    async def test_existing_header_kept(self, existing):
        output = {"headers": {existing: "ses_original"}}
        await chat_headers({"sessionID": "ses_new"}, output)
        assert output["headers"] == {existing: "ses_original"}

    @pytest.mark.asyncio
    async def test_creates_missing_headers(self):
        output = {}
        await chat_headers({"sessionID": "ses_1"}, output)
        assert output["headers"] == {"x-opencode-debug-session": "ses_1"}

    @pytest.mark.asyncio
    async def test_attribute_style_objects(self):
        output = SimpleNamespace(headers=None)
        await chat_headers(SimpleNamespace(sessionID=123), output)
        assert output.headers == {"x-opencode-debug-session": "123"}

    @pytest.mark.asyncio
    async def test_never_raises(self):
        class ReadOnlyHeaders(dict):
            def __setitem__(self, key, value):
                raise RuntimeError("frozen")

        output = {"headers": ReadOnlyHeaders()}
        await chat_headers({"sessionID": "ses_1"}, output)
        await chat_headers({"sessionID": "ses_1"}, object())
        assert dict(output["headers"]) == {}


class TestPlugin:
    """Tests for plugin bootstrap."""

    @pytest.fixture
    def isolated(self, store: LogStore, client_class):
        interceptor = CaptureInterceptor(store, owner=client_class)
        yield interceptor
        interceptor.uninstall()

    @pytest.mark.asyncio
    async def test_bootstrap(self, isolated, log_dir: Path, tmp_path: Path):
        hooks = await plugin(directory=tmp_path / "project", interceptor=isolated)

        assert set(hooks) == {"chat.headers"}
        assert isolated.installed
        heartbeat = load_json(log_dir / "latest-plugin.json")
        assert heartbeat["directory"] == str(tmp_path / "project")

    @pytest.mark.asyncio
    async def test_repeated_loads_do_not_nest(
        self, isolated, store: LogStore, client_class, log_dir: Path, capture_on
    ):
        await plugin(directory="/a", interceptor=isolated)
        await plugin(directory="/b", interceptor=isolated)
        await plugin(directory="/c", interceptor=CaptureInterceptor(store, owner=client_class))

        async with client_class(transport=httpx.MockTransport(json_upstream)) as client:
            await client.get("https://example.com/api", headers={"x-opencode-session": "ses_p"})

        assert len(record_files(log_dir / "ses_p")) == 1
        assert isolated.calls == 1
        assert load_json(log_dir / "latest-plugin.json")["directory"] == "/c"

    @pytest.mark.asyncio
    async def test_hook_and_interceptor_together(
        self, isolated, client_class, log_dir: Path, capture_on
    ):
        hooks = await plugin(directory="/work", interceptor=isolated)

        output = {"headers": {}}
        await hooks["chat.headers"]({"sessionID": "ses_e2e"}, output)
        async with client_class(transport=httpx.MockTransport(json_upstream)) as client:
            await client.post("https://example.com/v1/chat", json={"q": 1}, headers=output["headers"])

        files = record_files(log_dir / "ses_e2e")
        assert len(files) == 1
        assert load_json(files[0])["request"]["body"] == {"q": 1}

    @pytest.mark.asyncio
    async def test_explicit_log_dir(self, isolated, tmp_path: Path):
        other = tmp_path / "other-root"
        await plugin(directory="/w", log_dir=other, interceptor=isolated)
        assert (other / "latest-plugin.json").exists()
