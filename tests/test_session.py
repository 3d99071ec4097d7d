"""Tests for session resolution (llm_capture/core/session.py)."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from llm_capture.core.session import SessionResolver, is_within, utc_date


class TestUtcDate:
    """Tests for the date fallback key."""

    def test_formats_as_iso_date(self, base_timestamp: datetime):
        assert utc_date(base_timestamp) == "2024-01-01"

    def test_converts_to_utc(self):
        """A late-evening local time west of UTC is already the next UTC day."""
        local = datetime(2024, 1, 1, 22, 0, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_date(local) == "2024-01-02"


class TestSessionResolver:
    """Tests for SessionResolver.resolve."""

    @pytest.fixture
    def resolver(self, tmp_path: Path, base_timestamp: datetime) -> SessionResolver:
        return SessionResolver(tmp_path, clock=lambda: base_timestamp)

    def test_token_maps_to_subdirectory(self, resolver, tmp_path: Path):
        assert resolver.resolve("ses_42") == tmp_path / "ses_42"

    def test_same_token_same_directory(self, resolver):
        """Resolution is pure: repeated calls agree."""
        paths = {resolver.resolve("ses_42") for _ in range(5)}
        assert len(paths) == 1

    @pytest.mark.parametrize("token", [None, "", "   ", "\t\n"])
    def test_blank_token_falls_back_to_date(self, resolver, tmp_path: Path, token):
        assert resolver.resolve(token) == tmp_path / "2024-01-01"

    def test_fallback_follows_clock(self, tmp_path: Path):
        days = iter([
            datetime(2024, 1, 1, 23, 59, tzinfo=timezone.utc),
            datetime(2024, 1, 2, 0, 1, tzinfo=timezone.utc),
        ])
        resolver = SessionResolver(tmp_path, clock=lambda: next(days))
        assert resolver.resolve().name == "2024-01-01"
        assert resolver.resolve().name == "2024-01-02"

    def test_does_not_create_directories(self, resolver):
        assert not resolver.resolve("ses_new").exists()

    @pytest.mark.parametrize("token", ["../escape", "../../etc", "/etc", "a/../../b"])
    def test_escaping_token_falls_back_to_date(self, resolver, tmp_path: Path, token):
        assert resolver.resolve(token) == tmp_path / "2024-01-01"

    def test_default_clock_is_today_utc(self, tmp_path: Path):
        resolver = SessionResolver(tmp_path)
        assert resolver.resolve(None).name == datetime.now(timezone.utc).strftime("%Y-%m-%d")


class TestIsWithin:
    """Tests for the lexical containment check."""

    def test_child_is_within(self, tmp_path: Path):
        assert is_within(tmp_path, "ses_1")
        assert is_within(tmp_path, "nested/ses_1")

    def test_root_itself_is_not_within(self, tmp_path: Path):
        assert not is_within(tmp_path, ".")
        assert not is_within(tmp_path, "")

    def test_parent_escape(self, tmp_path: Path):
        assert not is_within(tmp_path, "..")
        assert not is_within(tmp_path, "../sibling")

    def test_sibling_with_common_prefix(self, tmp_path: Path):
        """``/logs-evil`` must not pass as inside ``/logs``."""
        root = tmp_path / "logs"
        assert not is_within(root, "../logs-evil")
