"""Session Resolver - map a session token to its log directory."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_date(now: Optional[datetime] = None) -> str:
    """Current calendar date in UTC as YYYY-MM-DD."""
    now = now or utc_now()
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d")


def is_within(root: Union[str, Path], candidate: Union[str, Path]) -> bool:
    """Lexically check that candidate stays under root.

    Only normalizes the path strings; nothing on disk is touched.
    """
    root_norm = os.path.normpath(os.path.abspath(root))
    cand_norm = os.path.normpath(os.path.abspath(os.path.join(root_norm, candidate)))
    if cand_norm == root_norm:
        return False
    return os.path.commonpath([root_norm, cand_norm]) == root_norm


class SessionResolver:
    """Resolve session tokens to directories under a base log directory.

    Calls without a token are grouped by UTC day so they are still captured:

        resolver = SessionResolver(Path("~/llm-dump"))
        resolver.resolve("ses_42")   # ~/llm-dump/ses_42
        resolver.resolve(None)       # ~/llm-dump/2024-01-01

    Pure function of the token and the clock; directories are created by
    the log store on first write.
    """

    def __init__(
        self,
        base_dir: Union[str, Path],
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.base_dir = Path(base_dir)
        self._clock = clock or utc_now

    def resolve(self, token: Optional[str] = None) -> Path:
        if token is not None:
            token = str(token)
            if token.strip() and is_within(self.base_dir, token):
                return self.base_dir / token
        return self.base_dir / utc_date(self._clock())
