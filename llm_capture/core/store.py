"""Log Store - file-per-call JSON persistence under session directories.

Writes are best-effort: every failure is reported through ``WriteResult``
and logged, never raised, so a full disk cannot break the host's traffic.
The read side backs the viewer API and the CLI.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ConfigDict, ValidationError

from .config import HEARTBEAT_NAME, LATEST_POINTER_NAME
from .errors import SessionAccessError, SessionNotFoundError
from .records import CaptureRecord, Heartbeat, LatestPointer
from .session import is_within

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Outcome of a best-effort write."""
    path: Path
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionSummary(BaseModel):
    """One entry of the session listing."""
    name: str
    count: int
    mtime: int


class SessionFile(BaseModel):
    """A capture record file as returned by the viewer API."""
    name: str
    data: Dict[str, Any]


class RecordEnvelope(BaseModel):
    """Minimum shape a capture record file must have to be listed."""
    model_config = ConfigDict(extra="allow")

    metadata: Dict[str, Any]
    request: Dict[str, Any]
    response: Dict[str, Any]


def record_filename(seq: int, status: int, when: datetime) -> str:
    """File name for a record, e.g. ``0007-200-2024-01-01T12-00-00.json``."""
    stamp = when.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{seq:04d}-{status}-{stamp}.json"


def is_record_file(name: str) -> bool:
    return name.endswith(".json") and not name.startswith("latest")


class LogStore:
    """Append-only capture log rooted at ``base_dir``.

    Layout:
        base_dir/latest-plugin.json          heartbeat
        base_dir/<session>/0001-200-....json one file per call
        base_dir/<session>/latest.json       latest pointer
    """

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    async def ensure_dir(self, path: Union[str, Path]) -> Optional[str]:
        """Create ``path`` and its parents; returns an error string on failure."""
        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
            return None
        except OSError as e:
            logger.debug("Could not create %s: %s", path, e)
            return str(e)

    async def write(self, path: Union[str, Path], data: Any) -> WriteResult:
        """Write ``data`` as indented JSON, creating parent directories."""
        path = Path(path)
        error = await self.ensure_dir(path.parent)
        if error is not None:
            return WriteResult(path, error)
        try:
            payload = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(payload)
        except (OSError, TypeError, ValueError) as e:
            logger.debug("Could not write %s: %s", path, e)
            return WriteResult(path, str(e))
        return WriteResult(path)

    async def write_record(
        self,
        session_dir: Union[str, Path],
        record: CaptureRecord
    ) -> WriteResult:
        """Persist a record, then point the session's latest.json at it."""
        session_dir = Path(session_dir)
        filename = record_filename(record.seq, record.status, record.timestamp)
        result = await self.write(session_dir / filename, record.to_dict())
        pointer = LatestPointer.for_record(filename, record)
        await self.write(session_dir / LATEST_POINTER_NAME, pointer.to_dict())
        return result

    async def write_heartbeat(self, directory: Optional[str] = None) -> WriteResult:
        heartbeat = Heartbeat(timestamp=datetime.now(timezone.utc), directory=directory)
        return await self.write(self.base_dir / HEARTBEAT_NAME, heartbeat.to_dict())

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def session_path(self, session_id: str) -> Path:
        """Directory of a session.

        Raises:
            SessionAccessError: If the id escapes the log root. Checked on the
                path string only; the filesystem is not touched.
        """
        if not is_within(self.base_dir, session_id):
            raise SessionAccessError(session_id)
        return self.base_dir / session_id

    async def list_sessions(self) -> List[SessionSummary]:
        """Session directories, most recently modified first."""
        if not await aiofiles.os.path.isdir(self.base_dir):
            return []

        sessions = []
        for name in await aiofiles.os.listdir(self.base_dir):
            session_dir = self.base_dir / name
            if not await aiofiles.os.path.isdir(session_dir):
                continue
            files = [f for f in await aiofiles.os.listdir(session_dir) if is_record_file(f)]
            stat = await aiofiles.os.stat(session_dir)
            sessions.append(SessionSummary(
                name=name,
                count=len(files),
                mtime=int(stat.st_mtime * 1000),
            ))

        sessions.sort(key=lambda s: s.mtime, reverse=True)
        return sessions

    async def read_session(self, session_id: str) -> List[SessionFile]:
        """Valid capture records of a session, ordered by file name.

        Unparseable or incomplete files are skipped with a warning.

        Raises:
            SessionAccessError: If the id escapes the log root.
            SessionNotFoundError: If the session directory does not exist.
        """
        session_dir = self.session_path(session_id)
        if not await aiofiles.os.path.isdir(session_dir):
            raise SessionNotFoundError(session_id)

        names = sorted(f for f in await aiofiles.os.listdir(session_dir) if is_record_file(f))
        files = []
        for name in names:
            data = await self._load_record(session_dir / name)
            if data is not None:
                files.append(SessionFile(name=name, data=data))
        return files

    async def read_latest(self, session_id: str) -> Optional[Dict[str, Any]]:
        """The session's latest pointer, or None if it has none yet."""
        path = self.session_path(session_id) / LATEST_POINTER_NAME
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return json.loads(await f.read())
        except FileNotFoundError:
            return None

    async def read_heartbeat(self) -> Optional[Dict[str, Any]]:
        try:
            async with aiofiles.open(self.base_dir / HEARTBEAT_NAME, "r", encoding="utf-8") as f:
                return json.loads(await f.read())
        except FileNotFoundError:
            return None

    async def _load_record(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.warning("Failed to read/parse log %s: %s", path.name, e)
            return None

        try:
            RecordEnvelope.model_validate(data)
        except ValidationError:
            logger.warning(
                "Invalid log structure in %s (metadata=%s, request=%s, response=%s)",
                path.name,
                isinstance(data, dict) and bool(data.get("metadata")),
                isinstance(data, dict) and bool(data.get("request")),
                isinstance(data, dict) and bool(data.get("response")),
            )
            return None
        return data
