"""llm-capture Viewer - FastAPI application serving captured sessions."""

import copy
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..core.config import default_log_dir, default_viewer_port
from ..core.errors import SessionAccessError, SessionNotFoundError
from ..core.store import LogStore

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
DEFAULT_VIEWER_PATH = Path(__file__).parent / "templates" / "viewer.html"


# =============================================================================
# Helpers
# =============================================================================


def _json(data: Any, status_code: int = 200) -> JSONResponse:
    """JSON response with the permissive CORS header."""
    return JSONResponse(content=data, status_code=status_code, headers=CORS_HEADERS)


def _error(status_code: int, message: str) -> JSONResponse:
    return _json({"error": message}, status_code=status_code)


# =============================================================================
# Setup Functions
# =============================================================================


def _setup_app_state(
    app: FastAPI,
    log_dir: Optional[Path],
    viewer_path: Optional[Path]
) -> None:
    """Initialize application state."""
    app.state.log_dir = Path(log_dir) if log_dir else default_log_dir()
    app.state.store = LogStore(app.state.log_dir)
    app.state.viewer_path = Path(viewer_path) if viewer_path else DEFAULT_VIEWER_PATH


def _setup_error_handlers(app: FastAPI) -> None:
    """Render every HTTP error as ``{"error": message}`` with CORS headers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
        message = exc.detail if isinstance(exc.detail, str) else "Error"
        if exc.status_code == 404 and message == "Not Found":
            message = "Not found"
        return _error(exc.status_code, message)


def _setup_request_logging(app: FastAPI) -> None:

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)


# =============================================================================
# Endpoint Registration Functions
# =============================================================================


def _register_page_endpoints(app: FastAPI) -> None:
    """Register the viewer page and CORS preflight."""

    @app.get("/", response_class=HTMLResponse)
    async def index():
        """Serve the viewer page."""
        viewer_path = app.state.viewer_path
        if not viewer_path.is_file():
            raise HTTPException(status_code=404, detail=f"{viewer_path.name} not found")
        try:
            return HTMLResponse(viewer_path.read_text(encoding="utf-8"))
        except OSError:
            raise HTTPException(status_code=500, detail=f"Error reading {viewer_path.name}")

    @app.options("/{path:path}")
    async def preflight(path: str):  # noqa: ARG001
        """Answer browser preflight for any path."""
        return Response(status_code=204, headers=PREFLIGHT_HEADERS)

    @app.get("/api/health", response_class=JSONResponse)
    async def health_check():
        return _json({"status": "ok", "version": __version__, "log_dir": str(app.state.log_dir)})


def _register_session_endpoints(app: FastAPI) -> None:
    """Register session listing and retrieval."""

    @app.get("/api/sessions", response_class=JSONResponse)
    async def list_sessions():
        """Session directories under the log root, newest first."""
        try:
            sessions = await app.state.store.list_sessions()
        except Exception:
            logger.exception("Failed to list sessions")
            raise HTTPException(status_code=500, detail="Failed to list sessions")
        return _json([s.model_dump() for s in sessions])

    @app.get("/api/session/", response_class=JSONResponse)
    async def missing_session_id():
        raise HTTPException(status_code=400, detail="Missing session ID")

    @app.get("/api/session/{session_id:path}", response_class=JSONResponse)
    async def get_session(session_id: str):
        """Every valid capture record of one session."""
        try:
            files = await app.state.store.read_session(session_id)
        except SessionAccessError:
            raise HTTPException(status_code=403, detail="Access denied")
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail="Session not found")
        except Exception:
            logger.exception("Failed to read session %s", session_id)
            raise HTTPException(status_code=500, detail="Failed to read session files")
        return _json([f.model_dump() for f in files])


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    log_dir: Optional[Union[str, Path]] = None,
    viewer_path: Optional[Union[str, Path]] = None
) -> FastAPI:
    """Create the viewer application.

    Args:
        log_dir: Capture log root. Defaults to OPENCODE_LLM_CAPTURE_DIR or the
            per-user default.
        viewer_path: HTML page served at ``/``.
    """
    app = FastAPI(
        title="llm-capture Viewer",
        description="Browse captured LLM HTTP traffic by session",
        version=__version__
    )

    _setup_app_state(app, log_dir, viewer_path)
    _setup_error_handlers(app)
    _setup_request_logging(app)

    _register_page_endpoints(app)
    _register_session_endpoints(app)

    return app


# =============================================================================
# Server Runner
# =============================================================================


def viewer_log_config() -> Dict[str, Any]:
    """uvicorn's logging config, with the llm_capture loggers on its console handler."""
    from uvicorn.config import LOGGING_CONFIG

    config = copy.deepcopy(LOGGING_CONFIG)
    config["loggers"]["llm_capture"] = {"handlers": ["default"], "level": "INFO", "propagate": False}
    return config


def run_viewer(
    host: str = "127.0.0.1",
    port: Optional[int] = None,
    log_dir: Optional[Union[str, Path]] = None
) -> None:
    """Run the viewer server.

    Args:
        host: Host to bind to.
        port: Port to bind to; defaults to OPENCODE_LLM_CAPTURE_PORT or 3000.
        log_dir: Capture log root.
    """
    import uvicorn

    app = create_app(log_dir)
    port = port or default_viewer_port()
    log_config = viewer_log_config()
    logging.config.dictConfig(log_config)

    logger.info("llm-capture viewer running at http://%s:%s", host, port)
    logger.info("Watching logs at: %s", app.state.log_dir)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
        log_config=log_config
    )
