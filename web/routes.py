"""
web/routes.py -- Non-JSON surface of Chirpy: the /app file server and /admin.

These routes share app.state with the API routes (same stores) but return
HTML or plain text instead of JSON.

Routes:
  GET  /app/...          -- static files from Settings.filepath_root (mounted by asgi.py)
  GET  /admin/metrics    -- HTML page with the /app hit count
  POST /admin/reset      -- zero the hit count and delete all users (PLATFORM=dev only)

Hit counting: count_fileserver_hits() is an HTTP middleware that increments
the shared HitCounter for every request under /app/, whatever its outcome.
"""

import logging
import threading
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates

from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("chirpy.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()

FILESERVER_PREFIX = "/app"


class HitCounter:
    """Thread-safe request counter.

    Sync route handlers run in a thread pool, so the increment is guarded
    by a lock rather than relying on the event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


hits = HitCounter()


async def count_fileserver_hits(request: Request, call_next):
    """Count every request to the /app file server, then pass it on."""
    path = request.url.path
    if path == FILESERVER_PREFIX or path.startswith(FILESERVER_PREFIX + "/"):
        hits.increment()
    return await call_next(request)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/admin/metrics", response_class=HTMLResponse)
def admin_metrics(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "metrics.html", {"hits": hits.value})


@router.post("/admin/reset", response_class=PlainTextResponse)
def admin_reset(request: Request) -> PlainTextResponse:
    """Zero the hit counter and wipe all users. Refused outside PLATFORM=dev.

    Deleting users cascades to their chirps and refresh tokens.
    """
    if not get_settings().is_dev:
        logger.warning("Refused /admin/reset on platform %r", get_settings().platform)
        return PlainTextResponse("Reset is only allowed in dev environment.", status_code=403)

    user_store: UserStore = request.app.state.user_store
    deleted = user_store.delete_all_users()
    hits.reset()
    logger.info("Admin reset: hit counter zeroed, %d users deleted", deleted)
    return PlainTextResponse("Hits reset to 0 and database reset to initial state.")
