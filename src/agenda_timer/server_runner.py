"""Helpers to launch the local meeting timer API."""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Optional

import uvicorn

from .config import MeetingSettings
from .webapp import create_app

logger = logging.getLogger(__name__)

BROWSER_DELAY_SECONDS = 1.0
_WILDCARD_HOSTS = {"0.0.0.0", "::", ""}


def dashboard_url(host: str, port: int, path: str = "/docs") -> str:
    """URL a local browser should use to reach the API bound on ``host``."""
    if host in _WILDCARD_HOSTS:
        host = "127.0.0.1"
    elif ":" in host:
        host = f"[{host}]"
    if not path.startswith("/"):
        path = "/" + path
    return f"http://{host}:{port}{path}"


def uvicorn_log_level(log_level: Optional[str] = None) -> str:
    """Explicit level, or the one the root logger was configured with."""
    if log_level:
        return log_level.lower()
    level = logging.getLogger().getEffectiveLevel()
    return logging.getLevelName(level).lower()


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    settings: Optional[MeetingSettings] = None,
    open_browser: bool = True,
    browser_path: str = "/docs",
    log_level: Optional[str] = None,
) -> None:
    """Serve the meeting timer until interrupted."""
    settings = settings or MeetingSettings()
    app = create_app(settings=settings)
    level = uvicorn_log_level(log_level)
    logger.info(
        "Serving meeting timer on %s:%s (ignore threshold %ss)",
        host,
        port,
        settings.ignore_seconds,
    )

    if open_browser:
        timer = threading.Timer(
            BROWSER_DELAY_SECONDS, _open_browser, args=(dashboard_url(host, port, browser_path),)
        )
        timer.daemon = True
        timer.start()

    uvicorn.run(app, host=host, port=port, log_level=level)


def _open_browser(url: str) -> None:
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
