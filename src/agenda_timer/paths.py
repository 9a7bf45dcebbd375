"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "AgendaTimer"
APP_AUTHOR = "AgendaTimer"


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)


def get_data_dir() -> Path:
    """Return the base directory for application files."""
    path = Path(_dirs().user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_export_dir() -> Path:
    """Default destination for exported CSV files."""
    path = Path(_dirs().user_documents_path) / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_path() -> Path:
    return get_data_dir() / "agenda_timer.log"
