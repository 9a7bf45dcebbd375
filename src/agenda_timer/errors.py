"""Rejections raised by agenda operations.

Every rejection leaves the meeting in its previous state. The message is
meant to be shown to the user as-is.
"""

from __future__ import annotations


class AgendaError(Exception):
    """Base class for rejected agenda operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationRejected(AgendaError):
    """The supplied input is not acceptable."""


class GuardRejected(AgendaError):
    """The operation is not allowed for the activity in its current status."""


class ActivityNotFound(AgendaError, KeyError):
    def __init__(self, activity_id: str) -> None:
        super().__init__(f"Attività non trovata: {activity_id}")
        self.activity_id = activity_id

    def __str__(self) -> str:
        return self.message
