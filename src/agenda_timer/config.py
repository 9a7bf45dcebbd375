"""Configuration models and helpers for the agenda timer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .errors import ValidationRejected


@dataclass(slots=True)
class MeetingSettings:
    """Runtime configuration for a meeting session."""

    ignore_threshold: timedelta = timedelta(seconds=5)
    tick_interval: timedelta = timedelta(seconds=1)

    def __post_init__(self) -> None:
        if self.ignore_threshold < timedelta(0):
            raise ValidationRejected("La soglia deve essere un numero di secondi non negativo.")
        if self.tick_interval <= timedelta(0):
            raise ValidationRejected("Tick interval must be positive.")

    @classmethod
    def from_values(
        cls,
        ignore_seconds: float,
        tick_seconds: float | None = None,
    ) -> "MeetingSettings":
        tick = tick_seconds if tick_seconds is not None else 1.0
        return cls(
            ignore_threshold=timedelta(seconds=ignore_seconds),
            tick_interval=timedelta(seconds=tick),
        )

    @property
    def ignore_seconds(self) -> float:
        return self.ignore_threshold.total_seconds()
