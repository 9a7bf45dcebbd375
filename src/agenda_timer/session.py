"""Meeting session: the single owner of agenda state."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, time
from typing import Any, Optional

from .config import MeetingSettings
from .csv_codec import (
    CHART_FILE_PREFIX,
    DATA_FILE_PREFIX,
    TEMPLATE_FILE_PREFIX,
    ImportResult,
    dump_data,
    dump_template,
    export_filename,
    parse_data,
    parse_template,
)
from .engine import Clock, TimingEngine, ToggleResult
from .models import Activity, ChartPoint
from .projection import Projection, format_countdown, format_clock, project
from .reporting import chart_series
from .store import ActivityStore
from .ticker import CountdownTicker

logger = logging.getLogger(__name__)


class MeetingSession:
    """Serialises every agenda event and keeps the tick bound to the active item.

    All public methods take the same lock, so a tick never interleaves with
    a user action. Whenever the active activity changes the running tick is
    cancelled before a new one starts.
    """

    def __init__(
        self,
        settings: Optional[MeetingSettings] = None,
        *,
        clock: Clock = datetime.now,
    ) -> None:
        self.settings = settings or MeetingSettings()
        self._clock = clock
        self._lock = threading.RLock()
        self.store = ActivityStore()
        self.engine = TimingEngine(
            self.store,
            meeting_start_time=clock(),
            ignore_threshold=self.settings.ignore_threshold,
            clock=clock,
        )
        self._ticker = CountdownTicker(self.settings.tick_interval, self._on_tick)

    # Timing
    def toggle(self, activity_id: str) -> ToggleResult:
        with self._lock:
            previous = self.engine.active_id
            result = self.engine.toggle(activity_id)
            self._sync_ticker(previous)
            return result

    def tick(self) -> int:
        with self._lock:
            return self.engine.tick()

    def _on_tick(self, stop_event: threading.Event) -> None:
        with self._lock:
            if stop_event.is_set():
                return
            self.engine.tick()

    def _sync_ticker(self, previous_id: Optional[str]) -> None:
        if self.engine.active_id == previous_id:
            return
        self._ticker.stop(wait=False)
        if self.engine.active_id is not None:
            self._ticker.start()

    def ticker_running(self) -> bool:
        return self._ticker.is_running()

    # Agenda editing
    def add(self, name: str, planned_minutes: float) -> Optional[Activity]:
        with self._lock:
            return self.store.add(name, planned_minutes)

    def duplicate(self, activity_id: str) -> Activity:
        with self._lock:
            return self.store.duplicate(activity_id)

    def delete(self, activity_id: str) -> None:
        with self._lock:
            self.store.delete(activity_id)

    def edit(self, activity_id: str, name: str, duration_minutes: float) -> Activity:
        with self._lock:
            return self.store.edit(activity_id, name, duration_minutes)

    def manual_update(self, activity_id: str, field: str, value: Any) -> Activity:
        with self._lock:
            return self.store.manual_update(activity_id, field, value)

    def reorder(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self.store.reorder(from_index, to_index)

    def clear(self) -> None:
        with self._lock:
            previous = self.engine.active_id
            self.engine.reset()
            self._sync_ticker(previous)
            logger.info("Meeting data cleared.")

    # Settings
    def set_meeting_start(self, start: datetime) -> None:
        with self._lock:
            self.engine.set_meeting_start(start)

    def set_meeting_start_clock(self, value: time) -> datetime:
        """Move the meeting start to ``value`` on the current meeting day."""
        with self._lock:
            current = self.engine.state.meeting_start_time
            start = current.replace(
                hour=value.hour, minute=value.minute, second=0, microsecond=0
            )
            self.set_meeting_start(start)
            return start

    def set_ignore_threshold(self, seconds: float) -> None:
        with self._lock:
            self.engine.set_ignore_threshold(seconds)
            self.settings.ignore_threshold = self.engine.state.ignore_threshold

    # Import / export
    def import_template(self, text: str) -> ImportResult:
        with self._lock:
            result = parse_template(text)
            self.store.extend(result.activities)
            return result

    def import_data(self, text: str) -> ImportResult:
        with self._lock:
            result = parse_data(text)
            self.store.extend(result.activities)
            if not result.activities:
                logger.warning("Data import found no valid rows (%d skipped).", result.skipped)
            return result

    def export_data(self, day: Optional[date] = None) -> tuple[str, str]:
        with self._lock:
            return export_filename(DATA_FILE_PREFIX, day), dump_data(self.store)

    def export_template(self, day: Optional[date] = None) -> tuple[str, str]:
        with self._lock:
            return export_filename(TEMPLATE_FILE_PREFIX, day), dump_template(self.store)

    def chart(self, day: Optional[date] = None) -> tuple[str, list[ChartPoint]]:
        with self._lock:
            return export_filename(CHART_FILE_PREFIX, day, "png"), chart_series(self.store)

    # Views
    def projection(self) -> Projection:
        with self._lock:
            state = self.engine.state
            return project(
                self.store.activities,
                state.active_id,
                state.meeting_start_time,
                self._clock(),
            )

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            state = self.engine.state
            active = self.engine.active_activity
            return {
                "meeting_start_time": state.meeting_start_time.isoformat(),
                "ignore_threshold_seconds": state.ignore_threshold.total_seconds(),
                "active_id": state.active_id,
                "active_name": active.name if active else None,
                "countdown": state.countdown,
                "countdown_display": format_countdown(state.countdown),
                "planned_display": format_clock(active.planned_duration) if active else "--:--",
                "projection": self.projection().to_dict(),
                "activities": [a.to_dict() for a in self.store],
            }

    def shutdown(self) -> None:
        self._ticker.stop()
