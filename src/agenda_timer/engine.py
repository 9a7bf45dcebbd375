"""Start/stop state machine for the meeting agenda."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from .errors import ValidationRejected
from .models import Activity, ActivityStatus
from .store import ActivityStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ToggleOutcome(str, Enum):
    STARTED = "started"
    STOPPED = "stopped"
    DISCARDED = "discarded"


@dataclass(frozen=True, slots=True)
class MeetingState:
    """Session-wide timing state, replaced as a whole on every transition."""

    meeting_start_time: datetime
    ignore_threshold: timedelta
    active_id: Optional[str] = None
    session_start_time: Optional[datetime] = None
    countdown: int = 0


@dataclass(frozen=True, slots=True)
class ToggleResult:
    outcome: ToggleOutcome
    activity_id: str
    closed_id: Optional[str] = None
    notice: Optional[str] = None


class TimingEngine:
    """Drives activities through pending, active and completed."""

    def __init__(
        self,
        store: ActivityStore,
        *,
        meeting_start_time: datetime,
        ignore_threshold: timedelta = timedelta(seconds=5),
        clock: Clock = datetime.now,
    ) -> None:
        self.store = store
        self._clock = clock
        self._state = MeetingState(
            meeting_start_time=meeting_start_time,
            ignore_threshold=ignore_threshold,
        )

    @property
    def state(self) -> MeetingState:
        return self._state

    @property
    def active_id(self) -> Optional[str]:
        return self._state.active_id

    @property
    def active_activity(self) -> Optional[Activity]:
        if self._state.active_id is None:
            return None
        return self.store.get(self._state.active_id)

    def now(self) -> datetime:
        return self._clock()

    def toggle(self, activity_id: str, now: Optional[datetime] = None) -> ToggleResult:
        """Stop ``activity_id`` if it is running, otherwise start it."""
        now = now or self._clock()
        if activity_id == self._state.active_id:
            return self._stop(now)
        return self._start(activity_id, now)

    def _stop(self, now: datetime) -> ToggleResult:
        state = self._state
        activity = self.store.get(state.active_id)
        session = now - (state.session_start_time or now)
        notice = None

        if session < state.ignore_threshold:
            seconds = _whole_seconds(state.ignore_threshold)
            notice = f"Attività ignorata perché durata meno di {seconds} secondi."
            if activity.is_resume:
                self.store.remove(activity.id)
            else:
                self.store.put(activity.reset())
            outcome = ToggleOutcome.DISCARDED
            logger.info("Discarded %s after %.1fs", activity.name, session.total_seconds())
        else:
            completed = activity.completed(now)
            self.store.put(completed)
            outcome = ToggleOutcome.STOPPED
            logger.info("Completed %s in %.1fs", activity.name, completed.actual_duration)

        self._state = replace(state, active_id=None, session_start_time=None, countdown=0)
        return ToggleResult(outcome=outcome, activity_id=activity.id, notice=notice)

    def _start(self, activity_id: str, now: datetime) -> ToggleResult:
        state = self._state
        target = self.store.get(activity_id)

        if target.status is ActivityStatus.COMPLETED:
            resumed = target.resumption()
            self.store.insert_after(target.id, resumed)
            logger.info("Resuming %s as %s", target.name, resumed.name)
            target = resumed

        if state.active_id is not None:
            logical_start = now
        else:
            logical_start = self.store.last_completed_end() or state.meeting_start_time

        closed_id = state.active_id
        if closed_id is not None:
            # Switching activities never applies the short-session rule.
            self.store.put(self.store.get(closed_id).completed(now))

        self.store.put(target.started(logical_start))
        self._state = replace(
            state,
            active_id=target.id,
            session_start_time=now,
            countdown=_round_half_up(target.planned_duration),
        )
        logger.info("Started %s (logical start %s)", target.name, logical_start.isoformat())
        return ToggleResult(
            outcome=ToggleOutcome.STARTED,
            activity_id=target.id,
            closed_id=closed_id,
        )

    def tick(self) -> int:
        """Advance the countdown by one second while an activity runs."""
        if self._state.active_id is not None:
            self._state = replace(self._state, countdown=self._state.countdown - 1)
            logger.debug("Countdown %d", self._state.countdown)
        return self._state.countdown

    def set_meeting_start(self, start: datetime) -> None:
        self._state = replace(self._state, meeting_start_time=start)

    def set_ignore_threshold(self, seconds: float) -> None:
        if seconds is None or seconds < 0:
            raise ValidationRejected("La soglia deve essere un numero di secondi non negativo.")
        self._state = replace(self._state, ignore_threshold=timedelta(seconds=seconds))

    def reset(self, now: Optional[datetime] = None) -> None:
        """Forget every activity and restart the meeting clock."""
        self.store.clear()
        self._state = MeetingState(
            meeting_start_time=now or self._clock(),
            ignore_threshold=self._state.ignore_threshold,
        )


def _round_half_up(seconds: float) -> int:
    return int((seconds + 0.5) // 1)


def _whole_seconds(delta: timedelta) -> int | float:
    seconds = delta.total_seconds()
    return int(seconds) if seconds.is_integer() else seconds
