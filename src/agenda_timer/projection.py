"""Live countdown, deviation and end-time projection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .models import Activity, ActivityStatus


@dataclass(frozen=True, slots=True)
class Projection:
    """Derived meeting figures. Deviations are in seconds, positive means late."""

    planned_end_time: datetime
    projected_end_time: datetime
    accumulated_deviation: float
    partial_deviation: float
    total_deviation: float

    def to_dict(self) -> dict:
        return {
            "planned_end_time": self.planned_end_time.isoformat(),
            "projected_end_time": self.projected_end_time.isoformat(),
            "accumulated_deviation": self.accumulated_deviation,
            "partial_deviation": self.partial_deviation,
            "total_deviation": self.total_deviation,
            "display": {
                "planned_end_time": format_wall_clock(self.planned_end_time),
                "projected_end_time": format_wall_clock(self.projected_end_time),
                "partial_deviation": format_deviation(self.partial_deviation),
                "total_deviation": format_deviation(self.total_deviation),
            },
        }


def project(
    activities: Sequence[Activity],
    active_id: Optional[str],
    meeting_start_time: datetime,
    now: datetime,
) -> Projection:
    """Compute the meeting projection at ``now``.

    While an activity runs the end time is projected forward from ``now``
    using the remaining budget. When idle it is the planned end shifted by
    the deviation accumulated so far. The two give different results and
    are kept separate on purpose.
    """
    total_planned = sum(a.planned_duration for a in activities)
    planned_end = meeting_start_time + timedelta(seconds=total_planned)
    accumulated = sum(
        a.actual_duration - a.planned_duration
        for a in activities
        if a.status is ActivityStatus.COMPLETED and a.actual_duration is not None
    )

    active_index = _index_of(activities, active_id)
    active = activities[active_index] if active_index is not None else None
    if active is not None and active.start_time is not None:
        elapsed = (now - active.start_time).total_seconds()
        remaining = max(0.0, active.planned_duration - elapsed) + sum(
            a.planned_duration for a in activities[active_index + 1 :]
        )
        projected_end = now + timedelta(seconds=remaining)
        return Projection(
            planned_end_time=planned_end,
            projected_end_time=projected_end,
            accumulated_deviation=accumulated,
            partial_deviation=elapsed - active.planned_duration,
            total_deviation=(projected_end - planned_end).total_seconds(),
        )

    return Projection(
        planned_end_time=planned_end,
        projected_end_time=planned_end + timedelta(seconds=accumulated),
        accumulated_deviation=accumulated,
        partial_deviation=0.0,
        total_deviation=accumulated,
    )


def _index_of(activities: Sequence[Activity], activity_id: Optional[str]) -> Optional[int]:
    if activity_id is None:
        return None
    for index, activity in enumerate(activities):
        if activity.id == activity_id:
            return index
    return None


def format_clock(seconds: float) -> str:
    """``mm:ss``; negative values show as ``00:00``."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def format_countdown(countdown: int) -> str:
    if countdown < 0:
        return f"+{format_clock(abs(countdown))}"
    return format_clock(countdown)


def format_deviation(seconds: float) -> str:
    sign = "+" if seconds >= 0 else "-"
    return f"{sign}{format_clock(abs(int(round(seconds))))}"


def format_wall_clock(value: Optional[datetime]) -> str:
    if value is None:
        return "--:--"
    return value.strftime("%H:%M")
