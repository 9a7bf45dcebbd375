"""Domain models for agenda activities."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

RESUME_SUFFIX = "(ripresa)"


class ActivityStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


def new_activity_id(prefix: str = "new") -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


@dataclass(frozen=True, slots=True)
class Activity:
    """One agenda item. Durations are in seconds."""

    id: str
    name: str
    planned_duration: float
    actual_duration: Optional[float] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: ActivityStatus = ActivityStatus.PENDING

    @property
    def is_resume(self) -> bool:
        """True for the follow-up record created when a completed item restarts."""
        return self.name.endswith(RESUME_SUFFIX)

    @property
    def planned_minutes(self) -> float:
        return self.planned_duration / 60

    @property
    def actual_minutes(self) -> Optional[float]:
        if self.actual_duration is None:
            return None
        return self.actual_duration / 60

    @property
    def deviation(self) -> Optional[float]:
        if self.actual_duration is None:
            return None
        return self.actual_duration - self.planned_duration

    def started(self, at: datetime) -> "Activity":
        return replace(
            self,
            status=ActivityStatus.ACTIVE,
            start_time=at,
            end_time=None,
            actual_duration=None,
        )

    def completed(self, at: datetime) -> "Activity":
        # Duration is measured from the recorded start, not the session anchor.
        start = self.start_time or at
        return replace(
            self,
            status=ActivityStatus.COMPLETED,
            end_time=at,
            actual_duration=(at - start).total_seconds(),
        )

    def reset(self) -> "Activity":
        return replace(
            self,
            status=ActivityStatus.PENDING,
            start_time=None,
            end_time=None,
            actual_duration=None,
        )

    def copy(self, prefix: str = "duplicated") -> "Activity":
        """Fresh pending copy with a new id and no timing data."""
        return replace(self.reset(), id=new_activity_id(prefix))

    def resumption(self) -> "Activity":
        return Activity(
            id=new_activity_id("resumed"),
            name=f"{self.name} {RESUME_SUFFIX}",
            planned_duration=0,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "planned_duration": self.planned_duration,
            "actual_duration": self.actual_duration,
            "planned_minutes": self.planned_minutes,
            "actual_minutes": self.actual_minutes,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class ChartPoint:
    """Per-activity values handed to a charting collaborator."""

    label: str
    planned_minutes: int
    actual_minutes: int
