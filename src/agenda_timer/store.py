"""Ordered collection of agenda activities."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Iterable, Iterator, Optional

from .errors import ActivityNotFound, GuardRejected, ValidationRejected
from .models import Activity, ActivityStatus, new_activity_id
from .normalization import normalize_name

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("actual_duration", "start_time", "end_time")


class ActivityStore:
    """Holds the agenda in order.

    The list is rebuilt on every change instead of being mutated in place,
    so a reference obtained from :attr:`activities` never changes under the
    caller.
    """

    def __init__(self, activities: Iterable[Activity] = ()) -> None:
        self._activities: tuple[Activity, ...] = tuple(activities)

    @property
    def activities(self) -> tuple[Activity, ...]:
        return self._activities

    def __iter__(self) -> Iterator[Activity]:
        return iter(self._activities)

    def __len__(self) -> int:
        return len(self._activities)

    def get(self, activity_id: str) -> Activity:
        return self._activities[self.index_of(activity_id)]

    def index_of(self, activity_id: str) -> int:
        for index, activity in enumerate(self._activities):
            if activity.id == activity_id:
                return index
        raise ActivityNotFound(activity_id)

    def add(self, name: str, planned_minutes: float) -> Optional[Activity]:
        """Append a pending activity; invalid input is ignored and returns None."""
        normalized = normalize_name(name)
        if not normalized or planned_minutes is None or planned_minutes <= 0:
            logger.debug("Ignoring new activity name=%r minutes=%r", name, planned_minutes)
            return None
        activity = Activity(
            id=new_activity_id(),
            name=normalized,
            planned_duration=planned_minutes * 60,
        )
        self._activities = self._activities + (activity,)
        logger.info("Added activity %s (%s min)", activity.name, planned_minutes)
        return activity

    def extend(self, activities: Iterable[Activity]) -> None:
        self._activities = self._activities + tuple(activities)

    def duplicate(self, activity_id: str) -> Activity:
        index = self.index_of(activity_id)
        duplicate = self._activities[index].copy()
        self.insert_after(activity_id, duplicate)
        return duplicate

    def insert_after(self, activity_id: str, activity: Activity) -> None:
        index = self.index_of(activity_id)
        items = list(self._activities)
        items.insert(index + 1, activity)
        self._activities = tuple(items)

    def delete(self, activity_id: str) -> None:
        activity = self.get(activity_id)
        if activity.status is ActivityStatus.ACTIVE:
            raise GuardRejected("Non puoi eliminare un'attività in corso.")
        self.remove(activity_id)
        logger.info("Deleted activity %s", activity.name)

    def remove(self, activity_id: str) -> None:
        """Drop the record without any status guard."""
        self.index_of(activity_id)
        self._activities = tuple(a for a in self._activities if a.id != activity_id)

    def edit(self, activity_id: str, name: str, duration_minutes: float) -> Activity:
        activity = self.get(activity_id)
        if activity.status is not ActivityStatus.PENDING:
            raise GuardRejected("Puoi modificare solo attività in attesa.")
        normalized = normalize_name(name)
        if not normalized:
            raise ValidationRejected("Il nome dell'attività non può essere vuoto.")
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationRejected("La durata prevista deve essere maggiore di zero.")
        updated = replace(activity, name=normalized, planned_duration=duration_minutes * 60)
        self.put(updated)
        return updated

    def manual_update(self, activity_id: str, field: str, value: Any) -> Activity:
        """Correct a recorded value after the fact.

        Setting a timestamp recomputes ``actual_duration`` when both ends are
        known; setting ``actual_duration`` on a record with both ends moves
        ``end_time`` to match. Any non-null value completes a pending record.
        """
        activity = self.get(activity_id)
        if activity.status is ActivityStatus.ACTIVE:
            raise GuardRejected("Non puoi modificare manualmente un'attività in corso.")
        if field not in EDITABLE_FIELDS:
            raise ValidationRejected(f"Campo non modificabile: {field}")

        updated = replace(activity, **{field: value})
        if field == "actual_duration":
            if value is not None and value < 0:
                raise ValidationRejected("La durata effettiva non può essere negativa.")
            if value is not None and updated.start_time and updated.end_time:
                updated = replace(updated, end_time=_shift(updated.start_time, value))
        elif updated.start_time and updated.end_time:
            if updated.end_time < updated.start_time:
                raise ValidationRejected(
                    "L'orario di fine non può essere precedente a quello di inizio."
                )
            updated = replace(
                updated,
                actual_duration=(updated.end_time - updated.start_time).total_seconds(),
            )

        if value is not None and updated.status is ActivityStatus.PENDING:
            updated = replace(updated, status=ActivityStatus.COMPLETED)
        self.put(updated)
        logger.info("Manually updated %s of %s", field, activity.name)
        return updated

    def reorder(self, from_index: int, to_index: int) -> None:
        size = len(self._activities)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise ValidationRejected("Posizione non valida.")
        items = list(self._activities)
        items.insert(to_index, items.pop(from_index))
        self._activities = tuple(items)

    def put(self, activity: Activity) -> None:
        """Replace the record that has the same id."""
        index = self.index_of(activity.id)
        items = list(self._activities)
        items[index] = activity
        self._activities = tuple(items)

    def clear(self) -> None:
        self._activities = ()

    def last_completed_end(self) -> Optional[datetime]:
        ends = [
            a.end_time
            for a in self._activities
            if a.status is ActivityStatus.COMPLETED and a.end_time is not None
        ]
        return max(ends) if ends else None


def _shift(start: datetime, seconds: float) -> datetime:
    return start + timedelta(seconds=seconds)
