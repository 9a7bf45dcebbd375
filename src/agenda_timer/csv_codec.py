"""CSV import and export for agenda templates and meeting data.

Two dialects are supported:

* template: ``minutes,"name"`` rows (or ``"name",minutes`` after the
  ``Attività,Tempo Previsto (min)`` header), used to prepare an agenda;
* full data: ``"name",planned,actual,start,end`` rows, used to keep the
  results of a meeting.

Timestamps are written as ``dd/mm/yyyy hh:mm:ss`` in local wall-clock time.
Malformed rows are skipped one by one and never abort an import.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Iterable, Optional

from .models import Activity, ActivityStatus, new_activity_id

logger = logging.getLogger(__name__)

BOM = "\ufeff"
TEMPLATE_HEADER = "Attività,Tempo Previsto (min)"
DATA_HEADER = "Attività,Tempo Previsto (min),Tempo Effettivo (min),Inizio,Fine"
ABSENT = "-"
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"

DATA_FILE_PREFIX = "dati_riunione"
TEMPLATE_FILE_PREFIX = "template_riunione"
CHART_FILE_PREFIX = "grafico_riunione"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(slots=True)
class ImportResult:
    activities: list[Activity] = field(default_factory=list)
    skipped: int = 0

    @property
    def imported(self) -> int:
        return len(self.activities)

    @property
    def message(self) -> str:
        if self.activities:
            return f"{self.imported} attività importate con successo."
        return (
            "Nessuna attività valida trovata nel file. Controlla il formato del file "
            f"e che segua la struttura: {DATA_HEADER}"
        )


def parse_int(text: Optional[str]) -> Optional[int]:
    """Read the leading integer of ``text`` (``"10 min"`` gives 10)."""
    if not text:
        return None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def round_minutes(seconds: float) -> int:
    return int((seconds / 60 + 0.5) // 1)


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse ``dd/mm/yyyy hh:mm[:ss]``; anything else is treated as absent."""
    if not text:
        return None
    text = text.strip()
    if not text or text == ABSENT:
        return None
    parts = text.split()
    if len(parts) < 2:
        return None
    date_parts = parts[0].split("/")
    time_parts = parts[1].split(":")
    if len(date_parts) < 3 or len(time_parts) < 2:
        return None
    try:
        day, month, year = (int(p) for p in date_parts[:3])
        hours, minutes = int(time_parts[0]), int(time_parts[1])
        seconds = int(time_parts[2]) if len(time_parts) > 2 and time_parts[2] else 0
        return datetime(year, month, day, hours, minutes, seconds)
    except ValueError:
        return None


def quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1].replace('""', '"')
    return text


def split_name(line: str) -> Optional[tuple[str, str]]:
    """Split a row into its leading name field and the remainder.

    A quoted name may contain commas and doubled quotes; an unquoted name
    ends at the first comma. Returns None when no separator is found.
    """
    if line.startswith('"'):
        index = 1
        while index < len(line):
            if line[index] == '"':
                if line[index + 1 : index + 2] == '"':
                    index += 2
                    continue
                return line[1:index].replace('""', '"'), line[index + 2 :]
            index += 1
        return None
    comma = line.find(",")
    if comma == -1:
        return None
    return line[:comma], line[comma + 1 :]


def _lines(text: str) -> list[str]:
    if text.startswith(BOM):
        text = text[len(BOM) :]
    return [line.strip() for line in text.split("\n") if line.strip()]


def _has_header(first_line: str, header: str) -> bool:
    return first_line.replace('"', "").startswith(header)


def parse_template(text: str) -> ImportResult:
    """Read an agenda template; only rows with a name and positive minutes are kept."""
    result = ImportResult()
    lines = _lines(text)
    if not lines:
        return result
    has_header = _has_header(lines[0], TEMPLATE_HEADER)
    for index, line in enumerate(lines[1:] if has_header else lines):
        row = _template_row(line, has_header)
        if row is None:
            result.skipped += 1
            logger.debug("Skipping template row %d: %r", index, line)
            continue
        name, minutes = row
        result.activities.append(
            Activity(id=new_activity_id("csv"), name=name, planned_duration=minutes * 60)
        )
    logger.info("Template import: %d rows read, %d skipped", result.imported, result.skipped)
    return result


def _template_row(line: str, name_first: bool) -> Optional[tuple[str, int]]:
    if name_first:
        split = split_name(line)
        if split is None:
            return None
        name, rest = split
        minutes = parse_int(rest.split(",")[0])
    else:
        comma = line.find(",")
        if comma == -1:
            return None
        minutes = parse_int(line[:comma])
        name = unquote(line[comma + 1 :])
    if not name or minutes is None or minutes <= 0:
        return None
    return name, minutes


def parse_data(text: str) -> ImportResult:
    """Read a full meeting data file."""
    result = ImportResult()
    lines = _lines(text)
    if not lines:
        return result
    has_header = _has_header(lines[0], DATA_HEADER)
    for index, line in enumerate(lines[1:] if has_header else lines):
        activity = _data_row(line)
        if activity is None:
            result.skipped += 1
            logger.debug("Skipping data row %d: %r", index, line)
            continue
        result.activities.append(activity)
    logger.info("Data import: %d rows read, %d skipped", result.imported, result.skipped)
    return result


def _data_row(line: str) -> Optional[Activity]:
    split = split_name(line)
    if split is None:
        return None
    name, rest = split
    if not name:
        return None
    parts = [unquote(part) for part in rest.split(",")]
    if len(parts) < 4:
        return None

    planned = parse_int(parts[0])
    actual = parse_int(parts[1])
    start = parse_timestamp(parts[2])
    end = parse_timestamp(parts[3])
    if (planned is not None and planned < 0) or (actual is not None and actual < 0):
        return None
    if start and end and end < start:
        return None

    activity = Activity(
        id=new_activity_id("csv-data"),
        name=name,
        planned_duration=(planned or 0) * 60,
        actual_duration=actual * 60 if actual is not None else None,
        start_time=start,
        end_time=end,
    )
    if start and end:
        # Timestamps are more precise than the rounded minutes column.
        return replace(
            activity,
            actual_duration=(end - start).total_seconds(),
            status=ActivityStatus.COMPLETED,
        )
    if actual is not None:
        return replace(activity, status=ActivityStatus.COMPLETED)
    return activity.reset()


def dump_data(activities: Iterable[Activity]) -> str:
    rows = [DATA_HEADER]
    for activity in activities:
        actual = (
            str(round_minutes(activity.actual_duration))
            if activity.actual_duration is not None
            else ""
        )
        rows.append(
            ",".join(
                [
                    quote(activity.name),
                    str(round_minutes(activity.planned_duration)),
                    actual,
                    format_timestamp(activity.start_time),
                    format_timestamp(activity.end_time),
                ]
            )
        )
    return BOM + "\n".join(rows)


def dump_template(activities: Iterable[Activity]) -> str:
    rows = [
        f"{round_minutes(activity.planned_duration)},{quote(activity.name)}"
        for activity in activities
    ]
    return BOM + "\n".join(rows)


def encode(text: str) -> bytes:
    return text.encode("utf-8")


def export_filename(prefix: str, day: Optional[date] = None, suffix: str = "csv") -> str:
    day = day or date.today()
    return f"{prefix}_{day.isoformat()}.{suffix}"
