"""Chart series and console summaries of meeting results."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .csv_codec import parse_data, round_minutes
from .models import Activity, ActivityStatus, ChartPoint
from .normalization import truncate_label


def chart_series(activities: Iterable[Activity]) -> list[ChartPoint]:
    """Planned vs actual minutes per activity, in agenda order."""
    return [
        ChartPoint(
            label=truncate_label(activity.name),
            planned_minutes=round_minutes(activity.planned_duration),
            actual_minutes=(
                round_minutes(activity.actual_duration)
                if activity.actual_duration is not None
                else 0
            ),
        )
        for activity in activities
    ]


class SummaryPrinter:
    """Render a meeting data file as a console report."""

    def __init__(self, csv_path: Path) -> None:
        self.csv_path = Path(csv_path)

    def print_summary(self) -> None:
        text = self.csv_path.read_text(encoding="utf-8-sig")
        result = parse_data(text)
        if not result.activities:
            print(result.message)
            return

        activities = result.activities
        total_planned = sum(a.planned_duration for a in activities)
        total_actual = sum(a.actual_duration or 0 for a in activities)
        completed = [a for a in activities if a.status is ActivityStatus.COMPLETED]

        print(f"Summary for {self.csv_path.name}")
        print("-" * 60)
        print(f"Activities:    {len(activities)} ({len(completed)} completed)")
        print(f"Planned time:  {format_duration(total_planned)}")
        print(f"Actual time:   {format_duration(total_actual)}")
        print(f"Deviation:     {format_signed_duration(deviation_total(activities))}")
        if result.skipped:
            print(f"Skipped rows:  {result.skipped}")
        print()

        print(f"  {'Activity':<30} {'Planned':>9} {'Actual':>9} {'Delta':>10}")
        for activity in activities:
            actual = (
                format_duration(activity.actual_duration)
                if activity.actual_duration is not None
                else "-"
            )
            delta = (
                format_signed_duration(activity.deviation)
                if activity.deviation is not None
                else "-"
            )
            print(
                f"  {truncate_label(activity.name):<30} "
                f"{format_duration(activity.planned_duration):>9} {actual:>9} {delta:>10}"
            )


def deviation_total(activities: Iterable[Activity]) -> float:
    return sum(
        a.actual_duration - a.planned_duration
        for a in activities
        if a.status is ActivityStatus.COMPLETED and a.actual_duration is not None
    )


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_signed_duration(seconds: float) -> str:
    sign = "+" if seconds >= 0 else "-"
    return f"{sign}{format_duration(abs(seconds))}"
