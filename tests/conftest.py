"""
Pytest configuration and fixtures
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src directory to path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from agenda_timer.config import MeetingSettings  # noqa: E402
from agenda_timer.engine import TimingEngine  # noqa: E402
from agenda_timer.models import Activity  # noqa: E402
from agenda_timer.session import MeetingSession  # noqa: E402
from agenda_timer.store import ActivityStore  # noqa: E402

MEETING_START = datetime(2026, 10, 19, 9, 0, 0)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = MEETING_START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return ActivityStore(
        [
            Activity(id="a", name="Apertura", planned_duration=300),
            Activity(id="b", name="Budget", planned_duration=600),
            Activity(id="c", name="Chiusura", planned_duration=120),
        ]
    )


@pytest.fixture
def engine(store, clock):
    return TimingEngine(
        store,
        meeting_start_time=MEETING_START,
        ignore_threshold=timedelta(seconds=5),
        clock=clock,
    )


@pytest.fixture
def session(clock):
    """Meeting session with a slow ticker so timing tests stay deterministic."""
    meeting = MeetingSession(
        MeetingSettings.from_values(5, tick_seconds=3600),
        clock=clock,
    )
    yield meeting
    meeting.shutdown()
