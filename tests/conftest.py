"""
Shared fixtures: a fixed clock, an in-memory shot log and a shot factory.
"""

from datetime import datetime, timedelta, timezone

import pytest

from navcaddy.models.intent import Club, Lie
from navcaddy.models.shot import MissDirection, PressureContext, Shot, utc_now
from navcaddy.utils.storage import ShotRepository

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryShotRepository(ShotRepository):
    """Shot log held in a list, with the same window semantics as the JSON store."""

    def __init__(self, clock=lambda: NOW, retention_days=90):
        self.shots = []
        self.clock = clock
        self.retention_days = retention_days

    async def record_shot(self, shot):
        self.shots.append(shot)

    async def get_recent_shots(self, days):
        cutoff = self.clock() - timedelta(days=days)
        return sorted((s for s in self.shots if s.timestamp >= cutoff), key=lambda s: s.timestamp)

    async def get_shots_with_pressure(self):
        return sorted(
            (s for s in self.shots if s.pressure_context.has_pressure),
            key=lambda s: s.timestamp
        )

    async def clear_memory(self):
        self.shots = []

    async def enforce_retention_policy(self):
        cutoff = self.clock() - timedelta(days=self.retention_days)
        before = len(self.shots)
        self.shots = [s for s in self.shots if s.timestamp >= cutoff]
        return before - len(self.shots)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def shot_repository():
    return InMemoryShotRepository()


@pytest.fixture
def live_shot_repository():
    """In-memory shot log on the real clock, for shots stamped at creation time."""
    return InMemoryShotRepository(clock=utc_now)


@pytest.fixture
def make_shot():
    """Factory for shots hit `days_ago` days before NOW."""
    def _make(
        direction=MissDirection.SLICE,
        club="7-iron",
        days_ago=0.0,
        pressure=False,
        lie=Lie.FAIRWAY
    ):
        return Shot(
            club=Club.parse(club),
            lie=lie,
            miss_direction=direction,
            pressure_context=PressureContext(is_user_tagged=pressure),
            timestamp=NOW - timedelta(days=days_ago)
        )
    return _make
