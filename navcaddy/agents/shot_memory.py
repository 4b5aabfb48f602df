"""
Miss Pattern Store.

Facade over the shot log and the aggregator: records shot outcomes and
answers pattern questions ("what's my miss with the 7-iron?").
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from navcaddy.agents.aggregation import MissPatternAggregator, PatternTableBuilder
from navcaddy.models.intent import Club, Lie
from navcaddy.models.shot import (
    MissDirection,
    MissPattern,
    PatternStatistics,
    PressureContext,
    Shot,
    utc_now,
)
from navcaddy.utils.storage import ShotRepository

logger = logging.getLogger(__name__)

# Recorder query window
RECENT_SHOT_WINDOW_DAYS = 90


class MissPatternStore:
    """
    Records shots and serves miss patterns computed from them.

    The shot log is the source of truth; patterns are recomputed
    from it on every query.
    """

    def __init__(
        self,
        repository: ShotRepository,
        aggregator: Optional[MissPatternAggregator] = None,
        table_builder: Optional[PatternTableBuilder] = None,
        significant_confidence: float = 0.3,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize pattern store.

        Args:
            repository: Shot persistence
            aggregator: Pattern aggregator (built over repository if omitted)
            table_builder: Renders pattern tables for export
            significant_confidence: Threshold for has_significant_pattern()
            clock: Returns the current time (UTC); injectable for tests
        """
        self.repository = repository
        self.clock = clock or utc_now
        self.aggregator = aggregator or MissPatternAggregator(repository=repository, clock=self.clock)
        self.table_builder = table_builder or PatternTableBuilder()
        self.significant_confidence = significant_confidence

    # Recording

    async def record_shot(self, shot: Shot) -> None:
        await self.repository.record_shot(shot)

    async def record_miss(
        self,
        club: Club,
        direction: MissDirection,
        lie: Lie,
        pressure_context: Optional[PressureContext] = None,
        hole_number: Optional[int] = None,
        notes: Optional[str] = None
    ) -> Shot:
        shot = Shot(
            club=club,
            lie=lie,
            miss_direction=direction,
            pressure_context=pressure_context or PressureContext(),
            hole_number=hole_number,
            notes=notes,
            timestamp=self.clock()
        )
        await self.record_shot(shot)
        return shot

    async def record_success(
        self,
        club: Club,
        lie: Lie,
        pressure_context: Optional[PressureContext] = None,
        hole_number: Optional[int] = None
    ) -> Shot:
        """Record a shot that went where it was aimed."""
        return await self.record_miss(
            club, MissDirection.STRAIGHT, lie,
            pressure_context=pressure_context, hole_number=hole_number
        )

    # Shot queries

    async def get_recent_shots(self, count: int = 50) -> List[Shot]:
        """Most recent `count` shots from the retention window, newest first."""
        shots = await self.repository.get_recent_shots(RECENT_SHOT_WINDOW_DAYS)
        return sorted(shots, key=lambda s: s.timestamp, reverse=True)[:count]

    async def get_shots_in_window(self, days: int) -> List[Shot]:
        return await self.repository.get_recent_shots(days)

    async def get_shots_by_club(self, club_id: str) -> List[Shot]:
        shots = await self.repository.get_recent_shots(RECENT_SHOT_WINDOW_DAYS)
        return [s for s in shots if s.club.club_id == club_id]

    async def get_shots_by_lie(self, lie: Lie) -> List[Shot]:
        shots = await self.repository.get_recent_shots(RECENT_SHOT_WINDOW_DAYS)
        return [s for s in shots if s.lie == lie]

    async def get_shots_with_pressure(self) -> List[Shot]:
        return await self.repository.get_shots_with_pressure()

    async def get_missed_shots(self) -> List[Shot]:
        shots = await self.repository.get_recent_shots(RECENT_SHOT_WINDOW_DAYS)
        return [s for s in shots if s.is_miss]

    # Pattern queries

    async def get_patterns(
        self,
        club_id: Optional[str] = None,
        pressure: Optional[bool] = None
    ) -> List[MissPattern]:
        """
        Patterns over the rolling window.

        Args:
            club_id: Restrict to one club
            pressure: True for pressure shots only

        Returns:
            Patterns sorted by confidence, highest first
        """
        if club_id is not None:
            patterns = await self.aggregator.get_patterns_for_club(club_id)
            if pressure:
                patterns = [p for p in patterns if p.pressure_context is not None]
            return patterns
        if pressure:
            return await self.aggregator.get_patterns_for_pressure()

        shots = await self.repository.get_recent_shots(self.aggregator.window_days)
        return self.aggregator.aggregate_patterns(shots)

    async def get_patterns_by_direction(self, direction: MissDirection) -> List[MissPattern]:
        return await self.aggregator.get_patterns_for_direction(direction)

    async def get_top_patterns(self, limit: int = 5) -> List[MissPattern]:
        return (await self.get_patterns())[:limit]

    async def get_statistics(self, window_days: int = 30) -> PatternStatistics:
        shots = await self.repository.get_recent_shots(window_days)
        return self.aggregator.calculate_statistics(shots)

    async def has_significant_pattern(self, club_id: str) -> bool:
        patterns = await self.get_patterns(club_id=club_id)
        return any(p.confidence > self.significant_confidence for p in patterns)

    async def get_pattern_summary(self, club_id: str) -> str:
        patterns = await self.get_patterns(club_id=club_id)
        if not patterns:
            return "No miss patterns found for this club."
        top = patterns[0]
        return f"Most common miss: {top.direction.value} ({round(top.confidence * 100)}% confidence)"

    async def export_pattern_table(self, output_dir: str, label: Optional[str] = None) -> str:
        """Write the current patterns and statistics as a CSV trend table."""
        label = label or self.clock().strftime("%Y-%m-%d")
        patterns = await self.get_patterns()
        statistics = await self.get_statistics(self.aggregator.window_days)
        return self.table_builder.export(patterns, output_dir, label, statistics=statistics)

    # Maintenance

    async def clear_history(self) -> None:
        await self.repository.clear_memory()
        logger.info("Cleared miss pattern history")

    async def enforce_retention_policy(self) -> int:
        return await self.repository.enforce_retention_policy()


# Design Rationale and Trade-offs:
#
# 1. Why a facade over the repository and the aggregator?
#    - Callers record and query shots through one object
#    - Trade-off: Thin pass-through methods
#
# 2. Why enforce retention explicitly instead of on every write?
#    - Recording a shot stays a single append
#    - Trade-off: The owner must call enforce_retention_policy periodically
