"""
Miss-Pattern Aggregator and Pattern Table Builder.

Turns the shot log into ranked, time-decayed miss patterns, and
renders pattern lists as trend tables for summary displays.
"""

import json
import logging
import os
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import pandas as pd

from navcaddy.models.shot import (
    MissDirection,
    MissPattern,
    PatternStatistics,
    PressureContext,
    Shot,
    ensure_aware,
    utc_now,
)
from navcaddy.models.intent import Club
from navcaddy.utils.decay import PatternDecayCalculator
from navcaddy.utils.storage import ShotRepository

logger = logging.getLogger(__name__)


class MissPatternAggregator:
    """
    Aggregates shot outcomes into miss patterns.

    For each miss direction three kinds of pattern are built: overall,
    per club, and pressure shots only. A group needs min_frequency
    shots before it becomes a pattern.
    """

    def __init__(
        self,
        repository: Optional[ShotRepository] = None,
        decay_calculator: Optional[PatternDecayCalculator] = None,
        min_frequency: int = 3,
        min_confidence: float = 0.10,
        window_days: int = 30,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize aggregator.

        Args:
            repository: Shot log used by the lookup helpers
            decay_calculator: Decay strategy (14-day exponential by default)
            min_frequency: Shots needed before a group becomes a pattern
            min_confidence: Patterns below this confidence are dropped
            window_days: Rolling window for the lookup helpers
            clock: Returns the current time (UTC); injectable for tests
        """
        self.repository = repository
        self.decay_calculator = decay_calculator or PatternDecayCalculator.default()
        self.min_frequency = min_frequency
        self.min_confidence = min_confidence
        self.window_days = window_days
        self.clock = clock or utc_now

    def reference_time(self, now: Optional[datetime] = None) -> datetime:
        """
        Reference time for decay.

        An explicit `now` is used as given. Otherwise the clock is floored
        to the start of its UTC day, so repeated aggregation of the same
        shots gives the same patterns all day.
        """
        if now is not None:
            return ensure_aware(now)
        current = ensure_aware(self.clock()).astimezone(timezone.utc)
        return current.replace(hour=0, minute=0, second=0, microsecond=0)

    def aggregate_patterns(
        self,
        shots: List[Shot],
        apply_decay: bool = True,
        now: Optional[datetime] = None
    ) -> List[MissPattern]:
        """
        Compute miss patterns from a shot snapshot.

        Args:
            shots: Shots to analyze (not modified)
            apply_decay: Scale confidence by the age of the latest miss
            now: Reference time for decay (defaults to reference_time())

        Returns:
            Patterns sorted by confidence, highest first
        """
        now = self.reference_time(now)

        by_direction: Dict[MissDirection, List[Shot]] = {}
        for shot in shots:
            if shot.is_miss:
                by_direction.setdefault(shot.miss_direction, []).append(shot)

        patterns = []
        for direction, direction_shots in by_direction.items():
            overall = self._build_pattern(direction, direction_shots, apply_decay, now)
            if overall:
                patterns.append(overall)

            by_club: Dict[str, List[Shot]] = {}
            for shot in direction_shots:
                by_club.setdefault(shot.club.club_id, []).append(shot)
            for club_shots in by_club.values():
                club_pattern = self._build_pattern(
                    direction, club_shots, apply_decay, now, club=club_shots[0].club
                )
                if club_pattern:
                    patterns.append(club_pattern)

            pressure_shots = [s for s in direction_shots if s.pressure_context.has_pressure]
            if pressure_shots:
                pressure_pattern = self._build_pattern(
                    direction, pressure_shots, apply_decay, now,
                    pressure_context=pressure_shots[0].pressure_context
                )
                if pressure_pattern:
                    patterns.append(pressure_pattern)

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        logger.debug(f"Aggregated {len(patterns)} patterns from {len(shots)} shots")
        return patterns

    def _build_pattern(
        self,
        direction: MissDirection,
        shots: List[Shot],
        apply_decay: bool,
        now: datetime,
        club: Optional[Club] = None,
        pressure_context: Optional[PressureContext] = None
    ) -> Optional[MissPattern]:
        frequency = len(shots)
        if frequency < self.min_frequency:
            return None

        last_occurrence = max(s.timestamp for s in shots)
        confidence = min(1.0, frequency / 10.0)
        if apply_decay:
            confidence *= self.decay_calculator.calculate_decay(last_occurrence, now)

        if confidence < self.min_confidence:
            return None

        return MissPattern(
            direction=direction,
            frequency=frequency,
            confidence=confidence,
            last_occurrence=last_occurrence,
            club=club,
            pressure_context=pressure_context
        )

    def calculate_statistics(
        self,
        shots: List[Shot],
        apply_decay: bool = True,
        now: Optional[datetime] = None
    ) -> PatternStatistics:
        """Totals, most frequent miss and pattern confidence for a shot set."""
        misses = [s.miss_direction for s in shots if s.is_miss]
        patterns = self.aggregate_patterns(shots, apply_decay=apply_decay, now=now)

        most_common = Counter(misses).most_common(1)
        average_confidence = (
            sum(p.confidence for p in patterns) / len(patterns) if patterns else 0.0
        )

        return PatternStatistics(
            total_shots=len(shots),
            total_misses=len(misses),
            most_common_direction=most_common[0][0] if most_common else None,
            average_confidence=average_confidence,
            patterns_found=len(patterns)
        )

    # Lookups over the rolling window

    def _require_repository(self) -> ShotRepository:
        if self.repository is None:
            raise RuntimeError("MissPatternAggregator has no shot repository configured")
        return self.repository

    async def get_patterns_for_club(self, club_id: str, apply_decay: bool = True) -> List[MissPattern]:
        now = self.reference_time()
        shots = await self._require_repository().get_recent_shots(self.window_days)
        club_shots = [s for s in shots if s.club.club_id == club_id]
        return self.aggregate_patterns(club_shots, apply_decay=apply_decay, now=now)

    async def get_patterns_for_direction(
        self,
        direction: MissDirection,
        apply_decay: bool = True
    ) -> List[MissPattern]:
        now = self.reference_time()
        shots = await self._require_repository().get_recent_shots(self.window_days)
        return [
            p for p in self.aggregate_patterns(shots, apply_decay=apply_decay, now=now)
            if p.direction == direction
        ]

    async def get_patterns_for_pressure(self, apply_decay: bool = True) -> List[MissPattern]:
        cutoff = self.clock() - timedelta(days=self.window_days)
        shots = await self._require_repository().get_shots_with_pressure()
        recent = [s for s in shots if s.timestamp >= cutoff]
        return self.aggregate_patterns(recent, apply_decay=apply_decay, now=self.reference_time())


class PatternTableBuilder:
    """
    Renders miss patterns as a table for summary displays.
    """

    COLUMNS = ['Direction', 'Club', 'Pressure', 'Frequency', 'Confidence', 'Last Seen']

    def build_table(self, patterns: List[MissPattern]) -> pd.DataFrame:
        """
        Build a pattern table.

        Args:
            patterns: Patterns to tabulate

        Returns:
            DataFrame sorted by confidence (descending)
        """
        rows = []
        for pattern in patterns:
            rows.append({
                'Direction': pattern.direction.value,
                'Club': pattern.club.name if pattern.club else "All clubs",
                'Pressure': pattern.pressure_context is not None,
                'Frequency': pattern.frequency,
                'Confidence': round(pattern.confidence, 3),
                'Last Seen': pattern.last_occurrence.strftime("%Y-%m-%d"),
            })

        df = pd.DataFrame(rows, columns=self.COLUMNS)
        if not df.empty:
            df = df.sort_values('Confidence', ascending=False, kind='stable')
        return df.reset_index(drop=True)

    def export(
        self,
        patterns: List[MissPattern],
        output_dir: str,
        label: str,
        statistics: Optional[PatternStatistics] = None
    ) -> str:
        """
        Write the pattern table as CSV plus a metadata JSON beside it.

        Returns:
            Path to the CSV file
        """
        df = self.build_table(patterns)

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"patterns_{label}.csv")
        df.to_csv(output_path, index=False)
        logger.info(f"Pattern table saved to {output_path} ({len(df)} patterns)")

        metadata = {
            "label": label,
            "total_patterns": len(df),
            "generated_at": utc_now().isoformat()
        }
        if statistics is not None:
            metadata["statistics"] = {
                "total_shots": statistics.total_shots,
                "total_misses": statistics.total_misses,
                "most_common_direction": (
                    statistics.most_common_direction.value
                    if statistics.most_common_direction else None
                ),
                "average_confidence": round(statistics.average_confidence, 4),
                "patterns_found": statistics.patterns_found
            }

        metadata_path = os.path.join(output_dir, f"patterns_{label}_metadata.json")
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)
        logger.info(f"Metadata saved to {metadata_path}")

        return output_path


# Design Rationale and Trade-offs:
#
# 1. Why floor the default reference time to the UTC day?
#    - Repeated aggregation of one snapshot gives identical patterns all day
#    - Trade-off: Decay advances in daily steps; misses from today weigh 1.0
#
# 2. Why decay by the latest occurrence instead of per shot?
#    - One fresh miss revives a known tendency, matching how players think
#    - Trade-off: Old shots in a refreshed group count at full weight
#
# 3. Why pandas for the pattern table?
#    - Same CSV export path as the rest of the reporting
#    - Trade-off: Heavy dependency for a small table
