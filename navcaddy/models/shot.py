"""
Shot and miss-pattern data models.

Shots form an append-only log; miss patterns are derived from it
on demand and never persisted as a source of truth.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from navcaddy.models.intent import Club, Lie


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class MissDirection(Enum):
    PUSH = "push"
    PULL = "pull"
    SLICE = "slice"
    HOOK = "hook"
    FAT = "fat"
    THIN = "thin"
    STRAIGHT = "straight"


@dataclass(frozen=True)
class PressureContext:
    """Whether a shot was hit in a scoring-sensitive situation."""
    is_user_tagged: bool = False
    is_inferred: bool = False
    scoring_context: Optional[str] = None  # e.g. "birdie putt", "protecting lead"

    @property
    def has_pressure(self) -> bool:
        return self.is_user_tagged or self.is_inferred

    def to_dict(self) -> dict:
        return {
            "is_user_tagged": self.is_user_tagged,
            "is_inferred": self.is_inferred,
            "scoring_context": self.scoring_context
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PressureContext":
        if not data:
            return cls()
        return cls(
            is_user_tagged=data.get("is_user_tagged", False),
            is_inferred=data.get("is_inferred", False),
            scoring_context=data.get("scoring_context")
        )


@dataclass(frozen=True)
class Shot:
    """
    A recorded shot outcome.

    Never mutated after creation. Retention (90 days) is enforced by
    the persistence layer, not by pattern aggregation.
    """
    club: Club
    lie: Lie
    miss_direction: Optional[MissDirection] = None
    pressure_context: PressureContext = field(default_factory=PressureContext)
    hole_number: Optional[int] = None
    notes: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)
    shot_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if self.hole_number is not None and not 1 <= self.hole_number <= 18:
            raise ValueError(f"Hole number must be in [1, 18]: {self.hole_number}")
        object.__setattr__(self, "timestamp", ensure_aware(self.timestamp))

    @property
    def is_miss(self) -> bool:
        return self.miss_direction is not None and self.miss_direction != MissDirection.STRAIGHT

    @classmethod
    def from_dict(cls, data: dict) -> "Shot":
        """Create Shot from JSON dict."""
        miss = data.get("miss_direction")
        return cls(
            shot_id=data["shot_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            club=Club.from_dict(data["club"]),
            lie=Lie(data["lie"]),
            miss_direction=MissDirection(miss) if miss else None,
            pressure_context=PressureContext.from_dict(data.get("pressure_context")),
            hole_number=data.get("hole_number"),
            notes=data.get("notes")
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "shot_id": self.shot_id,
            "timestamp": self.timestamp.isoformat(),
            "club": self.club.to_dict(),
            "lie": self.lie.value,
            "miss_direction": self.miss_direction.value if self.miss_direction else None,
            "pressure_context": self.pressure_context.to_dict(),
            "hole_number": self.hole_number,
            "notes": self.notes
        }


@dataclass(frozen=True)
class MissPattern:
    """
    An aggregated tendency to miss in one direction.

    club is set for per-club patterns, pressure_context for patterns
    restricted to pressure shots; both None for the overall pattern.
    """
    direction: MissDirection
    frequency: int
    confidence: float
    last_occurrence: datetime
    club: Optional[Club] = None
    pressure_context: Optional[PressureContext] = None

    def __post_init__(self):
        if self.frequency <= 0:
            raise ValueError(f"Frequency must be positive: {self.frequency}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0, 1]: {self.confidence}")

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "club": self.club.club_id if self.club else None,
            "pressure": self.pressure_context is not None,
            "frequency": self.frequency,
            "confidence": round(self.confidence, 4),
            "last_occurrence": self.last_occurrence.isoformat()
        }


@dataclass(frozen=True)
class PatternStatistics:
    """Summary numbers for a shot set."""
    total_shots: int
    total_misses: int
    most_common_direction: Optional[MissDirection]
    average_confidence: float
    patterns_found: int


# Design Rationale and Trade-offs:
#
# 1. Why treat naive datetimes as UTC?
#    - Stored history and injected clocks may mix aware and naive values
#    - Trade-off: A naive local time is misread, so producers should stamp UTC
#
# 2. Why no id on MissPattern?
#    - Patterns are derived values; equal inputs must compare equal
#    - Trade-off: Callers cannot refer to a pattern across recomputations
