"""
Pattern decay calculator.

Reduces confidence in older evidence so recent misses dominate the
patterns reported back to the player.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from navcaddy.models.shot import ensure_aware, utc_now

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0


class DecayFunction(Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


class PatternDecayCalculator:
    """
    Time-based decay strategy.

    Exponential (default): weight = 0.5 ** (days / half_life)
    Linear: weight = max(0, 1 - days / (2 * half_life))

    Both return 1.0 for timestamps in the future and decrease
    monotonically with age.
    """

    MIN_HALF_LIFE_DAYS = 1.0

    def __init__(
        self,
        half_life_days: float = 14.0,
        function: DecayFunction = DecayFunction.EXPONENTIAL
    ):
        """
        Initialize decay calculator.

        Args:
            half_life_days: Days for confidence to halve (minimum 1)
            function: Curve shape
        """
        if half_life_days < self.MIN_HALF_LIFE_DAYS:
            logger.warning(
                f"Half-life {half_life_days} below minimum, using {self.MIN_HALF_LIFE_DAYS} days"
            )
            half_life_days = self.MIN_HALF_LIFE_DAYS
        self.half_life_days = float(half_life_days)
        self.function = DecayFunction(function)

    @classmethod
    def default(cls) -> "PatternDecayCalculator":
        return cls(half_life_days=14.0)

    @classmethod
    def short_term(cls) -> "PatternDecayCalculator":
        return cls(half_life_days=7.0)

    @classmethod
    def long_term(cls) -> "PatternDecayCalculator":
        return cls(half_life_days=30.0)

    def calculate_decay(self, timestamp: datetime, now: Optional[datetime] = None) -> float:
        """
        Decay weight in [0, 1] for evidence observed at timestamp.

        Args:
            timestamp: When the evidence was observed
            now: Reference time (defaults to the current UTC time)
        """
        now = ensure_aware(now) if now else utc_now()
        elapsed_days = (now - ensure_aware(timestamp)).total_seconds() / SECONDS_PER_DAY
        if elapsed_days <= 0:
            return 1.0

        if self.function == DecayFunction.LINEAR:
            return max(0.0, 1.0 - elapsed_days / (2.0 * self.half_life_days))
        return 0.5 ** (elapsed_days / self.half_life_days)

    def calculate_decayed_confidence(
        self,
        base_confidence: float,
        timestamp: datetime,
        now: Optional[datetime] = None
    ) -> float:
        return base_confidence * self.calculate_decay(timestamp, now)

    @staticmethod
    def is_within_retention_window(
        timestamp: datetime,
        retention_days: int = 90,
        now: Optional[datetime] = None
    ) -> bool:
        now = ensure_aware(now) if now else utc_now()
        return ensure_aware(timestamp) >= now - timedelta(days=retention_days)


# Design Rationale and Trade-offs:
#
# 1. Why exponential decay by default?
#    - Half-life reads naturally ("half as relevant after two weeks")
#    - Never reaches zero, so the confidence floor decides when a pattern fades
#    - Trade-off: Linear is available for a hard cutoff
#
# 2. Why a one-day floor on the half-life?
#    - Sub-day half-lives would erase patterns within a round
#    - Trade-off: None
