"""
Session context data models.

Immutable snapshots of the current round and the recent conversation.
The session manager replaces the whole SessionContext on every update.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from navcaddy.models.shot import Shot, utc_now


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One utterance in the conversation buffer."""
    role: Role
    content: str
    timestamp: datetime = field(default_factory=utc_now)
    turn_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if not self.content or not self.content.strip():
            raise ValueError("Conversation turn content cannot be blank")


@dataclass(frozen=True)
class CourseConditions:
    """Weather on the course right now."""
    weather: str
    wind_speed: int
    wind_direction: str
    temperature: int  # Fahrenheit

    def __post_init__(self):
        if self.wind_speed < 0:
            raise ValueError(f"Wind speed cannot be negative: {self.wind_speed}")

    def to_description(self) -> str:
        return (
            f"{self.weather}, {self.temperature}°F, "
            f"wind {self.wind_speed} mph {self.wind_direction}"
        )


@dataclass(frozen=True)
class RoundState:
    """Progress through the round being played."""
    round_id: str
    course_name: str
    current_hole: int = 1
    current_par: int = 4
    total_score: int = 0
    holes_completed: int = 0
    conditions: Optional[CourseConditions] = None

    def __post_init__(self):
        if not self.round_id or not self.round_id.strip():
            raise ValueError("Round id cannot be blank")
        if not self.course_name or not self.course_name.strip():
            raise ValueError("Course name cannot be blank")
        if not 1 <= self.current_hole <= 18:
            raise ValueError(f"Hole must be in [1, 18]: {self.current_hole}")
        if not 3 <= self.current_par <= 5:
            raise ValueError(f"Par must be in [3, 5]: {self.current_par}")
        if self.total_score < 0:
            raise ValueError(f"Total score cannot be negative: {self.total_score}")
        if not 0 <= self.holes_completed <= 18:
            raise ValueError(f"Holes completed must be in [0, 18]: {self.holes_completed}")


@dataclass(frozen=True)
class SessionContext:
    """
    Snapshot of everything the assistant remembers about this session.

    conversation_history holds at most max_history turns, oldest first.
    """
    session_id: str
    current_round: Optional[RoundState] = None
    current_hole: Optional[int] = None
    last_shot: Optional[Shot] = None
    last_recommendation: Optional[str] = None
    conversation_history: Tuple[ConversationTurn, ...] = ()

    @classmethod
    def empty(cls, session_id: Optional[str] = None) -> "SessionContext":
        return cls(session_id=session_id or str(uuid.uuid4()))

    @property
    def has_active_round(self) -> bool:
        return self.current_round is not None

    def with_turns(self, *turns: ConversationTurn, max_history: int = 10) -> "SessionContext":
        """Append turns, dropping the oldest beyond max_history."""
        history = self.conversation_history + tuple(turns)
        if len(history) > max_history:
            history = history[len(history) - max_history:]
        return replace(self, conversation_history=history)

    def recent_turns(self, count: int) -> Tuple[ConversationTurn, ...]:
        if count <= 0:
            return ()
        return self.conversation_history[-count:]


# Design Rationale and Trade-offs:
#
# 1. Why an immutable SessionContext snapshot?
#    - Readers never see a half-applied update
#    - Subscribers can keep old snapshots for diffing
#    - Trade-off: Every update allocates a new context (small, bounded history)
#
# 2. Why trim history in with_turns rather than in the manager?
#    - The ring-buffer rule lives next to the data it bounds
#    - Trade-off: Callers must pass max_history through
