"""
Intent data models.

Represents the classifier's structured view of an utterance:
the intent type, extracted entities, confidence and the
navigation target it resolves to.
"""

import math
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class IntentType(Enum):
    """Closed set of user goals the assistant understands."""
    CLUB_ADJUSTMENT = "club_adjustment"
    RECOVERY_CHECK = "recovery_check"
    SHOT_RECOMMENDATION = "shot_recommendation"
    SCORE_ENTRY = "score_entry"
    PATTERN_QUERY = "pattern_query"
    DRILL_REQUEST = "drill_request"
    WEATHER_CHECK = "weather_check"
    STATS_LOOKUP = "stats_lookup"
    ROUND_START = "round_start"
    ROUND_END = "round_end"
    EQUIPMENT_INFO = "equipment_info"
    COURSE_INFO = "course_info"
    SETTINGS_CHANGE = "settings_change"
    HELP_REQUEST = "help_request"
    FEEDBACK = "feedback"
    BAILOUT_QUERY = "bailout_query"
    READINESS_CHECK = "readiness_check"

    @classmethod
    def from_name(cls, name: Any) -> Optional["IntentType"]:
        """
        Resolve an intent name as returned by the language model.

        Accepts "club_adjustment", "CLUB_ADJUSTMENT" or "club adjustment".
        Returns None for anything unrecognized.
        """
        if not isinstance(name, str):
            return None
        key = re.sub(r"[\s\-]+", "_", name.strip().lower())
        for intent_type in cls:
            if intent_type.value == key:
                return intent_type
        return None


class Module(Enum):
    """Functional areas of the app a routing target can live in."""
    CADDY = "caddy"
    COACH = "coach"
    RECOVERY = "recovery"
    SETTINGS = "settings"


class EntityType(Enum):
    """Entity slots an intent may require or accept."""
    CLUB = "club"
    YARDAGE = "yardage"
    LIE = "lie"
    WIND = "wind"
    FATIGUE = "fatigue"
    PAIN = "pain"
    SCORE_CONTEXT = "score_context"
    HOLE_NUMBER = "hole_number"
    DRILL_TYPE = "drill_type"
    STAT_TYPE = "stat_type"
    COURSE_NAME = "course_name"
    EQUIPMENT_TYPE = "equipment_type"
    SETTING_KEY = "setting_key"
    FEEDBACK_TEXT = "feedback_text"

    @property
    def display_name(self) -> str:
        """Name used when asking the user for a missing entity."""
        return _ENTITY_DISPLAY_NAMES.get(self, self.value.replace("_", " "))


_ENTITY_DISPLAY_NAMES = {
    EntityType.WIND: "wind conditions",
    EntityType.FATIGUE: "fatigue level",
    EntityType.PAIN: "pain details",
    EntityType.DRILL_TYPE: "drill type",
    EntityType.STAT_TYPE: "statistic type",
    EntityType.SETTING_KEY: "setting name",
    EntityType.FEEDBACK_TEXT: "feedback",
}


class Lie(Enum):
    """Where the ball is sitting."""
    TEE = "tee"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    BUNKER = "bunker"
    GREEN = "green"
    FRINGE = "fringe"
    HAZARD = "hazard"

    @classmethod
    def parse(cls, text: Any) -> Optional["Lie"]:
        """Parse free text into a lie, or None when nothing matches."""
        if not isinstance(text, str):
            return None
        normalized = text.strip().lower()
        if not normalized:
            return None

        for lie in cls:
            if lie.value == normalized:
                return lie

        # Most specific first: "fairway bunker" is a bunker lie
        for lie, pattern in _LIE_PATTERNS:
            if re.search(pattern, normalized):
                return lie
        return None


_LIE_PATTERNS = [
    (Lie.HAZARD, r"\b(hazard|water|penalty area)\b"),
    (Lie.BUNKER, r"\b(bunker|sand|trap)\b"),
    (Lie.FRINGE, r"\b(fringe|apron|collar)\b"),
    (Lie.GREEN, r"\b(green|putting surface)\b"),
    (Lie.ROUGH, r"\b(rough|long grass|first cut)\b"),
    (Lie.FAIRWAY, r"\b(fairway|short grass)\b"),
    (Lie.TEE, r"\b(tee|tee box)\b"),
]


class ClubType(Enum):
    DRIVER = "driver"
    WOOD = "wood"
    HYBRID = "hybrid"
    IRON = "iron"
    WEDGE = "wedge"
    PUTTER = "putter"


_NUMBER_WORDS = {
    "one": "1", "two": "2", "three": "3", "four": "4", "five": "5",
    "six": "6", "seven": "7", "eight": "8", "nine": "9",
}

# club_id -> (display name, compact aliases)
_WEDGES = {
    "pitching-wedge": ("Pitching Wedge", ("pitchingwedge", "pitching", "pw", "pwedge")),
    "gap-wedge": ("Gap Wedge", ("gapwedge", "gap", "gw", "aw", "approachwedge", "awedge")),
    "sand-wedge": ("Sand Wedge", ("sandwedge", "sw", "swedge")),
    "lob-wedge": ("Lob Wedge", ("lobwedge", "lob", "lw", "lwedge")),
}


@dataclass(frozen=True)
class Club:
    """
    A club in the player's bag.

    club_id is a canonical slug ("7-iron", "pitching-wedge", "driver")
    used as the routing parameter and the grouping key for miss patterns.
    """
    club_id: str
    name: str
    club_type: ClubType

    def __post_init__(self):
        if not self.club_id or not self.club_id.strip():
            raise ValueError("Club id cannot be blank")
        if not self.name or not self.name.strip():
            raise ValueError("Club name cannot be blank")

    @classmethod
    def parse(cls, text: Any) -> Optional["Club"]:
        """
        Parse a spoken or typed club name.

        Recognizes forms like "7 iron", "7i", "seven iron", "3-wood",
        "4 hybrid", "pw", "sand wedge", "driver" and "putter". A bare
        digit is read as an iron. Returns None when nothing matches.
        """
        if not isinstance(text, str):
            return None
        normalized = text.strip().lower().replace("_", " ")
        if not normalized:
            return None

        tokens = normalized.split()
        if tokens and tokens[0] in _NUMBER_WORDS:
            tokens[0] = _NUMBER_WORDS[tokens[0]]
        compact = re.sub(r"[\s\-]+", "", "".join(tokens))

        if "driver" in compact or compact in ("dr", "d", "1w", "1wood"):
            return cls("driver", "Driver", ClubType.DRIVER)
        if compact in ("putter", "flatstick"):
            return cls("putter", "Putter", ClubType.PUTTER)

        for club_id, (name, aliases) in _WEDGES.items():
            if compact in aliases:
                return cls(club_id, name, ClubType.WEDGE)

        match = re.fullmatch(r"([2-9])(wood|w)", compact)
        if match:
            number = match.group(1)
            return cls(f"{number}-wood", f"{number}-Wood", ClubType.WOOD)

        match = re.fullmatch(r"([1-9])(hybrid|h|rescue)", compact)
        if match:
            number = match.group(1)
            return cls(f"{number}-hybrid", f"{number}-Hybrid", ClubType.HYBRID)

        match = re.fullmatch(r"([1-9])(iron|i)?", compact)
        if match:
            number = match.group(1)
            return cls(f"{number}-iron", f"{number}-Iron", ClubType.IRON)

        return None

    def to_dict(self) -> dict:
        return {"club_id": self.club_id, "name": self.name, "club_type": self.club_type.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Club":
        return cls(
            club_id=data["club_id"],
            name=data["name"],
            club_type=ClubType(data["club_type"])
        )


def _coerce_int(value: Any) -> Optional[int]:
    """Best-effort integer extraction ("150", "150 yards", 150.0)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = re.search(r"-?\d+(\.\d+)?", value)
        if not match:
            return None
        value = float(match.group(0))
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    return None


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ExtractedEntities:
    """
    Entities pulled from an utterance.

    Every field is optional. Invalid raw values are normalized to
    None (or clamped) by from_raw() instead of raising.
    """
    club: Optional[Club] = None
    yardage: Optional[int] = None
    lie: Optional[Lie] = None
    wind: Optional[str] = None
    fatigue: Optional[int] = None
    pain: Optional[str] = None
    score_context: Optional[str] = None
    hole_number: Optional[int] = None

    def __post_init__(self):
        if self.yardage is not None and self.yardage <= 0:
            raise ValueError(f"Yardage must be positive: {self.yardage}")
        if self.fatigue is not None and not 1 <= self.fatigue <= 10:
            raise ValueError(f"Fatigue must be in [1, 10]: {self.fatigue}")
        if self.hole_number is not None and not 1 <= self.hole_number <= 18:
            raise ValueError(f"Hole number must be in [1, 18]: {self.hole_number}")

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> "ExtractedEntities":
        """
        Build sanitized entities from a raw language-model entity map.

        Args:
            raw: Entity dict as returned by the model (may be None)

        Returns:
            ExtractedEntities with out-of-range values dropped or clamped
        """
        if not isinstance(raw, dict):
            return cls()

        yardage = _coerce_int(raw.get("yardage"))
        if yardage is not None and yardage <= 0:
            yardage = None

        fatigue = _coerce_int(raw.get("fatigue"))
        if fatigue is not None:
            fatigue = max(1, min(10, fatigue))

        hole_number = _coerce_int(raw.get("hole_number", raw.get("holeNumber")))
        if hole_number is not None and not 1 <= hole_number <= 18:
            hole_number = None

        return cls(
            club=Club.parse(raw.get("club")),
            yardage=yardage,
            lie=Lie.parse(raw.get("lie")),
            wind=_coerce_text(raw.get("wind")),
            fatigue=fatigue,
            pain=_coerce_text(raw.get("pain")),
            score_context=_coerce_text(raw.get("score_context", raw.get("scoreContext"))),
            hole_number=hole_number
        )

    def has(self, entity_type: EntityType) -> bool:
        """
        Whether a value is present for the given entity slot.

        Slots this model does not carry are reported as present.
        """
        attribute = _ENTITY_ATTRIBUTES.get(entity_type)
        if attribute is None:
            return True
        return getattr(self, attribute) is not None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in _ENTITY_ATTRIBUTES.values())

    def to_parameters(self) -> Dict[str, Any]:
        """Routing parameters for the entities that are present."""
        params = {}
        if self.club is not None:
            params["clubId"] = self.club.club_id
        if self.yardage is not None:
            params["yardage"] = self.yardage
        if self.lie is not None:
            params["lie"] = self.lie.value
        if self.wind is not None:
            params["wind"] = self.wind
        if self.fatigue is not None:
            params["fatigue"] = self.fatigue
        if self.pain is not None:
            params["pain"] = self.pain
        if self.score_context is not None:
            params["scoreContext"] = self.score_context
        if self.hole_number is not None:
            params["holeNumber"] = self.hole_number
        return params


_ENTITY_ATTRIBUTES = {
    EntityType.CLUB: "club",
    EntityType.YARDAGE: "yardage",
    EntityType.LIE: "lie",
    EntityType.WIND: "wind",
    EntityType.FATIGUE: "fatigue",
    EntityType.PAIN: "pain",
    EntityType.SCORE_CONTEXT: "score_context",
    EntityType.HOLE_NUMBER: "hole_number",
}


@dataclass(frozen=True)
class RoutingTarget:
    """Destination for a navigation action. Compared by value only."""
    module: Module
    screen: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.screen or not self.screen.strip():
            raise ValueError("Routing target screen cannot be blank")

    def with_parameters(self, extra: Dict[str, Any]) -> "RoutingTarget":
        """Copy of this target with extra parameters merged over the defaults."""
        merged = dict(self.parameters)
        merged.update(extra)
        return RoutingTarget(module=self.module, screen=self.screen, parameters=merged)


@dataclass(frozen=True)
class ParsedIntent:
    """
    A single classification of user input.

    Constructed once per classification call and never mutated.
    """
    intent_type: IntentType
    confidence: float
    entities: ExtractedEntities = field(default_factory=ExtractedEntities)
    user_goal: Optional[str] = None
    routing_target: Optional[RoutingTarget] = None
    intent_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise ValueError(f"Confidence must be numeric: {self.confidence!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0, 1]: {self.confidence}")


class ThresholdAction(Enum):
    ROUTE = "route"
    CONFIRM = "confirm"
    CLARIFY = "clarify"


@dataclass(frozen=True)
class ConfidenceThresholds:
    """
    Confidence bands for the classification gate.

    Each band is inclusive at its lower bound:
    confidence >= route routes, confirm <= confidence < route confirms,
    anything lower asks for clarification.
    """
    route: float = 0.75
    confirm: float = 0.50

    def __post_init__(self):
        if not 0.0 <= self.confirm <= self.route <= 1.0:
            raise ValueError(
                f"Thresholds must satisfy 0 <= confirm <= route <= 1 "
                f"(got confirm={self.confirm}, route={self.route})"
            )

    def action_for(self, confidence: float) -> ThresholdAction:
        if confidence >= self.route:
            return ThresholdAction.ROUTE
        if confidence >= self.confirm:
            return ThresholdAction.CONFIRM
        return ThresholdAction.CLARIFY


# Design Rationale and Trade-offs:
#
# 1. Why sanitize entities in from_raw instead of validating strictly?
#    - Model output is untrusted; a bad slot becomes None and the intent survives
#    - Non-finite and out-of-range numbers are dropped, fatigue is clamped to 1-10
#    - Trade-off: A garbled value is silently lost rather than reported
#
# 2. Why frozen dataclasses for every intent type?
#    - Results are passed between coroutines and cached in session snapshots
#    - Trade-off: Updates go through dataclasses.replace / with_parameters
#
# 3. Why inclusive lower bounds on the confidence bands?
#    - 0.75 routes and 0.50 confirms exactly as the thresholds read
#    - Trade-off: None
