"""
Intent Registry - configuration tables for every supported intent.

Holds the schema for each intent type (description, entities,
default routing target, example phrases) along with the keyword and
prerequisite tables used by clarification and routing. Instances are
passed into components explicitly; nothing here is global state.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from navcaddy.models.intent import EntityType, IntentType, Module, RoutingTarget
from navcaddy.models.routing import Prerequisite

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentSchema:
    """
    Static description of one intent type.

    default_routing_target is None for intents answered inline.
    """
    intent_type: IntentType
    display_name: str
    description: str
    suggestion_label: str
    required_entities: Tuple[EntityType, ...] = ()
    optional_entities: Tuple[EntityType, ...] = ()
    default_routing_target: Optional[RoutingTarget] = None
    requires_navigation: bool = True
    example_phrases: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.display_name.strip():
            raise ValueError(f"Display name cannot be blank for {self.intent_type.value}")
        if self.requires_navigation and self.default_routing_target is None:
            raise ValueError(
                f"{self.intent_type.value} requires navigation but has no default target"
            )
        if not self.example_phrases:
            raise ValueError(f"{self.intent_type.value} needs at least one example phrase")


def _target(module: Module, screen: str, **parameters) -> RoutingTarget:
    return RoutingTarget(module=module, screen=screen, parameters=parameters)


def default_intent_schemas() -> List[IntentSchema]:
    """Build the standard schema list (a fresh list on each call)."""
    return [
        IntentSchema(
            intent_type=IntentType.CLUB_ADJUSTMENT,
            display_name="Club Adjustment",
            description="Adjust club distances or yardage expectations",
            suggestion_label="Adjust Club",
            required_entities=(EntityType.CLUB,),
            optional_entities=(EntityType.YARDAGE,),
            default_routing_target=_target(Module.CADDY, "ClubAdjustmentScreen"),
            example_phrases=(
                "My 7-iron feels long today",
                "I need to adjust my driver distance",
                "Update my pitching wedge to 120 yards",
                "Change 5-iron yardage",
                "Recalibrate my 3-wood",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.RECOVERY_CHECK,
            display_name="Recovery Check",
            description="Check recovery status and readiness",
            suggestion_label="Check Recovery",
            optional_entities=(EntityType.FATIGUE, EntityType.PAIN),
            default_routing_target=_target(Module.RECOVERY, "RecoveryOverviewScreen"),
            example_phrases=(
                "How's my recovery looking?",
                "Am I ready to play today?",
                "Check my recovery status",
                "What's my readiness score?",
                "How am I feeling today?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.SHOT_RECOMMENDATION,
            display_name="Shot Recommendation",
            description="Get shot advice based on current situation",
            suggestion_label="Get Shot Advice",
            optional_entities=(
                EntityType.YARDAGE, EntityType.CLUB, EntityType.LIE,
                EntityType.WIND, EntityType.HOLE_NUMBER,
            ),
            default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandStrategy=True),
            example_phrases=(
                "What club should I hit?",
                "150 yards into the wind, what's the play?",
                "Big tee shot, what should I do?",
                "Recommend a shot from the rough",
                "Help me with this approach shot",
                "What's the play off the tee?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.SCORE_ENTRY,
            display_name="Score Entry",
            description="Enter or update score for a hole",
            suggestion_label="Enter Score",
            optional_entities=(EntityType.HOLE_NUMBER, EntityType.SCORE_CONTEXT),
            default_routing_target=_target(Module.CADDY, "ScoreEntryScreen"),
            example_phrases=(
                "I got a birdie on this hole",
                "Mark down a par",
                "Enter score for hole 7",
                "I made a 5 on the last hole",
                "Update my score",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.PATTERN_QUERY,
            display_name="Pattern Query",
            description="Ask about historical miss patterns or tendencies",
            suggestion_label="View Patterns",
            optional_entities=(EntityType.CLUB, EntityType.LIE),
            requires_navigation=False,
            example_phrases=(
                "What are my miss patterns with 7-iron?",
                "Do I slice when I'm under pressure?",
                "Show my tendencies off the tee",
                "What's my common miss with wedges?",
                "Am I pushing my irons lately?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.DRILL_REQUEST,
            display_name="Drill Request",
            description="Request a practice drill or training exercise",
            suggestion_label="Get Drill",
            optional_entities=(EntityType.DRILL_TYPE, EntityType.CLUB),
            default_routing_target=_target(Module.COACH, "DrillScreen"),
            example_phrases=(
                "Give me a drill for my slice",
                "I need putting practice",
                "What drill can fix my push?",
                "Recommend a chipping drill",
                "Show me some driver drills",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.WEATHER_CHECK,
            display_name="Weather Check",
            description="Check current or forecast weather conditions",
            suggestion_label="Check Weather",
            optional_entities=(EntityType.WIND,),
            default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandWeather=True),
            example_phrases=(
                "What's the weather looking like?",
                "How's the wind today?",
                "Check the forecast",
                "Is it going to rain?",
                "Show me the weather",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.STATS_LOOKUP,
            display_name="Stats Lookup",
            description="Look up statistics and performance data",
            suggestion_label="View Stats",
            optional_entities=(EntityType.STAT_TYPE, EntityType.CLUB),
            default_routing_target=_target(Module.CADDY, "StatsScreen"),
            example_phrases=(
                "Show my stats",
                "What's my average score?",
                "How am I doing with my driver?",
                "Show my fairways hit percentage",
                "What are my putting stats?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.ROUND_START,
            display_name="Round Start",
            description="Start a new round of golf",
            suggestion_label="Start Round",
            optional_entities=(EntityType.COURSE_NAME,),
            default_routing_target=_target(Module.CADDY, "RoundSetupScreen"),
            example_phrases=(
                "Start a new round",
                "I'm playing at Pebble Beach today",
                "Begin round",
                "Let's tee off",
                "Starting a round at my home course",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.ROUND_END,
            display_name="Round End",
            description="End the current round and view summary",
            suggestion_label="End Round",
            default_routing_target=_target(Module.CADDY, "RoundSummaryScreen"),
            example_phrases=(
                "Finish this round",
                "End round",
                "I'm done playing",
                "Show me the round summary",
                "Complete this round",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.EQUIPMENT_INFO,
            display_name="Equipment Info",
            description="Get information about equipment and bag contents",
            suggestion_label="View Equipment",
            optional_entities=(EntityType.EQUIPMENT_TYPE, EntityType.CLUB),
            default_routing_target=_target(Module.SETTINGS, "EquipmentScreen"),
            example_phrases=(
                "What's in my bag?",
                "Show my club specs",
                "Tell me about my driver",
                "What equipment am I using?",
                "Show my club distances",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.COURSE_INFO,
            display_name="Course Info",
            description="Get course information and hole details",
            suggestion_label="Course Info",
            optional_entities=(EntityType.COURSE_NAME, EntityType.HOLE_NUMBER),
            default_routing_target=_target(Module.CADDY, "CourseInfoScreen"),
            example_phrases=(
                "Tell me about this hole",
                "What's the yardage on hole 7?",
                "Show the course layout",
                "Course information",
                "What's the layout of this hole?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.SETTINGS_CHANGE,
            display_name="Settings Change",
            description="Change app settings or preferences",
            suggestion_label="Change Settings",
            optional_entities=(EntityType.SETTING_KEY,),
            default_routing_target=_target(Module.SETTINGS, "SettingsScreen"),
            example_phrases=(
                "Change my settings",
                "Update my preferences",
                "Turn on notifications",
                "Change units to metric",
                "Open settings",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.HELP_REQUEST,
            display_name="Help Request",
            description="Get help or instructions about the app",
            suggestion_label="Get Help",
            requires_navigation=False,
            example_phrases=(
                "Help me",
                "How do I use this?",
                "What can you do?",
                "I need help",
                "Show me what you can do",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.FEEDBACK,
            display_name="Feedback",
            description="Provide feedback about the app",
            suggestion_label="Send Feedback",
            optional_entities=(EntityType.FEEDBACK_TEXT,),
            default_routing_target=_target(Module.SETTINGS, "FeedbackScreen"),
            example_phrases=(
                "I have feedback",
                "Report a problem",
                "Send feedback",
                "I found a bug",
                "Suggestion for improvement",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.BAILOUT_QUERY,
            display_name="Bailout Query",
            description="Ask where to aim for safe miss or bailout area",
            suggestion_label="Find Bailout",
            optional_entities=(EntityType.HOLE_NUMBER, EntityType.CLUB),
            default_routing_target=_target(
                Module.CADDY, "LiveCaddyScreen", expandStrategy=True, highlightBailout=True
            ),
            example_phrases=(
                "Where's the bailout?",
                "Where should I miss?",
                "What's the safe play?",
                "Where can I bail out?",
                "What's the safest area to miss?",
            ),
        ),
        IntentSchema(
            intent_type=IntentType.READINESS_CHECK,
            display_name="Readiness Check",
            description="Check readiness score and how it affects strategy",
            suggestion_label="Check Readiness",
            optional_entities=(EntityType.FATIGUE, EntityType.PAIN),
            default_routing_target=_target(Module.CADDY, "LiveCaddyScreen", expandReadiness=True),
            example_phrases=(
                "How am I feeling?",
                "What's my readiness?",
                "Am I ready for this shot?",
                "How's my body doing?",
                "Should I play conservative today?",
            ),
        ),
    ]


# Curated keywords used to rank clarification suggestions
DEFAULT_INTENT_KEYWORDS: Dict[IntentType, Tuple[str, ...]] = {
    IntentType.CLUB_ADJUSTMENT: ("club", "adjust", "distance", "feels", "long", "short", "iron", "driver", "wedge"),
    IntentType.RECOVERY_CHECK: ("recovery", "ready", "tired", "sore", "fatigue", "readiness", "rest"),
    IntentType.SHOT_RECOMMENDATION: ("shot", "play", "club", "hit", "recommend", "what", "advice", "yards", "yardage"),
    IntentType.SCORE_ENTRY: ("score", "enter", "log", "made", "par", "bogey", "birdie", "got"),
    IntentType.PATTERN_QUERY: ("pattern", "miss", "tendency", "slice", "hook", "push", "pull"),
    IntentType.DRILL_REQUEST: ("drill", "practice", "exercise", "work", "improve", "training"),
    IntentType.WEATHER_CHECK: ("weather", "wind", "rain", "forecast", "conditions"),
    IntentType.STATS_LOOKUP: ("stats", "statistics", "performance", "average", "percentage"),
    IntentType.ROUND_START: ("start", "begin", "new", "round", "tee"),
    IntentType.ROUND_END: ("end", "finish", "done", "complete", "summary"),
    IntentType.EQUIPMENT_INFO: ("equipment", "bag", "clubs", "gear", "setup"),
    IntentType.COURSE_INFO: ("course", "hole", "yardage", "layout", "map"),
    IntentType.SETTINGS_CHANGE: ("settings", "change", "update", "preferences", "options"),
    IntentType.HELP_REQUEST: ("help", "how", "what", "explain", "understand"),
    IntentType.FEEDBACK: ("feedback", "bug", "report", "problem", "issue"),
    IntentType.BAILOUT_QUERY: ("bailout", "bail", "safe", "safest", "aim"),
    IntentType.READINESS_CHECK: ("readiness", "body", "conservative", "feeling", "energy"),
}

# Data that must exist before an intent can be fulfilled
DEFAULT_PREREQUISITES: Dict[IntentType, Tuple[Prerequisite, ...]] = {
    IntentType.RECOVERY_CHECK: (Prerequisite.RECOVERY_DATA,),
    IntentType.SCORE_ENTRY: (Prerequisite.ROUND_ACTIVE,),
    IntentType.ROUND_END: (Prerequisite.ROUND_ACTIVE,),
    IntentType.CLUB_ADJUSTMENT: (Prerequisite.BAG_CONFIGURED,),
    IntentType.SHOT_RECOMMENDATION: (Prerequisite.BAG_CONFIGURED,),
    IntentType.COURSE_INFO: (Prerequisite.COURSE_SELECTED,),
}

# Intents answered inline by the orchestrator, whatever their schema says
NO_NAVIGATION_INTENTS: FrozenSet[IntentType] = frozenset({
    IntentType.PATTERN_QUERY,
    IntentType.HELP_REQUEST,
    IntentType.FEEDBACK,
})


class IntentRegistry:
    """
    Lookup table from intent type to schema.

    Every IntentType must have exactly one schema.
    """

    def __init__(self, schemas: Iterable[IntentSchema]):
        """
        Initialize registry.

        Args:
            schemas: One schema per intent type

        Raises:
            ValueError: If a schema is duplicated or an intent type is missing
        """
        self.schemas: Dict[IntentType, IntentSchema] = {}
        for schema in schemas:
            if schema.intent_type in self.schemas:
                raise ValueError(f"Duplicate schema for {schema.intent_type.value}")
            self.schemas[schema.intent_type] = schema

        missing = [t.value for t in IntentType if t not in self.schemas]
        if missing:
            raise ValueError(f"Missing schemas for intents: {', '.join(missing)}")

        logger.debug(f"Initialized IntentRegistry with {len(self.schemas)} schemas")

    @classmethod
    def default(cls) -> "IntentRegistry":
        return cls(default_intent_schemas())

    def get_schema(self, intent_type: IntentType) -> IntentSchema:
        return self.schemas[intent_type]

    def get_all_schemas(self) -> List[IntentSchema]:
        """All schemas in IntentType declaration order."""
        return [self.schemas[t] for t in IntentType]

    def get_intents_for_module(self, module: Module) -> List[IntentType]:
        return [
            schema.intent_type
            for schema in self.get_all_schemas()
            if schema.default_routing_target is not None
            and schema.default_routing_target.module == module
        ]

    def get_no_navigation_intents(self) -> List[IntentType]:
        return [s.intent_type for s in self.get_all_schemas() if not s.requires_navigation]

    def __len__(self) -> int:
        return len(self.schemas)


# Design Rationale and Trade-offs:
#
# 1. Why one schema table for prompts, clarification and routing?
#    - The Gemini system prompt, chip labels and default targets cannot drift apart
#    - Trade-off: The module is long; it is data, not logic
#
# 2. Why keep prerequisites and inline intents outside the schemas?
#    - The orchestrator owns those decisions and accepts overrides in tests
#    - Trade-off: Two places to look when adding an intent
#
# 3. Why fail in __init__ on a missing or duplicate schema?
#    - Every IntentType must resolve; a gap would surface mid-conversation
#    - Trade-off: None
