"""
Basic unit tests for the Intent Registry.
"""

import pytest

from navcaddy.models.intent import EntityType, IntentType, Module
from navcaddy.models.routing import Prerequisite
from navcaddy.registry.intent_registry import (
    DEFAULT_INTENT_KEYWORDS,
    DEFAULT_PREREQUISITES,
    NO_NAVIGATION_INTENTS,
    IntentRegistry,
    IntentSchema,
    default_intent_schemas,
)


def test_default_registry_covers_every_intent():
    registry = IntentRegistry.default()

    assert len(registry) == len(IntentType)
    for intent_type in IntentType:
        assert registry.get_schema(intent_type).intent_type == intent_type


def test_get_all_schemas_in_declaration_order():
    registry = IntentRegistry.default()
    assert [s.intent_type for s in registry.get_all_schemas()] == list(IntentType)


def test_duplicate_schema_rejected():
    schemas = default_intent_schemas()
    schemas.append(schemas[0])

    with pytest.raises(ValueError, match="Duplicate"):
        IntentRegistry(schemas)


def test_missing_schema_rejected():
    schemas = [s for s in default_intent_schemas() if s.intent_type != IntentType.FEEDBACK]

    with pytest.raises(ValueError, match="feedback"):
        IntentRegistry(schemas)


def test_navigation_schema_requires_target():
    with pytest.raises(ValueError):
        IntentSchema(
            intent_type=IntentType.STATS_LOOKUP,
            display_name="Stats Lookup",
            description="Look up statistics",
            suggestion_label="View Stats",
            example_phrases=("Show my stats",),
        )


def test_club_adjustment_schema():
    schema = IntentRegistry.default().get_schema(IntentType.CLUB_ADJUSTMENT)

    assert schema.required_entities == (EntityType.CLUB,)
    assert schema.default_routing_target.module == Module.CADDY
    assert schema.default_routing_target.screen == "ClubAdjustmentScreen"
    assert schema.default_routing_target.parameters == {}


def test_shot_recommendation_target_parameters():
    schema = IntentRegistry.default().get_schema(IntentType.SHOT_RECOMMENDATION)
    assert schema.default_routing_target.parameters == {"expandStrategy": True}


def test_no_navigation_intents_from_schemas():
    registry = IntentRegistry.default()
    assert registry.get_no_navigation_intents() == [
        IntentType.PATTERN_QUERY,
        IntentType.HELP_REQUEST,
    ]
    # Routing treats feedback as inline too, even though it has a screen
    assert IntentType.FEEDBACK in NO_NAVIGATION_INTENTS


def test_get_intents_for_module():
    registry = IntentRegistry.default()

    assert registry.get_intents_for_module(Module.COACH) == [IntentType.DRILL_REQUEST]
    assert registry.get_intents_for_module(Module.RECOVERY) == [IntentType.RECOVERY_CHECK]


def test_every_schema_has_examples_and_label():
    for schema in IntentRegistry.default().get_all_schemas():
        assert len(schema.example_phrases) >= 5
        assert schema.suggestion_label.strip()


def test_keyword_table_covers_every_intent():
    assert set(DEFAULT_INTENT_KEYWORDS) == set(IntentType)


def test_prerequisite_table():
    assert DEFAULT_PREREQUISITES[IntentType.RECOVERY_CHECK] == (Prerequisite.RECOVERY_DATA,)
    assert DEFAULT_PREREQUISITES[IntentType.SCORE_ENTRY] == (Prerequisite.ROUND_ACTIVE,)
    assert DEFAULT_PREREQUISITES[IntentType.ROUND_END] == (Prerequisite.ROUND_ACTIVE,)
    assert DEFAULT_PREREQUISITES[IntentType.CLUB_ADJUSTMENT] == (Prerequisite.BAG_CONFIGURED,)
    assert DEFAULT_PREREQUISITES[IntentType.SHOT_RECOMMENDATION] == (Prerequisite.BAG_CONFIGURED,)
    assert DEFAULT_PREREQUISITES[IntentType.COURSE_INFO] == (Prerequisite.COURSE_SELECTED,)
    assert IntentType.WEATHER_CHECK not in DEFAULT_PREREQUISITES
