"""
Unit tests for intent, entity and routing data models.
"""

import pytest
from datetime import datetime, timezone

from navcaddy.models.classification import ClarificationResponse, IntentSuggestion
from navcaddy.models.intent import (
    Club,
    ClubType,
    ConfidenceThresholds,
    EntityType,
    ExtractedEntities,
    IntentType,
    Lie,
    Module,
    ParsedIntent,
    RoutingTarget,
    ThresholdAction,
)
from navcaddy.models.routing import Prerequisite, PrerequisiteMissing
from navcaddy.models.session import RoundState
from navcaddy.models.shot import MissDirection, PressureContext, Shot


@pytest.mark.parametrize("text,expected_id", [
    ("7-iron", "7-iron"),
    ("7 iron", "7-iron"),
    ("seven iron", "7-iron"),
    ("7i", "7-iron"),
    ("7", "7-iron"),
    ("PW", "pitching-wedge"),
    ("pitching wedge", "pitching-wedge"),
    ("sand wedge", "sand-wedge"),
    ("lw", "lob-wedge"),
    ("3 wood", "3-wood"),
    ("4 hybrid", "4-hybrid"),
    ("Driver", "driver"),
    ("my driver", "driver"),
    ("putter", "putter"),
])
def test_club_parse_recognized(text, expected_id):
    """Test common club spellings resolve to canonical ids."""
    club = Club.parse(text)
    assert club is not None
    assert club.club_id == expected_id


@pytest.mark.parametrize("text", ["banana", "", "   ", None, 7, "10", "hybrid"])
def test_club_parse_unrecognized(text):
    """Test unknown club names return None instead of raising."""
    assert Club.parse(text) is None


def test_club_parse_display_name_and_type():
    club = Club.parse("7i")
    assert club.name == "7-Iron"
    assert club.club_type == ClubType.IRON

    wedge = Club.parse("gw")
    assert wedge.name == "Gap Wedge"
    assert wedge.club_type == ClubType.WEDGE


@pytest.mark.parametrize("text,expected", [
    ("FAIRWAY", Lie.FAIRWAY),
    ("fairway bunker", Lie.BUNKER),
    ("in the water", Lie.HAZARD),
    ("short grass", Lie.FAIRWAY),
    ("on the apron", Lie.FRINGE),
    ("mud", None),
    (None, None),
])
def test_lie_parse(text, expected):
    assert Lie.parse(text) == expected


def test_intent_type_from_name():
    assert IntentType.from_name("club_adjustment") == IntentType.CLUB_ADJUSTMENT
    assert IntentType.from_name("CLUB_ADJUSTMENT") == IntentType.CLUB_ADJUSTMENT
    assert IntentType.from_name("club adjustment") == IntentType.CLUB_ADJUSTMENT
    assert IntentType.from_name("order_pizza") is None
    assert IntentType.from_name(None) is None


def test_entities_from_raw_sanitizes_values():
    """Test invalid raw values are dropped or clamped, never raised."""
    entities = ExtractedEntities.from_raw({
        "club": "banana",
        "yardage": -20,
        "fatigue": 15,
        "hole_number": 19,
        "lie": "rough",
        "wind": "  ",
    })

    assert entities.club is None
    assert entities.yardage is None
    assert entities.fatigue == 10
    assert entities.hole_number is None
    assert entities.lie == Lie.ROUGH
    assert entities.wind is None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "9" * 400])
def test_entities_from_raw_drops_non_finite_numbers(value):
    entities = ExtractedEntities.from_raw({"yardage": value, "fatigue": value, "hole_number": value})

    assert entities.yardage is None
    assert entities.fatigue is None
    assert entities.hole_number is None


def test_entities_from_raw_parses_strings():
    entities = ExtractedEntities.from_raw({
        "club": "7 iron",
        "yardage": "150 yards",
        "fatigue": "0",
        "holeNumber": "7",
        "score_context": "birdie",
    })

    assert entities.club.club_id == "7-iron"
    assert entities.yardage == 150
    assert entities.fatigue == 1
    assert entities.hole_number == 7
    assert entities.score_context == "birdie"


def test_entities_from_raw_handles_non_dict():
    assert ExtractedEntities.from_raw(None).is_empty()
    assert ExtractedEntities.from_raw(["club"]).is_empty()


def test_entities_direct_construction_validates():
    with pytest.raises(ValueError):
        ExtractedEntities(yardage=0)
    with pytest.raises(ValueError):
        ExtractedEntities(fatigue=11)
    with pytest.raises(ValueError):
        ExtractedEntities(hole_number=0)


def test_entities_has_and_parameters():
    entities = ExtractedEntities(club=Club.parse("7i"), yardage=150, lie=Lie.FAIRWAY)

    assert entities.has(EntityType.CLUB)
    assert not entities.has(EntityType.WIND)
    # Slots without a field count as present
    assert entities.has(EntityType.DRILL_TYPE)

    assert entities.to_parameters() == {"clubId": "7-iron", "yardage": 150, "lie": "fairway"}


def test_parsed_intent_confidence_validation():
    ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=0.0)
    ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=1.0)

    with pytest.raises(ValueError):
        ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=1.01)
    with pytest.raises(ValueError):
        ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=-0.1)
    with pytest.raises(ValueError):
        ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence="high")


def test_parsed_intent_ids_are_unique():
    a = ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=0.5)
    b = ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=0.5)
    assert a.intent_id != b.intent_id


@pytest.mark.parametrize("confidence,expected", [
    (1.0, ThresholdAction.ROUTE),
    (0.75, ThresholdAction.ROUTE),
    (0.74, ThresholdAction.CONFIRM),
    (0.50, ThresholdAction.CONFIRM),
    (0.49, ThresholdAction.CLARIFY),
    (0.0, ThresholdAction.CLARIFY),
])
def test_threshold_bands(confidence, expected):
    assert ConfidenceThresholds().action_for(confidence) == expected


def test_thresholds_must_be_ordered():
    with pytest.raises(ValueError):
        ConfidenceThresholds(route=0.4, confirm=0.6)


def test_routing_target_value_equality():
    a = RoutingTarget(Module.CADDY, "ClubAdjustmentScreen", {"clubId": "7-iron"})
    b = RoutingTarget(Module.CADDY, "ClubAdjustmentScreen", {"clubId": "7-iron"})
    assert a == b

    merged = a.with_parameters({"yardage": 150})
    assert merged.parameters == {"clubId": "7-iron", "yardage": 150}
    assert a.parameters == {"clubId": "7-iron"}

    with pytest.raises(ValueError):
        RoutingTarget(Module.CADDY, " ")


def test_prerequisite_missing_requires_entries():
    intent = ParsedIntent(intent_type=IntentType.SCORE_ENTRY, confidence=0.9)
    with pytest.raises(ValueError):
        PrerequisiteMissing(intent=intent, missing=[], message="nothing")

    result = PrerequisiteMissing(intent=intent, missing=[Prerequisite.ROUND_ACTIVE], message="x")
    assert result.missing == [Prerequisite.ROUND_ACTIVE]


def test_clarification_response_bounds():
    suggestion = IntentSuggestion(IntentType.HELP_REQUEST, "Get Help", "Get help")

    with pytest.raises(ValueError):
        ClarificationResponse(message="Hmm?", suggestions=[], original_input="x")
    with pytest.raises(ValueError):
        ClarificationResponse(message="Hmm?", suggestions=[suggestion] * 4, original_input="x")
    with pytest.raises(ValueError):
        ClarificationResponse(message=" ", suggestions=[suggestion], original_input="x")


def test_round_state_validation():
    RoundState(round_id="r1", course_name="Pebble Beach")

    with pytest.raises(ValueError):
        RoundState(round_id="", course_name="Pebble Beach")
    with pytest.raises(ValueError):
        RoundState(round_id="r1", course_name="Pebble Beach", current_hole=19)
    with pytest.raises(ValueError):
        RoundState(round_id="r1", course_name="Pebble Beach", current_par=6)


def test_shot_serialization():
    """Test Shot to/from dict conversion."""
    shot = Shot(
        club=Club.parse("7i"),
        lie=Lie.ROUGH,
        miss_direction=MissDirection.SLICE,
        pressure_context=PressureContext(is_user_tagged=True, scoring_context="birdie putt"),
        hole_number=12,
        notes="into the wind",
        timestamp=datetime(2026, 5, 1, 15, 30, tzinfo=timezone.utc)
    )

    restored = Shot.from_dict(shot.to_dict())

    assert restored == shot
    assert restored.pressure_context.has_pressure
    assert restored.is_miss


def test_shot_naive_timestamp_treated_as_utc():
    shot = Shot(club=Club.parse("pw"), lie=Lie.FAIRWAY, timestamp=datetime(2026, 5, 1, 12, 0))
    assert shot.timestamp.tzinfo is not None
    assert not shot.is_miss


def test_pressure_context_flags():
    assert not PressureContext().has_pressure
    assert PressureContext(is_inferred=True).has_pressure
    assert PressureContext(is_user_tagged=True).has_pressure
