"""
Unit tests for the Intent Classifier.

The language-model boundary is replaced by a stub that returns canned
JSON payloads, so these tests run offline.
"""

import asyncio
import json

import pytest

from navcaddy.agents.classification import (
    BLANK_INPUT_MESSAGE,
    MALFORMED_RESPONSE_MESSAGE,
    SERVICE_ERROR_MESSAGE,
    TIMEOUT_MESSAGE,
    UNEXPECTED_ERROR_MESSAGE,
    IntentClassifier,
)
from navcaddy.models.classification import Clarify, Confirm, Error, Route
from navcaddy.models.intent import IntentType, Lie, Module
from navcaddy.registry.intent_registry import IntentRegistry
from navcaddy.utils.llm_client import (
    LLMClient,
    LLMParseError,
    LLMResponse,
    LLMTimeoutError,
    LLMTransportError,
)


class StubLLMClient(LLMClient):
    """Returns a fixed payload (or raises) and records what it was asked."""

    def __init__(self, payload=None, error=None, delay=0.0):
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls = []

    async def classify(self, normalized_text, context=None):
        self.calls.append((normalized_text, context))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        raw = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
        return LLMResponse(raw_response=raw, latency_ms=12, model_name="stub")


def make_classifier(payload=None, error=None, delay=0.0, timeout_seconds=10.0):
    client = StubLLMClient(payload=payload, error=error, delay=delay)
    classifier = IntentClassifier(
        llm_client=client,
        registry=IntentRegistry.default(),
        timeout_seconds=timeout_seconds
    )
    return classifier, client


@pytest.mark.asyncio
async def test_high_confidence_routes():
    classifier, _ = make_classifier({
        "intent_type": "club_adjustment",
        "confidence": 0.85,
        "entities": {"club": "7-iron"},
        "user_goal": "Adjust 7-iron distance"
    })

    result = await classifier.classify("my seven iron feels long")

    assert isinstance(result, Route)
    assert result.intent.intent_type == IntentType.CLUB_ADJUSTMENT
    assert result.intent.user_goal == "Adjust 7-iron distance"
    assert result.target.module == Module.CADDY
    assert result.target.screen == "ClubAdjustmentScreen"
    assert result.target.parameters == {"clubId": "7-iron"}


@pytest.mark.asyncio
@pytest.mark.parametrize("confidence,expected_type", [
    (0.75, Route),
    (0.74, Confirm),
    (0.50, Confirm),
    (0.49, Clarify),
])
async def test_threshold_boundaries(confidence, expected_type):
    classifier, _ = make_classifier({"intent_type": "weather_check", "confidence": confidence})

    result = await classifier.classify("how's the wind")

    assert isinstance(result, expected_type)


@pytest.mark.asyncio
async def test_route_target_keeps_default_parameters():
    classifier, _ = make_classifier({
        "intent_type": "shot_recommendation",
        "confidence": 0.9,
        "entities": {"yardage": 150, "lie": "rough"}
    })

    result = await classifier.classify("150 out of the rough")

    assert result.target.screen == "LiveCaddyScreen"
    assert result.target.parameters == {"expandStrategy": True, "yardage": 150, "lie": "rough"}


@pytest.mark.asyncio
async def test_inline_intent_routes_without_target():
    classifier, _ = make_classifier({"intent_type": "help_request", "confidence": 0.95})

    result = await classifier.classify("what can you do")

    assert isinstance(result, Route)
    assert result.target is None


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_input", ["", "   ", "\n\t"])
async def test_blank_input_rejected(raw_input):
    classifier, client = make_classifier({"intent_type": "help_request", "confidence": 0.9})

    result = await classifier.classify(raw_input)

    assert isinstance(result, Error)
    assert result.message == BLANK_INPUT_MESSAGE
    assert client.calls == []


@pytest.mark.asyncio
async def test_normalized_text_sent_to_model():
    classifier, client = make_classifier({"intent_type": "shot_recommendation", "confidence": 0.9})

    await classifier.classify("one fifty with the pw")

    assert client.calls[0][0] == "150 with the pitching wedge"


@pytest.mark.asyncio
async def test_unknown_intent_falls_back_to_help():
    classifier, _ = make_classifier({"intent_type": "order_pizza", "confidence": 0.99})

    result = await classifier.classify("order me a pizza")

    # Unknown intents get a very low confidence, so they end up clarifying
    assert isinstance(result, Clarify)
    assert 1 <= len(result.response.suggestions) <= 3


@pytest.mark.asyncio
async def test_legacy_intent_field_accepted():
    classifier, _ = make_classifier({"intent": "WEATHER_CHECK", "confidence": 0.9})

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Route)
    assert result.intent.intent_type == IntentType.WEATHER_CHECK


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    "not json at all",
    "[1, 2, 3]",
    json.dumps({"intent_type": "weather_check"}),
    json.dumps({"intent_type": "weather_check", "confidence": "very"}),
    json.dumps({"intent_type": "weather_check", "confidence": True}),
])
async def test_malformed_payload(payload):
    classifier, _ = make_classifier(payload)

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Error)
    assert result.message == MALFORMED_RESPONSE_MESSAGE
    assert isinstance(result.cause, LLMParseError)


@pytest.mark.asyncio
async def test_confidence_above_range_clamped():
    classifier, _ = make_classifier({"intent_type": "weather_check", "confidence": 1.7})

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Route)
    assert result.intent.confidence == 1.0


@pytest.mark.asyncio
async def test_confidence_below_range_clamped():
    classifier, _ = make_classifier({"intent_type": "weather_check", "confidence": -0.2})

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Clarify)


@pytest.mark.asyncio
@pytest.mark.parametrize("error,message", [
    (LLMTransportError("network down"), SERVICE_ERROR_MESSAGE),
    (LLMTimeoutError("slow"), TIMEOUT_MESSAGE),
    (LLMParseError("garbage"), MALFORMED_RESPONSE_MESSAGE),
    (RuntimeError("boom"), UNEXPECTED_ERROR_MESSAGE),
])
async def test_boundary_errors_mapped(error, message):
    classifier, _ = make_classifier(error=error)

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Error)
    assert result.message == message
    assert result.cause is error
    assert "boom" not in result.message


@pytest.mark.asyncio
async def test_timeout_budget():
    classifier, _ = make_classifier(
        {"intent_type": "weather_check", "confidence": 0.9},
        delay=1.0,
        timeout_seconds=0.05
    )

    result = await classifier.classify("how's the wind")

    assert isinstance(result, Error)
    assert result.message == TIMEOUT_MESSAGE
    assert isinstance(result.cause, LLMTimeoutError)


@pytest.mark.asyncio
async def test_missing_required_entity_downgrades_to_confirm():
    classifier, _ = make_classifier({
        "intent_type": "club_adjustment",
        "confidence": 0.92,
        "entities": {"club": "banana"}
    })

    result = await classifier.classify("adjust my banana")

    assert isinstance(result, Confirm)
    assert result.message == "Which club?"
    assert result.intent.entities.club is None


@pytest.mark.asyncio
async def test_entities_sanitized():
    classifier, _ = make_classifier({
        "intent_type": "shot_recommendation",
        "confidence": 0.9,
        "entities": {"yardage": -5, "fatigue": 42, "hole_number": 25, "lie": "bunker"}
    })

    result = await classifier.classify("what's the play here")

    entities = result.intent.entities
    assert entities.yardage is None
    assert entities.fatigue == 10
    assert entities.hole_number is None
    assert entities.lie == Lie.BUNKER


@pytest.mark.asyncio
@pytest.mark.parametrize("entities_json", [
    '{"yardage": NaN}',
    '{"yardage": 1e999}',
    '{"fatigue": Infinity}',
    '{"hole_number": -Infinity}',
])
async def test_non_finite_entity_numbers_dropped(entities_json):
    classifier, _ = make_classifier(
        '{"intent_type": "shot_recommendation", "confidence": 0.9, '
        f'"entities": {entities_json}}}'
    )

    result = await classifier.classify("150 out")

    assert isinstance(result, Route)
    entities = result.intent.entities
    assert entities.yardage is None
    assert entities.fatigue is None
    assert entities.hole_number is None


@pytest.mark.asyncio
async def test_confirm_messages_use_entities():
    classifier, _ = make_classifier({
        "intent_type": "club_adjustment",
        "confidence": 0.6,
        "entities": {"club": "pw"}
    })
    result = await classifier.classify("pw is off")
    assert result.message == "Did you want to adjust your Pitching Wedge?"

    classifier, _ = make_classifier({
        "intent_type": "shot_recommendation",
        "confidence": 0.6,
        "entities": {"yardage": 150}
    })
    result = await classifier.classify("150 out")
    assert result.message == "Did you want to get advice for a 150 yard shot?"

    classifier, _ = make_classifier({"intent_type": "score_entry", "confidence": 0.6})
    result = await classifier.classify("made a five")
    assert result.message == "Did you want to enter your score?"


@pytest.mark.asyncio
async def test_clarify_keeps_original_input():
    classifier, _ = make_classifier({"intent_type": "weather_check", "confidence": 0.3})

    result = await classifier.classify("hmm  the  wind")

    assert isinstance(result, Clarify)
    assert result.response.original_input == "hmm  the  wind"
    assert result.response.suggestions[0].intent_type == IntentType.WEATHER_CHECK
