"""
Intent Classifier.

Normalizes user input, asks the language-understanding boundary for a
structured guess, sanitizes it into a ParsedIntent and applies the
confidence gate: route, confirm, clarify, or report an error.
"""

import asyncio
import json
import logging
import math
from typing import Any, List, Optional

from navcaddy.agents.clarification import ClarificationHandler
from navcaddy.agents.normalization import InputNormalizer
from navcaddy.models.classification import (
    Clarify,
    ClassificationResult,
    Confirm,
    Error,
    Route,
)
from navcaddy.models.intent import (
    ConfidenceThresholds,
    EntityType,
    ExtractedEntities,
    IntentType,
    ParsedIntent,
    RoutingTarget,
    ThresholdAction,
)
from navcaddy.models.session import SessionContext
from navcaddy.registry.intent_registry import IntentRegistry
from navcaddy.utils.llm_client import LLMClient, LLMError, LLMParseError, LLMTimeoutError

logger = logging.getLogger(__name__)

# User-facing error messages (never raw exception text)
BLANK_INPUT_MESSAGE = "Please say or type something."
SERVICE_ERROR_MESSAGE = "Unable to process your request. Please try again."
TIMEOUT_MESSAGE = "That took too long. Please try again."
MALFORMED_RESPONSE_MESSAGE = "I had trouble understanding that. Please try again."
UNEXPECTED_ERROR_MESSAGE = "Something went wrong. Please try again."

# Confidence assigned when the model names an intent we don't know
UNKNOWN_INTENT_CONFIDENCE = 0.1

CONFIRMATION_MESSAGES = {
    IntentType.CLUB_ADJUSTMENT: "Did you want to adjust a club distance?",
    IntentType.RECOVERY_CHECK: "Did you want to check your recovery status?",
    IntentType.SHOT_RECOMMENDATION: "Did you want to get shot advice?",
    IntentType.SCORE_ENTRY: "Did you want to enter your score?",
    IntentType.PATTERN_QUERY: "Did you want to check your miss patterns?",
    IntentType.DRILL_REQUEST: "Did you want to get a practice drill?",
    IntentType.WEATHER_CHECK: "Did you want to check the weather?",
    IntentType.STATS_LOOKUP: "Did you want to look up your stats?",
    IntentType.ROUND_START: "Did you want to start a new round?",
    IntentType.ROUND_END: "Did you want to end your round?",
    IntentType.EQUIPMENT_INFO: "Did you want to check your equipment?",
    IntentType.COURSE_INFO: "Did you want to get course information?",
    IntentType.SETTINGS_CHANGE: "Did you want to change a setting?",
    IntentType.HELP_REQUEST: "Did you want to get help?",
    IntentType.FEEDBACK: "Did you want to provide feedback?",
    IntentType.BAILOUT_QUERY: "Did you want to find a safe bailout area?",
    IntentType.READINESS_CHECK: "Did you want to check your readiness?",
}


def _coerce_confidence(value: Any) -> float:
    """
    Read the model's confidence, clamped to [0, 1].

    Raises:
        LLMParseError: If the value is missing or not a number
    """
    if isinstance(value, bool):
        raise LLMParseError(f"Confidence is not numeric: {value!r}")
    try:
        confidence = float(value)
    except (TypeError, ValueError) as e:
        raise LLMParseError(f"Confidence is not numeric: {value!r}", cause=e)
    if math.isnan(confidence):
        raise LLMParseError("Confidence is NaN")
    return max(0.0, min(1.0, confidence))


class IntentClassifier:
    """
    Classifies a user utterance into a ClassificationResult.

    Pure apart from the boundary call: it never touches session state,
    so a cancelled or timed-out call leaves nothing behind.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        registry: IntentRegistry,
        normalizer: Optional[InputNormalizer] = None,
        clarification_handler: Optional[ClarificationHandler] = None,
        thresholds: Optional[ConfidenceThresholds] = None,
        timeout_seconds: float = 10.0
    ):
        """
        Initialize intent classifier.

        Args:
            llm_client: Language-understanding boundary
            registry: Intent schemas (targets, required entities)
            normalizer: Input normalizer (default instance if omitted)
            clarification_handler: Builds suggestions for low confidence
            thresholds: Confidence bands (route 0.75 / confirm 0.50 by default)
            timeout_seconds: Overall budget for the boundary call
        """
        self.llm_client = llm_client
        self.registry = registry
        self.normalizer = normalizer or InputNormalizer()
        self.clarification_handler = clarification_handler or ClarificationHandler(registry)
        self.thresholds = thresholds or ConfidenceThresholds()
        self.timeout_seconds = timeout_seconds

        logger.info(
            f"Initialized IntentClassifier with route>={self.thresholds.route}, "
            f"confirm>={self.thresholds.confirm}"
        )

    async def classify(
        self,
        raw_input: str,
        context: Optional[SessionContext] = None
    ) -> ClassificationResult:
        """
        Classify raw user input.

        Args:
            raw_input: What the user said or typed
            context: Current session snapshot, if any

        Returns:
            Route, Confirm, Clarify or Error
        """
        # STEP 1: Reject blank input
        if not raw_input or not raw_input.strip():
            logger.debug("Rejected blank input")
            return Error(cause=ValueError("Input is blank"), message=BLANK_INPUT_MESSAGE)

        # STEP 2: Normalize
        normalization = self.normalizer.normalize(raw_input)
        normalized = normalization.normalized_input
        if normalization.was_modified:
            logger.debug(f"Normalized input: '{raw_input}' -> '{normalized}'")

        # STEP 3: Ask the language-understanding boundary
        try:
            response = await asyncio.wait_for(
                self.llm_client.classify(normalized, context),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Intent classification timed out after {self.timeout_seconds}s")
            return Error(
                cause=LLMTimeoutError("Classification timed out", cause=e),
                message=TIMEOUT_MESSAGE
            )
        except LLMTimeoutError as e:
            logger.error(f"Intent classification timed out: {e}")
            return Error(cause=e, message=TIMEOUT_MESSAGE)
        except LLMParseError as e:
            logger.error(f"Malformed classification payload: {e}")
            return Error(cause=e, message=MALFORMED_RESPONSE_MESSAGE)
        except LLMError as e:
            logger.error(f"Intent classification failed: {e}")
            return Error(cause=e, message=SERVICE_ERROR_MESSAGE)
        except Exception as e:
            logger.error(f"Unexpected classification failure: {e}", exc_info=True)
            return Error(cause=e, message=UNEXPECTED_ERROR_MESSAGE)

        # STEP 4: Parse and sanitize
        try:
            parsed = self._parse_llm_response(response.raw_response)
        except LLMParseError as e:
            logger.error(f"Malformed classification payload: {e}")
            return Error(cause=e, message=MALFORMED_RESPONSE_MESSAGE)

        logger.info(
            f"Classified as {parsed.intent_type.value} "
            f"(confidence={parsed.confidence:.2f}, latency={response.latency_ms}ms)"
        )

        # STEP 5-6: Confidence gate
        return self._apply_thresholds(parsed, raw_input, context)

    def _parse_llm_response(self, response_text: str) -> ParsedIntent:
        """
        Parse the boundary's JSON payload into a ParsedIntent.

        Raises:
            LLMParseError: If the payload is not a JSON object with a numeric confidence
        """
        try:
            data = json.loads(response_text)
        except (TypeError, json.JSONDecodeError) as e:
            raise LLMParseError("Response is not valid JSON", cause=e)

        if not isinstance(data, dict):
            raise LLMParseError("Response is not a JSON object")
        if "confidence" not in data:
            raise LLMParseError("Response missing 'confidence' field")

        confidence = _coerce_confidence(data["confidence"])

        intent_name = data.get("intent_type", data.get("intent"))
        intent_type = IntentType.from_name(intent_name)
        if intent_type is None:
            logger.warning(f"Unknown intent '{intent_name}', falling back to help_request")
            intent_type = IntentType.HELP_REQUEST
            confidence = UNKNOWN_INTENT_CONFIDENCE

        entities = ExtractedEntities.from_raw(data.get("entities"))

        user_goal = data.get("user_goal")
        if not isinstance(user_goal, str) or not user_goal.strip():
            user_goal = None

        return ParsedIntent(
            intent_type=intent_type,
            confidence=confidence,
            entities=entities,
            user_goal=user_goal,
            routing_target=self._resolve_target(intent_type, entities)
        )

    def _resolve_target(
        self,
        intent_type: IntentType,
        entities: ExtractedEntities
    ) -> Optional[RoutingTarget]:
        """Schema's default target with entity parameters merged in."""
        default_target = self.registry.get_schema(intent_type).default_routing_target
        if default_target is None:
            return None
        return default_target.with_parameters(entities.to_parameters())

    def _apply_thresholds(
        self,
        parsed: ParsedIntent,
        raw_input: str,
        context: Optional[SessionContext]
    ) -> ClassificationResult:
        action = self.thresholds.action_for(parsed.confidence)

        if action == ThresholdAction.ROUTE:
            missing = self._missing_entities(parsed)
            if missing:
                logger.info(
                    f"Downgrading {parsed.intent_type.value} to confirm, missing: "
                    f"{', '.join(e.value for e in missing)}"
                )
                return Confirm(intent=parsed, message=self._missing_entities_message(missing))
            return Route(intent=parsed, target=parsed.routing_target)

        if action == ThresholdAction.CONFIRM:
            return Confirm(intent=parsed, message=self._confirmation_message(parsed))

        response = self.clarification_handler.generate_clarification(raw_input, parsed, context)
        return Clarify(response=response)

    def _missing_entities(self, parsed: ParsedIntent) -> List[EntityType]:
        schema = self.registry.get_schema(parsed.intent_type)
        return [e for e in schema.required_entities if not parsed.entities.has(e)]

    @staticmethod
    def _missing_entities_message(missing: List[EntityType]) -> str:
        names = [e.display_name for e in missing]
        if len(names) == 1:
            return f"Which {names[0]}?"
        return f"I need the {', '.join(names[:-1])} and {names[-1]}."

    @staticmethod
    def _confirmation_message(parsed: ParsedIntent) -> str:
        entities = parsed.entities
        if parsed.intent_type == IntentType.CLUB_ADJUSTMENT and entities.club is not None:
            return f"Did you want to adjust your {entities.club.name}?"
        if parsed.intent_type == IntentType.SHOT_RECOMMENDATION and entities.yardage is not None:
            return f"Did you want to get advice for a {entities.yardage} yard shot?"
        return CONFIRMATION_MESSAGES[parsed.intent_type]


# Design Rationale and Trade-offs:
#
# 1. Why return Error results instead of raising?
#    - The UI always gets something to say; no exception escapes classify
#    - Trade-off: Callers inspect the result type instead of catching
#
# 2. Why an outer asyncio.wait_for on top of per-request timeouts?
#    - Retries inside the client could otherwise exceed the turn budget
#    - Trade-off: A slow final retry is cut off even if it would have succeeded
#
# 3. Why downgrade to Confirm when required entities are missing?
#    - Navigating to a club screen without a club is worse than one question
#    - Trade-off: One extra turn for confident but incomplete requests
