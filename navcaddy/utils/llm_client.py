"""
Language-understanding boundary.

Sends normalized user input (plus session context) to Gemini and
returns the raw structured intent guess. Parsing and validation of
that guess belong to the classifier.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import google.generativeai as genai

from navcaddy.context.context_injector import ContextInjector
from navcaddy.models.session import SessionContext
from navcaddy.models.shot import utc_now
from navcaddy.registry.intent_registry import IntentRegistry

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base class for failures at the language-model boundary."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class LLMTransportError(LLMError):
    """The request could not be completed (network, quota, API error)."""


class LLMTimeoutError(LLMError):
    """The request did not finish in time."""


class LLMParseError(LLMError):
    """The model answered, but not with a usable JSON payload."""


@dataclass(frozen=True)
class LLMResponse:
    raw_response: str
    latency_ms: int
    model_name: str
    timestamp: datetime = field(default_factory=utc_now)


class LLMClient(ABC):
    """Contract for anything that can produce a raw intent guess."""

    @abstractmethod
    async def classify(
        self,
        normalized_text: str,
        context: Optional[SessionContext] = None
    ) -> LLMResponse:
        """
        Classify normalized text.

        Raises:
            LLMError: On transport, timeout or payload failures
        """


def build_system_prompt(registry: IntentRegistry) -> str:
    """Describe every intent, its entities and the output format."""
    lines = [
        "You are a golf caddy assistant that classifies user intents.",
        "",
        "Your task:",
        "1. Read the user's input (already normalized)",
        "2. Pick the single intent that best matches",
        "3. Extract any entities mentioned",
        "4. Assign a confidence between 0.0 and 1.0",
        "",
        "# Intents",
    ]
    for schema in registry.get_all_schemas():
        lines.append(f"- {schema.intent_type.value}: {schema.description}")
        if schema.required_entities:
            required = ", ".join(e.value for e in schema.required_entities)
            lines.append(f"  Required entities: {required}")
        if schema.optional_entities:
            optional = ", ".join(e.value for e in schema.optional_entities)
            lines.append(f"  Optional entities: {optional}")
        examples = "; ".join(f'"{p}"' for p in schema.example_phrases[:3])
        lines.append(f"  Examples: {examples}")

    lines.extend([
        "",
        "# Entities",
        "- club: club name (e.g. \"7-iron\", \"driver\", \"pitching wedge\")",
        "- yardage: distance in yards (positive integer)",
        "- lie: one of tee, fairway, rough, bunker, green, fringe, hazard",
        "- wind: free-text wind description (e.g. \"10mph headwind\")",
        "- fatigue: fatigue level from 1 (fresh) to 10 (exhausted)",
        "- pain: free-text pain description",
        "- score_context: free-text scoring situation (e.g. \"birdie\")",
        "- hole_number: hole number from 1 to 18",
        "",
        "Rules:",
        "- Use only the intent names listed above",
        "- Omit entities that are not mentioned",
        "- Lower the confidence when the input is vague or could mean several things",
        "",
        "Output valid JSON only.",
    ])
    return "\n".join(lines)


def _construct_user_prompt(
    normalized_text: str,
    context: Optional[SessionContext],
    injector: ContextInjector
) -> str:
    """Construct user prompt from input and session context."""
    sections = []
    if context is not None:
        context_block = injector.build_context_prompt(context)
        if context_block:
            sections.append(context_block)

    sections.append(f"""# User Input
"{normalized_text}"

Classify as JSON:
{{
  "intent_type": "<intent name>",
  "confidence": 0.0,
  "entities": {{
    "club": null,
    "yardage": null,
    "lie": null,
    "wind": null,
    "fatigue": null,
    "pain": null,
    "score_context": null,
    "hole_number": null
  }},
  "user_goal": "<short description of what the user wants>"
}}""")
    return "\n\n".join(sections)


class GeminiIntentClient(LLMClient):
    """
    Intent classification via Gemini.

    Retries on API errors and on non-JSON responses, then raises
    the last failure as an LLMError.
    """

    def __init__(
        self,
        api_key: str,
        registry: IntentRegistry,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_retries: int = 3,
        timeout_seconds: int = 10,
        injector: Optional[ContextInjector] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key
            registry: Intent registry used to build the system prompt
            model_name: Gemini model to use
            temperature: LLM temperature (0.0 for deterministic)
            max_retries: Attempts before giving up
            timeout_seconds: Per-request timeout
            injector: Renders session context into the prompt
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max(1, max_retries)
        self.timeout_seconds = timeout_seconds
        self.injector = injector or ContextInjector()

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": temperature,
                "response_mime_type": "application/json"
            },
            system_instruction=build_system_prompt(registry)
        )

        logger.info(f"Initialized GeminiIntentClient with model={model_name}, temp={temperature}")

    async def classify(
        self,
        normalized_text: str,
        context: Optional[SessionContext] = None
    ) -> LLMResponse:
        user_prompt = _construct_user_prompt(normalized_text, context, self.injector)

        last_error: Optional[LLMError] = None
        for attempt in range(self.max_retries):
            started = time.monotonic()
            try:
                response = await self.model.generate_content_async(
                    user_prompt,
                    request_options={"timeout": self.timeout_seconds}
                )
                text = response.text
                json.loads(text)

                latency_ms = int((time.monotonic() - started) * 1000)
                logger.debug(f"Gemini answered in {latency_ms}ms (attempt {attempt + 1})")
                return LLMResponse(
                    raw_response=text,
                    latency_ms=latency_ms,
                    model_name=self.model_name
                )

            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse LLM JSON response (attempt {attempt + 1}): {e}")
                last_error = LLMParseError("Model returned non-JSON output", cause=e)

            except Exception as e:
                logger.error(f"LLM API error (attempt {attempt + 1}): {e}")
                last_error = LLMTransportError("Gemini request failed", cause=e)

        logger.warning(f"Max retries ({self.max_retries}) reached for intent classification")
        raise last_error


# Design Rationale and Trade-offs:
#
# 1. Why an LLMClient interface in front of Gemini?
#    - The classifier is tested offline against scripted clients
#    - Trade-off: One extra abstraction layer
#
# 2. Why JSON response mime type and temperature 0.0?
#    - Deterministic, parseable answers for the same prompt
#    - Trade-off: Less varied phrasing, irrelevant for classification
#
# 3. Why validate JSON inside the retry loop?
#    - A malformed answer is retried like a transport failure
#    - Trade-off: A consistently malformed model burns all retries
