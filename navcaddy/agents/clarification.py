"""
Clarification Handler.

When the classifier is not confident, ranks every known intent by
how well it fits the input and offers the top few as suggestions.
"""

import logging
import re
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from navcaddy.models.classification import ClarificationResponse, IntentSuggestion
from navcaddy.models.intent import IntentType, ParsedIntent
from navcaddy.models.session import SessionContext
from navcaddy.registry.intent_registry import DEFAULT_INTENT_KEYWORDS, IntentRegistry

logger = logging.getLogger(__name__)

# Scoring weights
PARSED_INTENT_WEIGHT = 2.0
EXAMPLE_WORD_WEIGHT = 0.5
DESCRIPTION_WORD_WEIGHT = 0.3
KEYWORD_WEIGHT = 1.5

# Boosts applied when a round is (or is not) in progress
ACTIVE_ROUND_BOOSTS = {
    IntentType.SHOT_RECOMMENDATION: 1.0,
    IntentType.SCORE_ENTRY: 1.0,
    IntentType.PATTERN_QUERY: 1.0,
    IntentType.WEATHER_CHECK: 1.0,
    IntentType.BAILOUT_QUERY: 1.0,
    IntentType.ROUND_END: 0.5,
}
NO_ROUND_BOOSTS = {
    IntentType.ROUND_START: 1.0,
}

VAGUE_WORDS = frozenset({"it", "this", "that", "something"})
FEELING_WORDS = frozenset({"feel", "feels", "feeling"})
QUESTION_WORDS = frozenset({"what", "how", "when", "where", "why", "which", "should", "can", "could"})

SHORT_INPUT_MESSAGE = "I'm not sure what you need. Could you tell me more?"
VAGUE_MESSAGE = "I'm not quite sure what you mean. Did you want to:"
FEELING_MESSAGE = "Could you clarify? Are you looking to:"
QUESTION_MESSAGE = "I can help with that. Did you want to:"
GENERIC_MESSAGE = "I'm not quite sure. Did you want to:"


def _words(text: str) -> List[str]:
    return re.findall(r"[a-z0-9]+(?:'[a-z]+)?", text.lower())


class ClarificationHandler:
    """
    Builds a bounded list of likely intents for an ambiguous input.

    Scores are additive: a parsed-intent bonus, overlap with example
    phrases and descriptions, round-state boosts, and keyword hits.
    """

    def __init__(
        self,
        registry: IntentRegistry,
        keywords: Optional[Dict[IntentType, Sequence[str]]] = None,
        max_suggestions: int = 3
    ):
        """
        Initialize clarification handler.

        Args:
            registry: Intent schemas (descriptions, examples, labels)
            keywords: Curated keyword list per intent
            max_suggestions: Suggestions to return (1-3)
        """
        if not 1 <= max_suggestions <= 3:
            raise ValueError(f"max_suggestions must be in [1, 3]: {max_suggestions}")

        self.registry = registry
        self.max_suggestions = max_suggestions
        keyword_table = keywords if keywords is not None else DEFAULT_INTENT_KEYWORDS
        self.keywords: Dict[IntentType, FrozenSet[str]] = {
            intent_type: frozenset(k.lower() for k in words)
            for intent_type, words in keyword_table.items()
        }

        # Word sets per intent, built once
        self._example_words: Dict[IntentType, FrozenSet[str]] = {}
        self._description_words: Dict[IntentType, FrozenSet[str]] = {}
        for schema in registry.get_all_schemas():
            example_words = set()
            for phrase in schema.example_phrases:
                example_words.update(_words(phrase))
            self._example_words[schema.intent_type] = frozenset(example_words)
            self._description_words[schema.intent_type] = frozenset(_words(schema.description))

    def generate_clarification(
        self,
        input_text: str,
        parsed_intent: Optional[ParsedIntent] = None,
        context: Optional[SessionContext] = None
    ) -> ClarificationResponse:
        """
        Build a clarification prompt for ambiguous input.

        Args:
            input_text: What the user said
            parsed_intent: The low-confidence classification, if any
            context: Current session, used for round-state boosts

        Returns:
            ClarificationResponse with 1-3 suggestions
        """
        ranked = self.score_intents(input_text, parsed_intent, context)
        top = ranked[:self.max_suggestions]

        suggestions = []
        for intent_type, _ in top:
            schema = self.registry.get_schema(intent_type)
            suggestions.append(IntentSuggestion(
                intent_type=intent_type,
                label=schema.suggestion_label,
                description=schema.description
            ))

        logger.debug(
            "Clarification suggestions: "
            + ", ".join(f"{t.value}={score:.1f}" for t, score in top)
        )

        return ClarificationResponse(
            message=self.build_message(input_text),
            suggestions=suggestions,
            original_input=input_text
        )

    def score_intents(
        self,
        input_text: str,
        parsed_intent: Optional[ParsedIntent] = None,
        context: Optional[SessionContext] = None
    ) -> List[Tuple[IntentType, float]]:
        """All intents with their scores, best first (ties keep declaration order)."""
        input_words = _words(input_text)
        input_set = set(input_words)

        scores = []
        for intent_type in IntentType:
            score = 0.0

            if parsed_intent is not None and parsed_intent.intent_type == intent_type:
                score += PARSED_INTENT_WEIGHT

            example_words = self._example_words.get(intent_type, frozenset())
            score += EXAMPLE_WORD_WEIGHT * sum(1 for w in input_words if w in example_words)

            description_words = self._description_words.get(intent_type, frozenset())
            score += DESCRIPTION_WORD_WEIGHT * sum(1 for w in input_words if w in description_words)

            if context is not None:
                boosts = ACTIVE_ROUND_BOOSTS if context.has_active_round else NO_ROUND_BOOSTS
                score += boosts.get(intent_type, 0.0)

            keywords = self.keywords.get(intent_type, frozenset())
            score += KEYWORD_WEIGHT * len(keywords & input_set)

            scores.append((intent_type, score))

        # sorted() is stable, so equal scores keep IntentType order
        return sorted(scores, key=lambda item: item[1], reverse=True)

    @staticmethod
    def build_message(input_text: str) -> str:
        if len(input_text.strip()) < 5:
            return SHORT_INPUT_MESSAGE

        words = set(_words(input_text))
        if words & VAGUE_WORDS:
            return VAGUE_MESSAGE
        if words & FEELING_WORDS:
            return FEELING_MESSAGE
        if words & QUESTION_WORDS:
            return QUESTION_MESSAGE
        return GENERIC_MESSAGE


# Design Rationale and Trade-offs:
#
# 1. Why keyword and example-word scoring instead of a second model call?
#    - Clarification runs when the model was unsure; asking it again adds latency
#    - Scores are reproducible in tests
#    - Trade-off: Suggestions are only as good as the keyword tables
#
# 2. Why boost by round state?
#    - During a round, shot and score intents are far more likely
#    - Trade-off: Off-topic questions mid-round rank lower
