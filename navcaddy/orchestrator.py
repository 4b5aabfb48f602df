"""
Routing Orchestrator and NavCaddy Engine.

RoutingOrchestrator maps a classification outcome to a routing outcome,
checking prerequisites before any navigation. NavCaddyEngine wires all
components together and runs one conversational turn at a time.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from navcaddy.agents.aggregation import MissPatternAggregator
from navcaddy.agents.classification import IntentClassifier
from navcaddy.agents.clarification import ClarificationHandler
from navcaddy.agents.normalization import InputNormalizer
from navcaddy.agents.prerequisites import CallablePrerequisiteChecker, PrerequisiteChecker
from navcaddy.agents.shot_memory import MissPatternStore
from navcaddy.context.context_injector import ContextInjector
from navcaddy.context.session_manager import SessionContextManager
from navcaddy.models.classification import (
    Clarify,
    ClassificationResult,
    Confirm,
    Error,
    Route,
)
from navcaddy.models.intent import ConfidenceThresholds, IntentType, ParsedIntent
from navcaddy.models.routing import (
    ConfirmationRequired,
    Navigate,
    NoNavigation,
    Prerequisite,
    PrerequisiteMissing,
    RoutingResult,
    response_text,
)
from navcaddy.models.shot import MissPattern, Shot
from navcaddy.registry.intent_registry import (
    DEFAULT_INTENT_KEYWORDS,
    DEFAULT_PREREQUISITES,
    NO_NAVIGATION_INTENTS,
    IntentRegistry,
)
from navcaddy.utils.decay import DecayFunction, PatternDecayCalculator
from navcaddy.utils.llm_client import GeminiIntentClient, LLMClient
from navcaddy.utils.storage import JsonShotStorage, ShotRepository
import config.settings as settings

logger = logging.getLogger(__name__)

# Persona replies for intents answered inline
NO_NAVIGATION_RESPONSES: Dict[IntentType, str] = {
    IntentType.PATTERN_QUERY: (
        "Let me check your miss patterns. Based on your recent shots, I'll give you insights."
    ),
    IntentType.HELP_REQUEST: (
        "I'm Bones, your digital caddy. Ask me about club selection, check your recovery, "
        "enter scores, or get coaching tips. What can I help you with?"
    ),
    IntentType.FEEDBACK: "Thanks for the feedback! I'm always learning to serve you better.",
}
DEFAULT_RESPONSE = "I understand. Let me help you with that."
ERROR_RESPONSE_PREFIX = "Sorry, I couldn't understand that."


def _placeholder_intent() -> ParsedIntent:
    """Neutral intent attached to clarification and error replies."""
    return ParsedIntent(intent_type=IntentType.HELP_REQUEST, confidence=0.0)


class RoutingOrchestrator:
    """
    State machine from ClassificationResult to RoutingResult.

    Route -> NoNavigation (inline intents), PrerequisiteMissing or Navigate
    Confirm -> ConfirmationRequired
    Clarify -> NoNavigation with the clarification message
    Error -> NoNavigation with an apology
    """

    def __init__(
        self,
        prerequisite_checker: PrerequisiteChecker,
        prerequisites: Optional[Dict[IntentType, Sequence[Prerequisite]]] = None,
        no_navigation_intents: Optional[Iterable[IntentType]] = None,
        responses: Optional[Dict[IntentType, str]] = None
    ):
        """
        Initialize routing orchestrator.

        Args:
            prerequisite_checker: Answers whether required data exists
            prerequisites: Required prerequisites per intent
            no_navigation_intents: Intents always answered inline
            responses: Inline replies per intent
        """
        self.prerequisite_checker = prerequisite_checker
        self.prerequisites = dict(prerequisites if prerequisites is not None else DEFAULT_PREREQUISITES)
        self.no_navigation_intents: FrozenSet[IntentType] = frozenset(
            no_navigation_intents if no_navigation_intents is not None else NO_NAVIGATION_INTENTS
        )
        self.responses = dict(responses if responses is not None else NO_NAVIGATION_RESPONSES)

    async def route(self, result: ClassificationResult) -> RoutingResult:
        """
        Decide what to do with a classification outcome.

        Args:
            result: Output of IntentClassifier.classify()

        Returns:
            Navigate, NoNavigation, PrerequisiteMissing or ConfirmationRequired
        """
        if isinstance(result, Route):
            return await self._route_intent(result)

        if isinstance(result, Confirm):
            logger.debug(f"Confirmation required for {result.intent.intent_type.value}")
            return ConfirmationRequired(intent=result.intent, message=result.message)

        if isinstance(result, Clarify):
            logger.debug("Clarification requested")
            return NoNavigation(
                intent=_placeholder_intent(),
                response=result.response.message
            )

        if isinstance(result, Error):
            logger.debug(f"Classification error routed as apology: {result.message}")
            return NoNavigation(
                intent=_placeholder_intent(),
                response=f"{ERROR_RESPONSE_PREFIX} {result.message}"
            )

        raise TypeError(f"Unknown classification result: {type(result).__name__}")

    async def _route_intent(self, result: Route) -> RoutingResult:
        intent = result.intent
        intent_type = intent.intent_type

        if intent_type in self.no_navigation_intents:
            logger.info(f"Answering {intent_type.value} inline")
            return NoNavigation(
                intent=intent,
                response=self.responses.get(intent_type, DEFAULT_RESPONSE)
            )

        required = list(self.prerequisites.get(intent_type, ()))
        missing = await self._check_prerequisites(required)
        if missing:
            logger.info(
                f"Prerequisites missing for {intent_type.value}: "
                f"{', '.join(p.value for p in missing)}"
            )
            return PrerequisiteMissing(
                intent=intent,
                missing=missing,
                message=self._missing_message(missing)
            )

        if result.target is None:
            logger.warning(f"No routing target for {intent_type.value}, answering inline")
            return NoNavigation(intent=intent, response=DEFAULT_RESPONSE)

        logger.info(f"Navigating to {result.target.module.value}/{result.target.screen}")
        return Navigate(target=result.target, intent=intent)

    async def _check_prerequisites(self, required: List[Prerequisite]) -> List[Prerequisite]:
        """Unsatisfied prerequisites, in declaration order. Failures count as missing."""
        if not required:
            return []
        try:
            unsatisfied = set(await self.prerequisite_checker.check_all(required))
        except Exception as e:
            logger.error(f"Prerequisite check failed, treating all as missing: {e}")
            return list(required)
        return [p for p in required if p in unsatisfied]

    @staticmethod
    def _missing_message(missing: List[Prerequisite]) -> str:
        if len(missing) == 1:
            return missing[0].missing_message
        items = ", ".join(p.description for p in missing)
        return f"You need to set up: {items} first."


class NavCaddyEngine:
    """
    Runs conversational turns end to end.

    Per turn: classify -> route -> record the exchange in the session.
    Each step awaits the previous one, so a failed or cancelled turn
    never leaves a partial session update behind.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        llm_client: Optional[LLMClient] = None,
        shot_repository: Optional[ShotRepository] = None,
        prerequisite_checker: Optional[PrerequisiteChecker] = None,
        bag_configured: bool = False,
        recovery_data_available: bool = False
    ):
        """
        Initialize engine components from settings.

        Args:
            api_key: Google API key (defaults to settings.GOOGLE_API_KEY)
            llm_client: Language-understanding boundary (Gemini if omitted)
            shot_repository: Shot log (JSON file at settings.SHOT_HISTORY_PATH if omitted)
            prerequisite_checker: Overrides the default session-backed checker
            bag_configured: Value reported for the bag prerequisite
            recovery_data_available: Value reported for the recovery prerequisite
        """
        logger.info("Initializing NavCaddy components...")

        self.registry = IntentRegistry.default()
        self.session_manager = SessionContextManager(max_history=settings.MAX_CONVERSATION_TURNS)

        self.llm_client = llm_client or GeminiIntentClient(
            api_key=api_key or settings.GOOGLE_API_KEY,
            registry=self.registry,
            model_name=settings.INTENT_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            max_retries=settings.LLM_MAX_RETRIES,
            timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
            injector=ContextInjector(max_prompt_turns=settings.CONTEXT_PROMPT_TURNS)
        )

        self.classifier = IntentClassifier(
            llm_client=self.llm_client,
            registry=self.registry,
            normalizer=InputNormalizer(),
            clarification_handler=ClarificationHandler(
                self.registry,
                keywords=DEFAULT_INTENT_KEYWORDS,
                max_suggestions=settings.MAX_CLARIFICATION_SUGGESTIONS
            ),
            thresholds=ConfidenceThresholds(
                route=settings.ROUTE_THRESHOLD,
                confirm=settings.CONFIRM_THRESHOLD
            ),
            timeout_seconds=settings.CLASSIFICATION_TIMEOUT_SECONDS
        )

        self.shot_repository = shot_repository or JsonShotStorage(
            str(settings.SHOT_HISTORY_PATH),
            retention_days=settings.SHOT_RETENTION_DAYS
        )
        self.aggregator = MissPatternAggregator(
            repository=self.shot_repository,
            decay_calculator=PatternDecayCalculator(
                half_life_days=settings.DECAY_HALF_LIFE_DAYS,
                function=DecayFunction(settings.DECAY_FUNCTION)
            ),
            min_frequency=settings.MIN_SHOTS_FOR_PATTERN,
            min_confidence=settings.MIN_PATTERN_CONFIDENCE,
            window_days=settings.PATTERN_WINDOW_DAYS
        )
        self.pattern_store = MissPatternStore(
            self.shot_repository,
            aggregator=self.aggregator,
            significant_confidence=settings.SIGNIFICANT_PATTERN_CONFIDENCE
        )

        self.prerequisite_checker = prerequisite_checker or self._build_prerequisite_checker(
            bag_configured, recovery_data_available
        )
        self.router = RoutingOrchestrator(self.prerequisite_checker)

        logger.info("NavCaddy initialized successfully")

    def _build_prerequisite_checker(
        self,
        bag_configured: bool,
        recovery_data_available: bool
    ) -> CallablePrerequisiteChecker:
        """Round and course prerequisites follow the live session."""
        def course_selected() -> bool:
            round_state = self.session_manager.get_current_round_state()
            return round_state is not None and bool(round_state.course_name.strip())

        return CallablePrerequisiteChecker({
            Prerequisite.ROUND_ACTIVE: self.session_manager.has_active_round,
            Prerequisite.COURSE_SELECTED: course_selected,
            Prerequisite.BAG_CONFIGURED: lambda: bag_configured,
            Prerequisite.RECOVERY_DATA: lambda: recovery_data_available,
        })

    async def handle_input(self, raw_input: str) -> RoutingResult:
        """
        Process one user utterance.

        Args:
            raw_input: What the user said or typed

        Returns:
            The routing decision for the navigation layer
        """
        context = self.session_manager.context

        # STAGE 1: Classification
        classification = await self.classifier.classify(raw_input, context)

        # STAGE 2: Routing
        result = await self.router.route(classification)

        # STAGE 3: Session update
        if raw_input and raw_input.strip():
            await self.session_manager.add_conversation_turn(raw_input, response_text(result))

        logger.info(f"Turn complete: {type(result).__name__} for {result.intent.intent_type.value}")
        return result

    async def record_shot(self, shot: Shot) -> List[MissPattern]:
        """
        Record a shot and return the refreshed patterns for its club.
        """
        await self.pattern_store.record_shot(shot)
        await self.session_manager.record_shot(shot)
        return await self.pattern_store.get_patterns(club_id=shot.club.club_id)


# Design Rationale and Trade-offs:
#
# 1. Why isinstance dispatch instead of a routing table?
#    - Four result types, each with different fields
#    - Trade-off: A new result type needs a new branch
#
# 2. Why record the session turn after routing?
#    - The assistant's reply is only known once routing is done
#    - A cancelled turn leaves no half-recorded exchange
#    - Trade-off: The classifier sees the history without the current turn
#
# 3. Why a neutral placeholder intent for Clarify and Error?
#    - Every RoutingResult carries an intent for logging and analytics
#    - Trade-off: Consumers must not treat confidence 0.0 as a real help request
