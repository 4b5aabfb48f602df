"""
Classification outcome models.

A classification call yields exactly one of Route, Confirm, Clarify
or Error. Consumers dispatch with isinstance and treat anything else
as a programming error.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from navcaddy.models.intent import IntentType, ParsedIntent, RoutingTarget


@dataclass(frozen=True)
class IntentSuggestion:
    """A tappable suggestion shown when the assistant is unsure."""
    intent_type: IntentType
    label: str
    description: str


@dataclass(frozen=True)
class ClarificationResponse:
    message: str
    suggestions: List[IntentSuggestion]
    original_input: str

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise ValueError("Clarification message cannot be blank")
        if not 1 <= len(self.suggestions) <= 3:
            raise ValueError(
                f"Clarification must carry 1-3 suggestions, got {len(self.suggestions)}"
            )


@dataclass(frozen=True)
class Route:
    """High confidence: go straight to the target (None for inline intents)."""
    intent: ParsedIntent
    target: Optional[RoutingTarget]


@dataclass(frozen=True)
class Confirm:
    """Medium confidence: ask the user before acting."""
    intent: ParsedIntent
    message: str


@dataclass(frozen=True)
class Clarify:
    """Low confidence: offer a short list of likely intents."""
    response: ClarificationResponse


@dataclass(frozen=True)
class Error:
    """Classification failed. message is always safe to show the user."""
    cause: Optional[BaseException]
    message: str


ClassificationResult = Union[Route, Confirm, Clarify, Error]


# Design Rationale and Trade-offs:
#
# 1. Why four small result classes instead of one class with a status field?
#    - isinstance dispatch in the orchestrator keeps each branch's fields exact
#    - Trade-off: No shared base class; ClassificationResult is a Union alias
#
# 2. Why cap suggestions at three?
#    - Clarification chips have to fit on a phone screen mid-round
#    - Trade-off: A fourth plausible intent is never offered
