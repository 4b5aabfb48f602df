"""
Routing outcome models.

RoutingResult is what the navigation layer consumes: exactly one of
Navigate, NoNavigation, PrerequisiteMissing or ConfirmationRequired.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

from navcaddy.models.intent import ParsedIntent, RoutingTarget


class Prerequisite(Enum):
    """Data that must exist before an intent can be fulfilled."""
    RECOVERY_DATA = "recovery_data"
    ROUND_ACTIVE = "round_active"
    BAG_CONFIGURED = "bag_configured"
    COURSE_SELECTED = "course_selected"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def missing_message(self) -> str:
        return _MISSING_MESSAGES[self]


_DESCRIPTIONS = {
    Prerequisite.RECOVERY_DATA: "Recovery data",
    Prerequisite.ROUND_ACTIVE: "Active round",
    Prerequisite.BAG_CONFIGURED: "Bag configuration",
    Prerequisite.COURSE_SELECTED: "Course selection",
}

_MISSING_MESSAGES = {
    Prerequisite.RECOVERY_DATA: (
        "I don't have any recovery data yet. Log your sleep, HRV, or readiness "
        "score first, and I'll give you insights."
    ),
    Prerequisite.ROUND_ACTIVE: (
        "You need to start a round first. Would you like to start a new round now?"
    ),
    Prerequisite.BAG_CONFIGURED: (
        "Your bag isn't configured yet. Set up your clubs and distances so I can "
        "give you better recommendations."
    ),
    Prerequisite.COURSE_SELECTED: (
        "Which course are you playing? Select a course to get specific information."
    ),
}


@dataclass(frozen=True)
class Navigate:
    target: RoutingTarget
    intent: ParsedIntent


@dataclass(frozen=True)
class NoNavigation:
    """Answer inline without leaving the conversation."""
    intent: ParsedIntent
    response: str


@dataclass(frozen=True)
class PrerequisiteMissing:
    intent: ParsedIntent
    missing: List[Prerequisite]
    message: str

    def __post_init__(self):
        if not self.missing:
            raise ValueError("PrerequisiteMissing requires at least one prerequisite")


@dataclass(frozen=True)
class ConfirmationRequired:
    intent: ParsedIntent
    message: str


RoutingResult = Union[Navigate, NoNavigation, PrerequisiteMissing, ConfirmationRequired]


def response_text(result: RoutingResult) -> str:
    """Text the assistant says back for a routing outcome."""
    if isinstance(result, Navigate):
        return f"Opening {result.target.screen}."
    if isinstance(result, NoNavigation):
        return result.response
    if isinstance(result, PrerequisiteMissing):
        return result.message
    if isinstance(result, ConfirmationRequired):
        return result.message
    raise TypeError(f"Unknown routing result: {type(result).__name__}")


# Design Rationale and Trade-offs:
#
# 1. Why keep user-facing prerequisite messages on the enum?
#    - One table per prerequisite; the orchestrator builds single and combined messages from it
#    - Trade-off: Wording changes need a code change (no localization yet)
#
# 2. Why does response_text raise on unknown results?
#    - A new RoutingResult variant must be handled explicitly before it is spoken
#    - Trade-off: Adding a variant touches this helper too
