"""
Prerequisite checking.

Answers "does the data this intent needs exist yet?" for the routing
orchestrator. Checks run concurrently and fail closed.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union

from navcaddy.models.routing import Prerequisite

logger = logging.getLogger(__name__)

PrerequisiteCallback = Callable[[], Union[bool, Awaitable[bool]]]


class PrerequisiteChecker(ABC):
    """Base class: implement check(); check_all() is provided."""

    @abstractmethod
    async def check(self, prerequisite: Prerequisite) -> bool:
        """Whether the prerequisite is currently satisfied."""

    async def check_all(self, prerequisites: Iterable[Prerequisite]) -> List[Prerequisite]:
        """
        Check several prerequisites at once.

        Args:
            prerequisites: Prerequisites to check

        Returns:
            The unsatisfied prerequisites, in the order given. A check that
            raises counts as unsatisfied.
        """
        prerequisites = list(prerequisites)
        if not prerequisites:
            return []

        results = await asyncio.gather(
            *(self.check(p) for p in prerequisites),
            return_exceptions=True
        )

        missing = []
        for prerequisite, result in zip(prerequisites, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Prerequisite check for {prerequisite.value} failed, treating as missing: {result}"
                )
                missing.append(prerequisite)
            elif not result:
                missing.append(prerequisite)
        return missing


class CallablePrerequisiteChecker(PrerequisiteChecker):
    """
    Checker backed by one callable per prerequisite.

    Callables may be plain functions or coroutine functions. A
    prerequisite with no callable is reported as unsatisfied.
    """

    def __init__(self, checks: Optional[Dict[Prerequisite, PrerequisiteCallback]] = None):
        self.checks: Dict[Prerequisite, PrerequisiteCallback] = dict(checks or {})

    def register(self, prerequisite: Prerequisite, callback: PrerequisiteCallback) -> None:
        self.checks[prerequisite] = callback

    async def check(self, prerequisite: Prerequisite) -> bool:
        callback = self.checks.get(prerequisite)
        if callback is None:
            logger.debug(f"No check registered for {prerequisite.value}")
            return False

        result = callback()
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


# Design Rationale and Trade-offs:
#
# 1. Why check prerequisites concurrently with gather(return_exceptions=True)?
#    - Checks may hit storage; one failure must not hide the others
#    - Trade-off: All checks run even when the first is already missing
#
# 2. Why count a failed check as missing?
#    - Navigating into a screen without its data is the worse failure
#    - Trade-off: A flaky backend blocks navigation until it recovers
