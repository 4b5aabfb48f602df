"""
Session Context Manager - single owner of the session state.

All mutations go through async operations that take one lock, build a
complete new SessionContext and publish it. Readers only ever see whole
snapshots, never a half-updated conversation buffer.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, List, Optional, Tuple

from navcaddy.models.session import (
    ConversationTurn,
    CourseConditions,
    Role,
    RoundState,
    SessionContext,
)
from navcaddy.models.shot import Shot, utc_now

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionContext], None]


class SessionContextManager:
    """
    Holds the current SessionContext and serializes every update.

    Each operation validates its arguments first, so a rejected call
    leaves the previous snapshot in place.
    """

    def __init__(
        self,
        max_history: int = 10,
        session_id: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize session manager.

        Args:
            max_history: Conversation turns kept (oldest dropped first)
            session_id: Identifier for this session (random if omitted)
            clock: Returns the current time (UTC); injectable for tests
        """
        if max_history < 2:
            raise ValueError(f"max_history must be at least 2: {max_history}")

        self.max_history = max_history
        self.clock = clock or utc_now
        self._context = SessionContext.empty(session_id)
        self._lock = asyncio.Lock()
        self._listeners: List[SessionListener] = []
        self._queues: List[asyncio.Queue] = []

        logger.info(f"Initialized SessionContextManager for session {self._context.session_id}")

    @property
    def context(self) -> SessionContext:
        """The latest snapshot."""
        return self._context

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call listener with every new snapshot.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def updates(self) -> AsyncIterator[SessionContext]:
        """Yield the current snapshot, then every later one."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            yield self._context
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)

    async def _update(
        self,
        operation: str,
        build: Callable[[SessionContext], SessionContext]
    ) -> SessionContext:
        async with self._lock:
            new_context = build(self._context)
            self._context = new_context
            self._publish(new_context)
        logger.debug(f"Session updated: {operation}")
        return new_context

    def _publish(self, context: SessionContext) -> None:
        for listener in list(self._listeners):
            try:
                listener(context)
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)
        for queue in self._queues:
            queue.put_nowait(context)

    def _require_round(self, context: SessionContext, operation: str) -> RoundState:
        if context.current_round is None:
            raise ValueError(f"Cannot {operation}: no active round")
        return context.current_round

    # Round state

    async def update_round(
        self,
        round_id: str,
        course_name: str,
        starting_hole: int = 1,
        starting_par: int = 4
    ) -> SessionContext:
        round_state = RoundState(
            round_id=round_id,
            course_name=course_name,
            current_hole=starting_hole,
            current_par=starting_par
        )
        logger.info(f"Starting round {round_id} at {course_name} (hole {starting_hole})")
        return await self._update(
            "update_round",
            lambda ctx: replace(ctx, current_round=round_state, current_hole=starting_hole)
        )

    async def update_hole(self, hole_number: int, par: int) -> SessionContext:
        if not 1 <= hole_number <= 18:
            raise ValueError(f"Hole must be in [1, 18]: {hole_number}")
        if not 3 <= par <= 5:
            raise ValueError(f"Par must be in [3, 5]: {par}")

        def build(ctx: SessionContext) -> SessionContext:
            round_state = self._require_round(ctx, "update hole")
            return replace(
                ctx,
                current_round=replace(round_state, current_hole=hole_number, current_par=par),
                current_hole=hole_number
            )

        return await self._update("update_hole", build)

    async def update_conditions(self, conditions: CourseConditions) -> SessionContext:
        def build(ctx: SessionContext) -> SessionContext:
            round_state = self._require_round(ctx, "update conditions")
            return replace(ctx, current_round=replace(round_state, conditions=conditions))

        return await self._update("update_conditions", build)

    async def update_score(self, total_score: int, holes_completed: int) -> SessionContext:
        if total_score < 0:
            raise ValueError(f"Total score cannot be negative: {total_score}")
        if not 0 <= holes_completed <= 18:
            raise ValueError(f"Holes completed must be in [0, 18]: {holes_completed}")

        def build(ctx: SessionContext) -> SessionContext:
            round_state = self._require_round(ctx, "update score")
            return replace(
                ctx,
                current_round=replace(
                    round_state, total_score=total_score, holes_completed=holes_completed
                )
            )

        return await self._update("update_score", build)

    # Shots and recommendations

    async def record_shot(self, shot: Shot) -> SessionContext:
        return await self._update("record_shot", lambda ctx: replace(ctx, last_shot=shot))

    async def record_recommendation(self, recommendation: str) -> SessionContext:
        if not recommendation or not recommendation.strip():
            raise ValueError("Recommendation cannot be blank")
        return await self._update(
            "record_recommendation",
            lambda ctx: replace(ctx, last_recommendation=recommendation)
        )

    # Conversation

    async def add_conversation_turn(self, user_input: str, assistant_response: str) -> SessionContext:
        """Append a user turn followed by the assistant's reply."""
        if not user_input or not user_input.strip():
            raise ValueError("User input cannot be blank")
        if not assistant_response or not assistant_response.strip():
            raise ValueError("Assistant response cannot be blank")

        now = self.clock()
        user_turn = ConversationTurn(role=Role.USER, content=user_input, timestamp=now)
        assistant_turn = ConversationTurn(
            role=Role.ASSISTANT,
            content=assistant_response,
            timestamp=now + timedelta(milliseconds=1)
        )
        return await self._update(
            "add_conversation_turn",
            lambda ctx: ctx.with_turns(user_turn, assistant_turn, max_history=self.max_history)
        )

    async def add_turn(self, role: Role, content: str) -> SessionContext:
        """Append a single turn."""
        turn = ConversationTurn(role=role, content=content, timestamp=self.clock())
        return await self._update(
            "add_turn",
            lambda ctx: ctx.with_turns(turn, max_history=self.max_history)
        )

    async def clear_conversation_history(self) -> SessionContext:
        return await self._update(
            "clear_conversation_history",
            lambda ctx: replace(ctx, conversation_history=())
        )

    async def clear_session(self) -> SessionContext:
        """Reset to an empty context, keeping the session id."""
        logger.info(f"Clearing session {self._context.session_id}")
        return await self._update(
            "clear_session",
            lambda ctx: SessionContext.empty(ctx.session_id)
        )

    async def end_round(self) -> SessionContext:
        """Finish the current round; the session context is cleared."""
        if self._context.current_round is not None:
            logger.info(f"Ending round {self._context.current_round.round_id}")
        return await self.clear_session()

    # Read accessors

    def get_current_round_state(self) -> Optional[RoundState]:
        return self._context.current_round

    def has_active_round(self) -> bool:
        return self._context.has_active_round

    def get_recent_conversation(self, count: Optional[int] = None) -> Tuple[ConversationTurn, ...]:
        if count is None:
            return self._context.conversation_history
        return self._context.recent_turns(count)


# Design Rationale and Trade-offs:
#
# 1. Why one asyncio.Lock around every mutator?
#    - Concurrent turns keep user/assistant pairs adjacent in the history
#    - Trade-off: Updates are serialized, which is fine for one user per session
#
# 2. Why both listeners and queues for subscriptions?
#    - Listeners suit synchronous UI hooks, queues suit async consumers
#    - Trade-off: A queue nobody drains grows; consumers must stop iterating
#
# 3. Why raise ValueError for round updates without a round?
#    - A hole number without a round has no meaning
#    - Trade-off: Callers must start a round first
