"""
Context Injector.

Renders a SessionContext into prompt text for the language model and
into short summaries for display.
"""

from typing import Dict, List, Optional

from navcaddy.models.session import Role, SessionContext


class ContextInjector:
    """Turns session snapshots into prompt fragments."""

    def __init__(self, max_prompt_turns: int = 6):
        """
        Args:
            max_prompt_turns: Most recent conversation turns to include
        """
        self.max_prompt_turns = max_prompt_turns

    def build_context_prompt(self, context: SessionContext) -> str:
        """
        Markdown block describing the round and recent conversation.

        Returns an empty string when there is nothing worth sending.
        """
        lines = ["## Current Context"]

        round_state = context.current_round
        if round_state is not None:
            lines.append(f"Round: {round_state.course_name}")
            lines.append(
                f"Position: Hole {round_state.current_hole}, Par {round_state.current_par}"
            )
            lines.append(
                f"Score: {round_state.total_score} through {round_state.holes_completed} holes"
            )
            if round_state.conditions is not None:
                lines.append(f"Conditions: {round_state.conditions.to_description()}")

        shot = context.last_shot
        if shot is not None:
            shot_line = f"Last shot: {shot.club.name} from the {shot.lie.value}"
            if shot.miss_direction is not None:
                shot_line += f", missed {shot.miss_direction.value}"
            lines.append(shot_line)

        if context.last_recommendation:
            lines.append(f"Last recommendation: {context.last_recommendation}")

        turns = context.recent_turns(self.max_prompt_turns)
        if turns:
            lines.append("")
            lines.append("Recent conversation:")
            for turn in turns:
                speaker = "User" if turn.role == Role.USER else "Assistant"
                lines.append(f"{speaker}: {turn.content}")

        if len(lines) == 1:
            return ""
        return "\n".join(lines)

    def build_context_summary(self, context: Optional[SessionContext]) -> str:
        """One-line summary, e.g. "Pebble Beach • Hole 7 • Last: 7-Iron"."""
        if context is None:
            return "No active session"

        parts = []
        if context.current_round is not None:
            parts.append(context.current_round.course_name)
            parts.append(f"Hole {context.current_round.current_hole}")
        if context.last_shot is not None:
            parts.append(f"Last: {context.last_shot.club.name}")

        if not parts:
            return "No active session"
        return " • ".join(parts)

    def extract_context_hints(self, context: SessionContext) -> Dict[str, str]:
        """Key facts the classifier or UI may want without parsing prompt text."""
        hints = {}
        if context.current_round is not None:
            hints["course"] = context.current_round.course_name
            hints["hole"] = str(context.current_round.current_hole)
            hints["par"] = str(context.current_round.current_par)
        if context.last_shot is not None:
            hints["last_club"] = context.last_shot.club.club_id
            hints["last_lie"] = context.last_shot.lie.value
            if context.last_shot.miss_direction is not None:
                hints["last_miss"] = context.last_shot.miss_direction.value
        if context.last_recommendation:
            hints["last_recommendation"] = context.last_recommendation
        return hints

    def build_follow_up_context(self, context: SessionContext, user_input: str) -> str:
        """
        Prompt text for a follow-up question ("what about the 8-iron?").

        Includes the last exchange so references can be resolved.
        """
        lines: List[str] = []
        turns = context.recent_turns(2)
        if turns:
            lines.append("Previous exchange:")
            for turn in turns:
                speaker = "User" if turn.role == Role.USER else "Assistant"
                lines.append(f"{speaker}: {turn.content}")
            lines.append("")
        lines.append(f"Follow-up: {user_input}")
        return "\n".join(lines)


# Design Rationale and Trade-offs:
#
# 1. Why cap prompt turns below the stored history?
#    - Older turns rarely change the intent but cost prompt tokens
#    - Trade-off: A reference back beyond six turns is lost to the model
#
# 2. Why plain markdown sections in the prompt?
#    - Gemini follows headed blocks reliably
#    - Trade-off: Format changes may need prompt re-testing
