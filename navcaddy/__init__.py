"""
NavCaddy - conversational decision engine for a golf companion app.

Turns free-form utterances into navigation actions, inline answers,
clarification prompts or missing-data prompts, while tracking round
context and learning shot-miss tendencies.
"""

__version__ = "0.1.0"
