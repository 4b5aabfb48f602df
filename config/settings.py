"""
Configuration settings for NavCaddy.

Centralized configuration for classification, routing, session memory
and miss-pattern analysis.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"
OUTPUT_ROOT = PROJECT_ROOT / "output"
SHOT_HISTORY_PATH = Path(os.getenv("NAVCADDY_SHOT_HISTORY", str(DATA_ROOT / "shot_history.json")))

# API Configuration
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")

# LLM Models
INTENT_MODEL = "gemini-1.5-flash"

# Temperature settings (0.0 for deterministic)
LLM_TEMPERATURE = 0.0

# Intent Classification
LLM_MAX_RETRIES = 2
LLM_TIMEOUT_SECONDS = 10  # Per Gemini request
CLASSIFICATION_TIMEOUT_SECONDS = 25  # Whole boundary call, retries included

# Confidence Gate (each band inclusive at its lower bound)
ROUTE_THRESHOLD = 0.75  # Route directly at or above this confidence
CONFIRM_THRESHOLD = 0.50  # Ask for confirmation at or above this, clarify below
MAX_CLARIFICATION_SUGGESTIONS = 3

# Session Context
MAX_CONVERSATION_TURNS = 10
CONTEXT_PROMPT_TURNS = 6  # Turns included in the classification prompt

# Miss Pattern Analysis
PATTERN_WINDOW_DAYS = 30
SHOT_RETENTION_DAYS = 90
DECAY_HALF_LIFE_DAYS = 14.0
DECAY_FUNCTION = "exponential"  # "exponential" or "linear"
MIN_SHOTS_FOR_PATTERN = 3
MIN_PATTERN_CONFIDENCE = 0.10
SIGNIFICANT_PATTERN_CONFIDENCE = 0.30

# Logging
LOG_LEVEL = os.getenv("NAVCADDY_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Design Rationale and Trade-offs:
#
# 1. Why environment variables for the API key and file paths?
#    - Secrets stay out of the code
#    - Tests and deployments point at their own history files
#    - Trade-off: Requires setting env vars
#
# 2. Why fixed thresholds (0.75 / 0.50)?
#    - Predictable behavior that can be tuned by hand
#    - Trade-off: Not adaptive per user
#
# 3. Why a 14-day half-life and 30-day window?
#    - Golf tendencies shift over weeks, not days
#    - Trade-off: A swing change takes a few weeks to fade from patterns
