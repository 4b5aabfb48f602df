"""
Utility modules for NavCaddy.

Cross-cutting concerns:
- LLM client: Gemini boundary for intent classification
- Decay: time-based confidence decay for miss patterns
- Storage: shot history persistence
"""
