"""
Agent implementations for NavCaddy.

Contains the components that process a turn and analyze shots:
- Input Normalizer
- Intent Classifier
- Clarification Handler
- Prerequisite Checker
- Miss-Pattern Aggregator and Pattern Store
"""
