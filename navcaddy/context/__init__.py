"""
Session context: single-owner round and conversation state, plus
helpers that render it into prompt text for the language model.
"""
