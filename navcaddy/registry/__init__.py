"""
Intent Registry Module.

Configuration tables for supported intents: schemas, clarification
keywords, routing prerequisites and the inline (no-navigation) set.
"""
