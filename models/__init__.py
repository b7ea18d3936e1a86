"""
Models package for the typing engine.

This package contains the data models, the matching rules and the session
state machine.
"""

__all__ = [
    "char_outcome",
    "engine_config",
    "events",
    "exceptions",
    "key_stat",
    "keystroke",
    "matching",
    "session_state",
    "summary",
    "target_text",
    "typing_session",
]
