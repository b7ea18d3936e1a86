"""Service initialization module.

Factory helpers to create and wire a typing session with its engines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from models.engine_config import EngineConfig

if TYPE_CHECKING:  # Avoid import cycles at runtime
    from models.target_text import LessonMeta, TargetText
    from models.typing_session import TypingSession


def init_session(
    text: Union["TargetText", str],
    lesson_meta: Optional["LessonMeta"] = None,
    config: Optional[EngineConfig] = None,
) -> "TypingSession":
    """Create a TypingSession, reading configuration from the environment if none is given.

    Example:
        session = init_session("the quick brown fox")
        session.start(InputMode.FORGIVING)
    """
    # Lazy import to avoid circular dependencies
    from models.typing_session import TypingSession

    return TypingSession(text, config=config or EngineConfig.from_env(), lesson_meta=lesson_meta)
