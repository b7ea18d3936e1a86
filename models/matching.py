"""Keystroke matching.

Matching is a pure function of the expected character, the keystroke and the
input mode. It never looks ahead in the text or back at earlier outcomes, so
the work per keystroke is constant.
"""

from typing import NamedTuple

from models.char_outcome import ResultKind
from models.keystroke import Keystroke
from models.session_state import InputMode
from models.target_text import CharClass, ExpectedChar


class MatchDecision(NamedTuple):
    """What to do with one keystroke."""

    kind: ResultKind
    correct: bool


IGNORE = MatchDecision(ResultKind.IGNORED, False)


def is_match(expected: ExpectedChar, keystroke: Keystroke) -> bool:
    """Whether the keystroke satisfies the expected character.

    The exact character always matches. A whitespace-class character also
    accepts any whitespace equivalent (space, enter, tab and the like).
    """
    if keystroke.value == expected.value:
        return True
    return expected.char_class == CharClass.WHITESPACE and keystroke.is_whitespace_equivalent()


def match_keystroke(
    expected: ExpectedChar, keystroke: Keystroke, mode: InputMode
) -> MatchDecision:
    """Decide correctness and cursor movement for one keystroke."""
    if keystroke.value == expected.value:
        return MatchDecision(ResultKind.ADVANCE, True)
    if not keystroke.value or keystroke.is_control():
        return IGNORE

    correct = is_match(expected, keystroke)
    if correct or mode == InputMode.STRICT:
        return MatchDecision(ResultKind.ADVANCE, correct)
    return MatchDecision(ResultKind.RETRY, False)
