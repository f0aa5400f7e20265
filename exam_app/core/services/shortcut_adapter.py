"""Keyboard input adapter layered over the session controller."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from exam_app.constants.exam_constants import OPTION_SHORTCUT_COUNT

if TYPE_CHECKING:
    from exam_app.core.test_session_controller import TestSessionController


class ShortcutKind(Enum):
    PREVIOUS = "previous"
    NEXT = "next"
    SELECT_OPTION = "select_option"


@dataclass(frozen=True, slots=True)
class ShortcutAction:
    kind: ShortcutKind
    option_index: int | None = None


_NAVIGATION_KEYS = {
    "Left": ShortcutAction(ShortcutKind.PREVIOUS),
    "Right": ShortcutAction(ShortcutKind.NEXT),
}


def action_for_key(key: str) -> ShortcutAction | None:
    """Map a key name (as Qt's ``QKeySequence.toString`` spells it) to an action."""
    if key in _NAVIGATION_KEYS:
        return _NAVIGATION_KEYS[key]
    if key.isdigit() and 1 <= int(key) <= OPTION_SHORTCUT_COUNT:
        return ShortcutAction(ShortcutKind.SELECT_OPTION, option_index=int(key) - 1)
    return None


def shortcut_keys() -> list[str]:
    return [*_NAVIGATION_KEYS, *(str(number) for number in range(1, OPTION_SHORTCUT_COUNT + 1))]


def apply_shortcut(controller: TestSessionController, action: ShortcutAction) -> bool:
    """Apply an action to the current question. Returns False when it does nothing."""
    if not controller.is_interactive():
        return False
    if action.kind is ShortcutKind.PREVIOUS:
        return controller.previous_question() is not None
    if action.kind is ShortcutKind.NEXT:
        return controller.next_question() is not None
    question = controller.current_question()
    option = question.option_at(action.option_index) if question and action.option_index is not None else None
    if option is None:
        return False
    controller.select_option(option.id)
    return True
