# studyhall/core/view_state.py
"""
Which screen is active, and which screen changes are allowed.

Transitions are user-triggered only; nothing here moves on its own.
"""

import logging
from typing import Dict, FrozenSet

from studyhall.core.errors import InvalidTransitionError
from studyhall.core.models import ViewState

logger = logging.getLogger(__name__)

# Any screen may go to the dashboard, or to the generator through the
# subject shortcuts in the sidebar.
_ALWAYS_ALLOWED: FrozenSet[ViewState] = frozenset({ViewState.DASHBOARD, ViewState.COURSE_GENERATOR})

TRANSITIONS: Dict[ViewState, FrozenSet[ViewState]] = {
    ViewState.DASHBOARD: frozenset({ViewState.COURSE_VIEW}),
    # the generator only leaves for a course view through finish_generation()
    ViewState.COURSE_GENERATOR: frozenset(),
    ViewState.COURSE_VIEW: frozenset({ViewState.LESSON_VIEW}),
    # lesson -> lesson moves between modules without passing the syllabus
    ViewState.LESSON_VIEW: frozenset({ViewState.COURSE_VIEW, ViewState.LESSON_VIEW}),
}


class ViewStateMachine:
    def __init__(self, initial: ViewState = ViewState.DASHBOARD):
        self.current = initial

    def can_transition(self, target: ViewState) -> bool:
        if target in _ALWAYS_ALLOWED:
            return True
        return target in TRANSITIONS.get(self.current, frozenset())

    def transition(self, target: ViewState) -> ViewState:
        if not self.can_transition(target):
            raise InvalidTransitionError(
                f"Cannot move from {self.current.value} to {target.value}"
            )
        logger.debug(f"[View] {self.current.value} -> {target.value}")
        self.current = target
        return target

    def finish_generation(self) -> ViewState:
        """Move from the generator to the new course once its syllabus exists"""
        if self.current != ViewState.COURSE_GENERATOR:
            raise InvalidTransitionError(
                f"Cannot finish generation from {self.current.value}"
            )
        logger.debug(f"[View] {self.current.value} -> {ViewState.COURSE_VIEW.value}")
        self.current = ViewState.COURSE_VIEW
        return self.current
