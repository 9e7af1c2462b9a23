"""Focus and navigation state for the register, log and annotation views.

Each view keeps only identifiers. Everything shown is derived on demand from
the roster, so a store update is visible in every view on the next read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .models import Session, Student
from .roster import RosterStore, resolve

logger = logging.getLogger(__name__)

DEFAULT_NARROW_BREAKPOINT = 768


class ViewportMode(Enum):
    NARROW = "narrow"
    WIDE = "wide"

    @classmethod
    def from_width(
        cls, width: int, breakpoint: int = DEFAULT_NARROW_BREAKPOINT
    ) -> "ViewportMode":
        return cls.NARROW if width <= breakpoint else cls.WIDE


class View(Enum):
    REGISTER = "register"
    LOG = "log"
    ANNOTATION = "annotation"


class Pane(Enum):
    ROSTER = "roster"
    SESSIONS = "sessions"
    DETAIL = "detail"
    PLACEHOLDER = "placeholder"


# Drill-down order of the panes in each view. In the log view the focused
# session is expanded inline in the session list rather than given a pane.
VIEW_LEVELS: Dict[View, Tuple[Pane, ...]] = {
    View.REGISTER: (Pane.ROSTER, Pane.DETAIL),
    View.LOG: (Pane.ROSTER, Pane.SESSIONS),
    View.ANNOTATION: (Pane.ROSTER, Pane.SESSIONS, Pane.DETAIL),
}


@dataclass
class FocusState:
    student_id: Optional[str] = None
    session_id: Optional[str] = None

    def select_student(self, student_id: Optional[str]) -> None:
        self.student_id = student_id
        self.session_id = None

    def select_session(self, session_id: Optional[str]) -> None:
        self.session_id = session_id

    def back(self) -> bool:
        """Drop one level of focus. Returns False when nothing was focused."""
        if self.session_id is not None:
            self.session_id = None
            return True
        if self.student_id is not None:
            self.student_id = None
            return True
        return False


def resolved_depth(
    focus: FocusState, students: Sequence[Student], levels: Tuple[Pane, ...]
) -> int:
    depth = 1
    student = resolve(focus.student_id, students)
    if student is None or len(levels) < 2:
        return depth
    depth = 2
    if len(levels) > 2 and resolve(focus.session_id, student.sessions) is not None:
        depth = 3
    return depth


def visible_panes(
    focus: FocusState,
    students: Sequence[Student],
    mode: ViewportMode,
    levels: Tuple[Pane, ...] = VIEW_LEVELS[View.ANNOTATION],
) -> Tuple[Pane, ...]:
    """Panes to render for ``focus``.

    Narrow mode shows only the deepest pane whose ids all resolve. Wide mode
    shows every resolvable pane side by side, with a placeholder in the detail
    column while no student is focused.
    """
    depth = resolved_depth(focus, students, levels)
    if mode is ViewportMode.NARROW:
        return (levels[depth - 1],)
    if depth == 1 and len(levels) > 1:
        return (levels[0], Pane.PLACEHOLDER)
    return levels[:depth]


class ViewSelection:
    """Independent focus per view plus the active view and viewport mode."""

    def __init__(
        self,
        mode: ViewportMode = ViewportMode.WIDE,
        breakpoint: int = DEFAULT_NARROW_BREAKPOINT,
    ) -> None:
        self.mode = mode
        self.breakpoint = breakpoint
        self.active_view = View.REGISTER
        self._focus = {view: FocusState() for view in View}

    def focus(self, view: View) -> FocusState:
        return self._focus[view]

    def switch_view(self, view: View) -> None:
        self.active_view = view

    def set_viewport_width(
        self, width: int, breakpoint: Optional[int] = None
    ) -> ViewportMode:
        if breakpoint is None:
            breakpoint = self.breakpoint
        mode = ViewportMode.from_width(width, breakpoint)
        if mode is not self.mode:
            logger.debug("Viewport mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        return mode

    def select_student(self, view: View, student_id: Optional[str]) -> None:
        self._focus[view].select_student(student_id)

    def select_session(self, view: View, session_id: Optional[str]) -> None:
        self._focus[view].select_session(session_id)

    def toggle_expanded(self, session_id: str) -> None:
        focus = self._focus[View.LOG]
        focus.select_session(None if focus.session_id == session_id else session_id)

    def back(self, view: View) -> bool:
        return self._focus[view].back()

    def focused_student(self, view: View, store: RosterStore) -> Optional[Student]:
        return store.get(self._focus[view].student_id)

    def focused_session(self, view: View, store: RosterStore) -> Optional[Session]:
        focus = self._focus[view]
        return store.get_session(focus.student_id, focus.session_id)

    def panes(self, view: View, store: RosterStore) -> Tuple[Pane, ...]:
        if view is View.REGISTER:
            # The registration form is always available next to the roster.
            return VIEW_LEVELS[View.REGISTER]
        return visible_panes(self._focus[view], store.students, self.mode, VIEW_LEVELS[view])

    def show_back(self, view: View, store: RosterStore) -> bool:
        if self.mode is not ViewportMode.NARROW or view is View.REGISTER:
            return False
        return self.focused_student(view, store) is not None
