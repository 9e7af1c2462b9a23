"""In-memory roster of students and their counseling sessions."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Protocol, Tuple, TypeVar

from .identity import IdentityGenerator
from .models import Session, Student, StudentFields, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("class_label", "number", "name")


class _HasId(Protocol):
    id: str


EntityT = TypeVar("EntityT", bound=_HasId)


def resolve(entity_id: Optional[str], collection: Iterable[EntityT]) -> Optional[EntityT]:
    """Return the entity with ``entity_id`` from ``collection``, or None."""
    if entity_id is None:
        return None
    for entity in collection:
        if entity.id == entity_id:
            return entity
    return None


def validate_student_fields(fields: StudentFields) -> None:
    missing = tuple(
        name for name in REQUIRED_FIELDS if not (getattr(fields, name) or "").strip()
    )
    if missing:
        raise ValidationError(missing)


class RosterStore:
    """Authoritative, always-sorted collection of students.

    Input to ``register``/``update`` is assumed to be validated by the caller.
    Mutations against ids that no longer resolve are ignored.
    """

    def __init__(self, ids: Optional[IdentityGenerator] = None) -> None:
        self._ids = ids or IdentityGenerator()
        self._students: List[Student] = []

    @property
    def ids(self) -> IdentityGenerator:
        return self._ids

    @property
    def students(self) -> Tuple[Student, ...]:
        return tuple(self._students)

    def get(self, student_id: Optional[str]) -> Optional[Student]:
        return resolve(student_id, self._students)

    def get_session(
        self, student_id: Optional[str], session_id: Optional[str]
    ) -> Optional[Session]:
        student = self.get(student_id)
        if student is None:
            return None
        return resolve(session_id, student.sessions)

    def register(self, fields: StudentFields) -> Student:
        student = Student(
            id=self._ids.next(),
            class_label=fields.class_label,
            number=fields.number,
            name=fields.name,
            mbti=fields.mbti,
            personality_notes=fields.personality_notes,
            sessions=[],
        )
        self._commit(self._students + [student])
        logger.info("Registered student %s (%s-%s)", student.id, student.class_label, student.number)
        return student

    def update(self, student: Student) -> None:
        if self.get(student.id) is None:
            logger.debug("Ignoring update for unknown student %s", student.id)
            return
        self._commit([student if s.id == student.id else s for s in self._students])
        logger.info("Updated student %s", student.id)

    def prepend_session(self, student_id: str, session: Session) -> None:
        target = self.get(student_id)
        if target is None:
            logger.debug("Ignoring session %s for unknown student %s", session.id, student_id)
            return
        updated = replace(target, sessions=[session] + list(target.sessions))
        self._commit([updated if s.id == student_id else s for s in self._students])
        logger.info("Added session %s to student %s", session.id, student_id)

    def patch_session(
        self,
        student_id: str,
        session_id: str,
        reflection_image: Optional[str] = None,
        educational_notes: Optional[str] = None,
    ) -> None:
        target = self.get(student_id)
        if target is None or resolve(session_id, target.sessions) is None:
            logger.debug("Ignoring patch for unknown session %s/%s", student_id, session_id)
            return

        changes = {}
        if reflection_image is not None:
            changes["reflection_image"] = reflection_image
        if educational_notes is not None:
            changes["educational_notes"] = educational_notes
        if not changes:
            return

        sessions = [
            replace(session, **changes) if session.id == session_id else session
            for session in target.sessions
        ]
        updated = replace(target, sessions=sessions)
        self._commit([updated if s.id == student_id else s for s in self._students])
        logger.info("Patched session %s (%s)", session_id, ", ".join(sorted(changes)))

    def _commit(self, students: List[Student]) -> None:
        # Code-point order, not locale-aware: "B" < "a" and "12" < "5".
        self._students = sorted(students, key=lambda s: s.sort_key)
