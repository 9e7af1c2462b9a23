"""Post-session annotations: reflection image and educational notes."""

from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional

from .models import Session
from .roster import RosterStore

logger = logging.getLogger(__name__)


def encode_image(data: bytes, mime_type: str = "image/png") -> str:
    """Return ``data`` as a self-contained data URL, ready for redisplay."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def encode_image_file(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path)
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file: {path}")
    with open(path, "rb") as handle:
        return encode_image(handle.read(), mime_type)


class AnnotationMerger:
    """Attaches annotations to a session. ``None`` leaves a field unchanged."""

    def __init__(self, store: RosterStore) -> None:
        self._store = store

    def attach(
        self,
        student_id: str,
        session_id: str,
        image: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        if image is None and notes is None:
            return
        self._store.patch_session(
            student_id,
            session_id,
            reflection_image=image,
            educational_notes=notes,
        )


@dataclass
class AnnotationDraft:
    """Editor state for the annotation form of one focused session."""

    image: Optional[str] = None
    notes: str = ""
    is_modified: bool = False

    def load(self, session: Optional[Session]) -> None:
        if session is None:
            self.image = None
            self.notes = ""
        else:
            self.image = session.reflection_image
            self.notes = session.educational_notes or ""
        self.is_modified = False

    def set_image(self, image: str) -> None:
        self.image = image
        self.is_modified = True

    def set_notes(self, notes: str) -> None:
        self.notes = notes
        self.is_modified = True

    @property
    def can_save(self) -> bool:
        return self.is_modified

    def save(self, merger: AnnotationMerger, student_id: str, session_id: str) -> bool:
        if not self.is_modified:
            return False
        merger.attach(student_id, session_id, image=self.image, notes=self.notes)
        self.is_modified = False
        logger.info("Saved annotations for session %s", session_id)
        return True
