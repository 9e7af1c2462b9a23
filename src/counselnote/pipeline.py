"""Counseling audio -> AI transcription and feedback -> new session."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable, Optional

from .ai_client import AICapability
from .identity import IdentityGenerator, capture_timestamp
from .models import AudioPayload, PipelineResult, Session, Student, TranscriptionError
from .roster import RosterStore

logger = logging.getLogger(__name__)

# Gemini response schema (OpenAPI subset). Both fields are required strings.
COUNSEL_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "transcription": {
            "type": "STRING",
            "description": "Verbatim text of the counseling audio.",
        },
        "feedback": {
            "type": "STRING",
            "description": "Guidance for the teacher on how to support this student.",
        },
    },
    "required": ["transcription", "feedback"],
}

RESULT_FIELDS = ("transcription", "feedback")


def build_prompt(student: Student, feedback_language: str = "Korean") -> str:
    return (
        "This is a recording of a counseling conversation with an elementary school student.\n"
        "Student information:\n"
        f"- Name: {student.name}\n"
        f"- MBTI: {student.mbti or 'not provided'}\n"
        f"- Personality traits: {student.personality_notes or 'not provided'}\n\n"
        "First, listen to the audio and transcribe the whole conversation accurately, "
        "leaving nothing out.\n"
        "Then analyse the transcription together with the student information and write "
        "concrete, practical feedback that helps the teacher guide this student. "
        f"Write the feedback politely, in {feedback_language}.\n"
        "Respond only with a JSON object with the fields \"transcription\" and \"feedback\"."
    )


def parse_result(text: Optional[str]) -> PipelineResult:
    """Parse the AI response body into a PipelineResult.

    Raises TranscriptionError unless the body is a JSON object carrying both
    fields as non-empty strings. Extra fields are ignored.
    """
    if not text or not text.strip():
        raise TranscriptionError("AI response was empty.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TranscriptionError("AI response was not valid JSON.") from exc
    if not isinstance(data, dict):
        raise TranscriptionError("AI response was not a JSON object.")

    values = {}
    for key in RESULT_FIELDS:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise TranscriptionError(f"AI response is missing '{key}'.")
        values[key] = value
    return PipelineResult(**values)


class TranscriptionPipeline:
    """One pipeline run is all-or-nothing: a session is prepended only on success."""

    def __init__(
        self,
        store: RosterStore,
        ai: AICapability,
        ids: Optional[IdentityGenerator] = None,
        feedback_language: str = "Korean",
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._ai = ai
        self._ids = ids or store.ids
        self._feedback_language = feedback_language
        self._now = now or datetime.now

    async def run(self, student: Student, audio: AudioPayload) -> Session:
        prompt = build_prompt(student, self._feedback_language)
        logger.info(
            "Pipeline start for student %s (%d bytes, %s)",
            student.id,
            len(audio.data),
            audio.mime_type,
        )
        try:
            text = await self._ai.generate_json(audio, prompt, COUNSEL_SCHEMA)
        except Exception as exc:
            logger.exception("AI request failed for student %s", student.id)
            raise TranscriptionError(f"AI request failed: {exc}") from exc

        try:
            result = parse_result(text)
        except TranscriptionError as exc:
            logger.warning("Malformed AI response for student %s: %s", student.id, exc)
            raise

        session = Session(
            id=self._ids.next(),
            timestamp=capture_timestamp(self._now()),
            transcription=result.transcription,
            feedback=result.feedback,
            audio=audio,
        )
        self._store.prepend_session(student.id, session)
        logger.info("Pipeline done for student %s: session %s", student.id, session.id)
        return session
