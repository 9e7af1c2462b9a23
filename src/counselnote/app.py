"""Application wiring: roster, recorder, pipeline, annotations and view focus."""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from typing import Optional, Set

from .ai_client import AICapability, GeminiClient
from .annotations import AnnotationDraft, AnnotationMerger
from .config import Config
from .identity import IdentityGenerator
from .models import AudioPayload, Session, Student, StudentFields, TranscriptionError
from .pipeline import TranscriptionPipeline
from .recorder import SessionRecorder, SoundDeviceCapture
from .roster import RosterStore, validate_student_fields
from .views import View, ViewSelection

logger = logging.getLogger(__name__)


class CounselingApp:
    """Composes the core components behind the intents the views issue.

    Roster fields are validated here, before the store is touched. The last
    finalized recording is held as ``pending_audio`` until a pipeline run for
    it succeeds, so a failed run can be retried with the same audio. While a
    run holds that recording it cannot be analysed for another student.
    """

    def __init__(
        self,
        store: RosterStore,
        recorder: SessionRecorder,
        pipeline: TranscriptionPipeline,
        merger: Optional[AnnotationMerger] = None,
        selection: Optional[ViewSelection] = None,
    ) -> None:
        self.store = store
        self.recorder = recorder
        self.pipeline = pipeline
        self.merger = merger or AnnotationMerger(store)
        self.selection = selection or ViewSelection()
        self.annotation_draft = AnnotationDraft()
        self._pending_audio: Optional[AudioPayload] = None
        self._in_flight: Set[str] = set()
        self._claimed_audio: Optional[AudioPayload] = None

    @classmethod
    def from_config(cls, config: Config, ai: Optional[AICapability] = None) -> "CounselingApp":
        ids = IdentityGenerator()
        store = RosterStore(ids)
        device = SoundDeviceCapture(
            sample_rate_hz=config.audio.sample_rate_hz,
            channels=config.audio.channels,
            device_name=config.device_name,
        )
        if ai is None:
            ai = GeminiClient(
                api_key=config.ai.resolved_api_key(),
                model=config.ai.model,
                timeout_seconds=config.ai.timeout_seconds,
            )
        pipeline = TranscriptionPipeline(
            store, ai, ids=ids, feedback_language=config.ai.feedback_language
        )
        selection = ViewSelection(breakpoint=config.view.narrow_breakpoint_px)
        return cls(store, SessionRecorder(device), pipeline, selection=selection)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_student(self, fields: StudentFields) -> Student:
        validate_student_fields(fields)
        return self.store.register(fields)

    def edit_student(self, student_id: str, fields: StudentFields) -> None:
        validate_student_fields(fields)
        current = self.store.get(student_id)
        if current is None:
            logger.debug("Edit for unknown student %s ignored", student_id)
            return
        self.store.update(replace(current, **asdict(fields)))

    def begin_edit(self, student_id: str) -> Optional[StudentFields]:
        student = self.store.get(student_id)
        if student is None:
            return None
        self.selection.select_student(View.REGISTER, student_id)
        return student.fields()

    def cancel_edit(self) -> None:
        self.selection.select_student(View.REGISTER, None)

    def submit_student(self, fields: StudentFields) -> Student:
        """Register a new student, or update the one being edited."""
        editing = self.selection.focused_student(View.REGISTER, self.store)
        if editing is None:
            student = self.add_student(fields)
        else:
            self.edit_student(editing.id, fields)
            student = self.store.get(editing.id)
        self.cancel_edit()
        return student

    # ------------------------------------------------------------------
    # Recording and transcription
    # ------------------------------------------------------------------

    @property
    def pending_audio(self) -> Optional[AudioPayload]:
        return self._pending_audio

    def start_recording(self) -> None:
        self.recorder.start()
        self._pending_audio = None

    def stop_recording(self) -> Optional[AudioPayload]:
        payload = self.recorder.stop()
        if payload is not None:
            self._pending_audio = payload
        return payload

    def is_transcribing(self, student_id: str) -> bool:
        return student_id in self._in_flight

    def can_transcribe(self, student_id: str) -> bool:
        return (
            self._pending_audio is not None
            and self._pending_audio is not self._claimed_audio
            and not self.recorder.is_recording
            and not self.is_transcribing(student_id)
        )

    async def transcribe(self, student_id: str) -> Session:
        audio = self._pending_audio
        if audio is None:
            raise TranscriptionError("No recorded audio to transcribe.")
        if self.is_transcribing(student_id):
            raise TranscriptionError("A transcription is already running for this student.")
        if audio is self._claimed_audio:
            raise TranscriptionError("This recording is already being analysed.")
        student = self.store.get(student_id)
        if student is None:
            raise TranscriptionError(f"Student {student_id} not found.")

        # One recording feeds at most one run at a time.
        self._in_flight.add(student_id)
        self._claimed_audio = audio
        try:
            session = await self.pipeline.run(student, audio)
        finally:
            self._in_flight.discard(student_id)
            if self._claimed_audio is audio:
                self._claimed_audio = None
        if self._pending_audio is audio:
            self._pending_audio = None
        return session

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def select_annotation_student(self, student_id: Optional[str]) -> None:
        self.selection.select_student(View.ANNOTATION, student_id)
        self.annotation_draft.load(None)

    def select_annotation_session(self, session_id: Optional[str]) -> None:
        self.selection.select_session(View.ANNOTATION, session_id)
        self.annotation_draft.load(
            self.selection.focused_session(View.ANNOTATION, self.store)
        )

    def annotation_back(self) -> None:
        self.selection.back(View.ANNOTATION)
        self.annotation_draft.load(
            self.selection.focused_session(View.ANNOTATION, self.store)
        )

    def save_annotation(self) -> bool:
        focus = self.selection.focus(View.ANNOTATION)
        if self.selection.focused_session(View.ANNOTATION, self.store) is None:
            return False
        return self.annotation_draft.save(self.merger, focus.student_id, focus.session_id)
