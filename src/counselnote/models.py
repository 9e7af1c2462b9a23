"""Data models for counselnote."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class CounselError(Exception):
    """Base class for counselnote errors."""


class ValidationError(CounselError):
    def __init__(self, missing: Tuple[str, ...]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Required fields missing: {', '.join(self.missing)}")


class CaptureError(CounselError):
    pass


class TranscriptionError(CounselError):
    pass


@dataclass(frozen=True)
class AudioPayload:
    data: bytes
    mime_type: str = "audio/wav"
    duration_seconds: Optional[float] = None


@dataclass(frozen=True)
class PipelineResult:
    transcription: str
    feedback: str


@dataclass
class Session:
    id: str
    timestamp: str
    transcription: str
    feedback: str
    audio: Optional[AudioPayload] = None
    reflection_image: Optional[str] = None
    educational_notes: Optional[str] = None


@dataclass
class StudentFields:
    class_label: str = ""
    number: str = ""
    name: str = ""
    mbti: str = ""
    personality_notes: str = ""


@dataclass
class Student:
    id: str
    class_label: str
    number: str
    name: str
    mbti: str = ""
    personality_notes: str = ""
    sessions: List[Session] = field(default_factory=list)

    @property
    def sort_key(self) -> Tuple[str, str]:
        return (self.class_label, self.number)

    def fields(self) -> StudentFields:
        return StudentFields(
            class_label=self.class_label,
            number=self.number,
            name=self.name,
            mbti=self.mbti,
            personality_notes=self.personality_notes,
        )
