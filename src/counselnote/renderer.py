"""Plain-text and Markdown rendering of students and counseling sessions."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import Session, Student


def _yaml_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f"\"{escaped}\""


def _clean_text(value: str) -> str:
    return " ".join(value.split())


def student_label(student: Student) -> str:
    return f"Class {student.class_label} No. {student.number} {student.name}"


def session_preview(session: Session) -> str:
    lines = session.transcription.strip().splitlines()
    return lines[0] if lines else ""


def render_roster(students: Sequence[Student], selected_id: Optional[str] = None) -> str:
    if not students:
        return "No students registered."
    lines = []
    for student in students:
        marker = "*" if student.id == selected_id else " "
        lines.append(f"{marker} {student_label(student)}")
    return "\n".join(lines)


def render_session_list(
    student: Student, expanded_id: Optional[str] = None
) -> str:
    if not student.sessions:
        return "No counseling records for this student yet."
    lines: List[str] = []
    for session in student.sessions:
        lines.append(f"- {session.timestamp}")
        if session.id == expanded_id:
            lines.append(f"  Transcript: {_clean_text(session.transcription)}")
            lines.append(f"  Feedback: {_clean_text(session.feedback)}")
        else:
            lines.append(f"  {session_preview(session)}")
    return "\n".join(lines)


def render_session(student: Student, session: Session) -> str:
    lines: List[str] = []
    lines.append("---")
    lines.append(f"student: {_yaml_quote(student.name)}")
    lines.append(f"class: {_yaml_quote(student.class_label)}")
    lines.append(f"number: {_yaml_quote(student.number)}")
    if student.mbti:
        lines.append(f"mbti: {_yaml_quote(student.mbti)}")
    lines.append(f"date: {_yaml_quote(session.timestamp)}")
    if session.audio is not None:
        lines.append(f"audio_type: {_yaml_quote(session.audio.mime_type)}")
        if session.audio.duration_seconds is not None:
            lines.append(f"duration_seconds: {session.audio.duration_seconds:.1f}")
    lines.append(f"reflection_image: {'true' if session.reflection_image else 'false'}")
    lines.append("---")
    lines.append("")
    lines.append(f"# {student_label(student)}")
    lines.append("")
    lines.append("## Transcript")
    lines.append("")
    lines.append(session.transcription.strip())
    lines.append("")
    lines.append("## Feedback")
    lines.append("")
    lines.append(session.feedback.strip())
    if session.educational_notes:
        lines.append("")
        lines.append("## Educational Notes")
        lines.append("")
        lines.append(session.educational_notes.strip())
    lines.append("")
    return "\n".join(lines)
