import asyncio
import json
from datetime import datetime

import pytest

from counselnote.models import AudioPayload, StudentFields, TranscriptionError
from counselnote.pipeline import (
    COUNSEL_SCHEMA,
    TranscriptionPipeline,
    build_prompt,
    parse_result,
)
from counselnote.roster import RosterStore

AUDIO = AudioPayload(data=b"RIFF....WAVE", mime_type="audio/wav")


class FakeAI:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_json(self, audio, prompt, response_schema):
        self.calls.append((audio, prompt, response_schema))
        if self.error is not None:
            raise self.error
        return self.response


def _setup(ai):
    store = RosterStore()
    student = store.register(
        StudentFields(
            class_label="1",
            number="5",
            name="Lee",
            mbti="ENFP",
            personality_notes="Talkative, easily distracted",
        )
    )
    pipeline = TranscriptionPipeline(
        store, ai, now=lambda: datetime(2026, 5, 1, 14, 30, 0)
    )
    return store, student, pipeline


def test_successful_run_prepends_session():
    ai = FakeAI(json.dumps({"transcription": "t1", "feedback": "f1"}))
    store, student, pipeline = _setup(ai)

    session = asyncio.run(pipeline.run(student, AUDIO))

    sessions = store.get(student.id).sessions
    assert sessions == [session]
    assert session.transcription == "t1"
    assert session.feedback == "f1"
    assert session.reflection_image is None
    assert session.educational_notes is None
    assert session.audio is AUDIO
    assert session.timestamp == "2026-05-01 14:30:00"


def test_request_carries_audio_student_context_and_schema():
    ai = FakeAI(json.dumps({"transcription": "t", "feedback": "f"}))
    _store, student, pipeline = _setup(ai)
    asyncio.run(pipeline.run(student, AUDIO))

    audio, prompt, schema = ai.calls[0]
    assert audio is AUDIO
    assert "Lee" in prompt
    assert "ENFP" in prompt
    assert "Talkative" in prompt
    assert schema is COUNSEL_SCHEMA
    assert schema["required"] == ["transcription", "feedback"]


def test_second_run_adds_new_session_at_head():
    ai = FakeAI(json.dumps({"transcription": "first", "feedback": "f"}))
    store, student, pipeline = _setup(ai)
    first = asyncio.run(pipeline.run(student, AUDIO))
    ai.response = json.dumps({"transcription": "second", "feedback": "f"})
    second = asyncio.run(pipeline.run(store.get(student.id), AUDIO))

    sessions = store.get(student.id).sessions
    assert [s.id for s in sessions] == [second.id, first.id]
    assert sessions[1].transcription == "first"
    assert int(second.id) > int(first.id)


def test_missing_feedback_creates_no_session():
    ai = FakeAI(json.dumps({"transcription": "t1"}))
    store, student, pipeline = _setup(ai)
    audio = AudioPayload(data=b"original", mime_type="audio/wav")

    with pytest.raises(TranscriptionError):
        asyncio.run(pipeline.run(student, audio))

    assert store.get(student.id).sessions == []
    assert audio.data == b"original"


def test_network_failure_is_reported_as_transcription_error():
    ai = FakeAI(error=ConnectionError("network down"))
    store, student, pipeline = _setup(ai)

    with pytest.raises(TranscriptionError) as info:
        asyncio.run(pipeline.run(student, AUDIO))

    assert isinstance(info.value.__cause__, ConnectionError)
    assert store.get(student.id).sessions == []


def test_timeout_is_reported_as_transcription_error():
    ai = FakeAI(error=asyncio.TimeoutError())
    store, student, pipeline = _setup(ai)
    with pytest.raises(TranscriptionError):
        asyncio.run(pipeline.run(student, AUDIO))
    assert store.get(student.id).sessions == []


@pytest.mark.parametrize(
    "body",
    [
        None,
        "",
        "not json",
        "[1, 2]",
        json.dumps({"transcription": "", "feedback": "f"}),
        json.dumps({"transcription": "t", "feedback": 3}),
    ],
)
def test_parse_result_rejects_malformed_bodies(body):
    with pytest.raises(TranscriptionError):
        parse_result(body)


def test_parse_result_ignores_extra_fields():
    result = parse_result(json.dumps({"transcription": "t", "feedback": "f", "x": 1}))
    assert (result.transcription, result.feedback) == ("t", "f")


def test_build_prompt_without_mbti():
    _store, student, _pipeline = _setup(FakeAI())
    student.mbti = ""
    prompt = build_prompt(student, feedback_language="English")
    assert "MBTI: not provided" in prompt
    assert "in English" in prompt
