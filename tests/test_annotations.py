import base64
import os
import tempfile

import pytest

from counselnote.annotations import (
    AnnotationDraft,
    AnnotationMerger,
    encode_image,
    encode_image_file,
)
from counselnote.models import Session, StudentFields
from counselnote.roster import RosterStore


def _store_with_session():
    store = RosterStore()
    student = store.register(StudentFields(class_label="2", number="4", name="Park"))
    store.prepend_session(
        student.id,
        Session(id="s1", timestamp="2026-01-13 10:00:00", transcription="t", feedback="f"),
    )
    return store, student


def test_attach_is_additive():
    store, student = _store_with_session()
    merger = AnnotationMerger(store)
    merger.attach(student.id, "s1", notes="n1")
    merger.attach(student.id, "s1", image="img1")

    session = store.get_session(student.id, "s1")
    assert session.educational_notes == "n1"
    assert session.reflection_image == "img1"


def test_attach_without_fields_leaves_session_unchanged():
    store, student = _store_with_session()
    merger = AnnotationMerger(store)
    merger.attach(student.id, "s1", image="img1", notes="n1")
    merger.attach(student.id, "s1")
    session = store.get_session(student.id, "s1")
    assert (session.reflection_image, session.educational_notes) == ("img1", "n1")


def test_encode_image_builds_data_url():
    url = encode_image(b"\x89PNG", "image/png")
    assert url.startswith("data:image/png;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == b"\x89PNG"


def test_encode_image_file_uses_file_type():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "reflection.jpg")
        with open(path, "wb") as handle:
            handle.write(b"\xff\xd8\xff")
        assert encode_image_file(path).startswith("data:image/jpeg;base64,")

        text_path = os.path.join(tmp, "notes.txt")
        with open(text_path, "w", encoding="utf-8") as handle:
            handle.write("hello")
        with pytest.raises(ValueError):
            encode_image_file(text_path)


def test_draft_tracks_modification_and_saves_once():
    store, student = _store_with_session()
    merger = AnnotationMerger(store)
    draft = AnnotationDraft()
    draft.load(store.get_session(student.id, "s1"))
    assert not draft.can_save

    draft.set_notes("talked about sharing")
    assert draft.can_save
    assert draft.save(merger, student.id, "s1") is True
    assert not draft.is_modified
    assert draft.save(merger, student.id, "s1") is False
    assert store.get_session(student.id, "s1").educational_notes == "talked about sharing"


def test_draft_save_without_image_keeps_existing_image():
    store, student = _store_with_session()
    merger = AnnotationMerger(store)
    merger.attach(student.id, "s1", image="img1")

    draft = AnnotationDraft()
    draft.load(None)
    draft.set_notes("n2")
    draft.save(merger, student.id, "s1")

    session = store.get_session(student.id, "s1")
    assert session.reflection_image == "img1"
    assert session.educational_notes == "n2"


def test_draft_load_resets_modified_flag():
    store, student = _store_with_session()
    draft = AnnotationDraft()
    draft.set_image("img")
    draft.load(store.get_session(student.id, "s1"))
    assert not draft.is_modified
    assert draft.image is None
    assert draft.notes == ""
