import pytest
from pydantic import ValidationError

from takenote.data.models import MicChannel, Note, Session, default_metadata


def test_records_use_camel_case_keys():
    session = Session(id="session_1", name="Day", created_at="2025-03-14T09:00:00.000Z", tc_offset=40)

    record = session.to_record()

    assert record["tcOffset"] == 40
    assert record["createdAt"] == "2025-03-14T09:00:00.000Z"
    assert record["metadata"][3]["id"] == "cameraName"
    assert Session.model_validate(record).tc_offset == 40


def test_legacy_single_timecode_note():
    note = Note.model_validate(
        {"id": "note_1", "timecode": "01:00:00:00", "text": "old", "timestamp": "2024-01-01T00:00:00.000Z"}
    )

    assert note.timecode_in == note.timecode_out == "01:00:00:00"
    assert note.kind.value == "quick"
    assert not note.deleted
    assert "timecode" not in note.to_record()


def test_legacy_timecode_does_not_override_explicit_fields():
    note = Note.model_validate(
        {
            "id": "note_1",
            "timecode": "01:00:00:00",
            "timecodeIn": "02:00:00:00",
            "text": "mixed",
            "timestamp": "2024-01-01T00:00:00.000Z",
        }
    )

    assert note.timecode_in == "02:00:00:00"
    assert note.timecode_out == "01:00:00:00"


def test_session_rejects_unsupported_frame_rate():
    with pytest.raises(ValidationError):
        Session(id="session_1", name="Day", created_at="2025-03-14T09:00:00.000Z", fps=27)


def test_default_metadata_is_a_fresh_copy():
    first = default_metadata()
    first[0].value = "Changed"

    assert default_metadata()[0].value == ""
    assert [field.label for field in first] == ["Production", "Scene", "Take", "Camera"]


def test_mic_current_person():
    mic = MicChannel.model_validate({"number": 1, "assignments": [{"personName": "Ana"}, {"personName": "Ben"}]})

    assert mic.current_person == "Ben"
    assert MicChannel(number=2).current_person is None
