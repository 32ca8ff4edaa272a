"""Data models used by TakeNote.

Records serialise with camelCase keys (``timecodeIn``, ``tcOffset``) so the
stored documents keep the shape the web client writes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..core.timecode.smpte import DEFAULT_FRAME_RATE, validate_frame_rate


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class NoteKind(str, Enum):
    QUICK = "quick"
    LONG = "long"
    CUSTOM = "custom"


class Note(_Record):
    id: str
    timecode_in: str
    timecode_out: str
    text: str
    kind: NoteKind = NoteKind.QUICK
    timestamp: str
    deleted: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_single_timecode(cls, data: Any) -> Any:
        # older records carry one ``timecode`` field instead of an in/out pair
        if isinstance(data, dict) and "timecode" in data:
            data = dict(data)
            legacy = data.pop("timecode")
            for alias, name in (("timecodeIn", "timecode_in"), ("timecodeOut", "timecode_out")):
                if alias not in data and name not in data:
                    data[alias] = legacy
        return data


class MicAssignment(_Record):
    person_name: str
    timecode: Optional[str] = None
    photo_ref: Optional[str] = None


class MicChannel(_Record):
    number: int
    frequency: str = ""
    assignments: List[MicAssignment] = Field(default_factory=list)

    @property
    def current_person(self) -> Optional[str]:
        return self.assignments[-1].person_name if self.assignments else None


class MetadataField(_Record):
    id: str
    label: str
    value: str = ""
    placeholder: str = ""


DEFAULT_METADATA_FIELDS = (
    MetadataField(id="production", label="Production", placeholder="e.g., Documentary 2025"),
    MetadataField(id="scene", label="Scene", placeholder="e.g., INT. OFFICE - DAY"),
    MetadataField(id="take", label="Take", placeholder="e.g., 3"),
    MetadataField(id="cameraName", label="Camera", placeholder="e.g., A-Cam"),
)


def default_metadata() -> List[MetadataField]:
    return [field.model_copy() for field in DEFAULT_METADATA_FIELDS]


class Session(_Record):
    id: str
    name: str
    created_at: str
    updated_at: Optional[str] = None
    user_id: Optional[str] = None
    notes: List[Note] = Field(default_factory=list)
    mics: List[MicChannel] = Field(default_factory=list)
    metadata: List[MetadataField] = Field(default_factory=default_metadata)
    fps: float = DEFAULT_FRAME_RATE
    tc_offset: int = 0

    @field_validator("fps")
    @classmethod
    def _check_fps(cls, value: float) -> float:
        return validate_frame_rate(value)

    def active_notes(self) -> List[Note]:
        return [note for note in self.notes if not note.deleted]

    def find_note(self, note_id: str) -> Optional[Note]:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def find_mic(self, number: int) -> Optional[MicChannel]:
        for mic in self.mics:
            if mic.number == number:
                return mic
        return None

    def find_field(self, field_id: str) -> Optional[MetadataField]:
        for field in self.metadata:
            if field.id == field_id:
                return field
        return None


__all__ = [
    "DEFAULT_METADATA_FIELDS",
    "MetadataField",
    "MicAssignment",
    "MicChannel",
    "Note",
    "NoteKind",
    "Session",
    "default_metadata",
]
