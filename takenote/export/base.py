"""Snapshot handed to the export string builders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..core.timecode.smpte import Timecode, TimecodeError, parse_timecode
from ..data.models import MetadataField, Note, Session
from ..errors import TakeNoteError


class ExportFormatError(TakeNoteError, ValueError):
    """Raised for an unknown export format."""


@dataclass(frozen=True)
class ExportSnapshot:
    title: str
    notes: Tuple[Note, ...]
    metadata: Tuple[MetadataField, ...]
    fps: float

    def metadata_value(self, field_id: str, default: str = "") -> str:
        for field in self.metadata:
            if field.id == field_id:
                return field.value or default
        return default


def snapshot_from_session(session: Session) -> ExportSnapshot:
    """Freeze the live (non-tombstoned) notes in timecode order."""

    notes = sorted(session.active_notes(), key=lambda note: (note.timecode_in, note.id))
    return ExportSnapshot(
        title=session.name,
        notes=tuple(note.model_copy() for note in notes),
        metadata=tuple(field.model_copy() for field in session.metadata),
        fps=session.fps,
    )


def note_span(note: Note, fps: float) -> Tuple[Timecode, Timecode]:
    """In/out timecodes of a note; unreadable values collapse to midnight."""

    points: List[Timecode] = []
    for text in (note.timecode_in, note.timecode_out):
        try:
            points.append(parse_timecode(text, fps, clamp=True))
        except TimecodeError:
            points.append(Timecode(0, 0, 0, 0, fps))
    return points[0], points[1]


def single_line(text: str) -> str:
    return " ".join(text.split())


__all__ = ["ExportFormatError", "ExportSnapshot", "note_span", "single_line", "snapshot_from_session"]
