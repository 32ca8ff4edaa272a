"""CMX 3600 edit decision list with one marker event per note."""

from __future__ import annotations

from typing import List

from ..core.timecode.smpte import is_drop_frame, timecode_from_frames
from .base import ExportSnapshot, note_span, single_line


def render_edl(snapshot: ExportSnapshot) -> str:
    title = snapshot.metadata_value("production", snapshot.title)
    lines: List[str] = [
        f"TITLE: {single_line(title)}",
        "FCM: " + ("DROP FRAME" if is_drop_frame(snapshot.fps) else "NON-DROP FRAME"),
        "",
    ]
    for index, note in enumerate(snapshot.notes, start=1):
        start, end = note_span(note, snapshot.fps)
        duration = max(end.total_frames() - start.total_frames(), 1)
        end = timecode_from_frames(start.total_frames() + duration, snapshot.fps)
        source = f"{start.format()} {end.format()}"
        lines.append(f"{index:03d}  AX       V     C        {source} {source}")
        lines.append(f" |C:ResolveColorBlue |M:{single_line(note.text)} |D:{duration}")
        lines.append("")
    return "\n".join(lines)


__all__ = ["render_edl"]
