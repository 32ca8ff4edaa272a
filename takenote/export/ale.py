"""Avid Log Exchange sheet."""

from __future__ import annotations

from typing import List

from .base import ExportSnapshot, note_span, single_line


def render_ale(snapshot: ExportSnapshot) -> str:
    labels = [single_line(field.label) for field in snapshot.metadata]
    values = [single_line(field.value) for field in snapshot.metadata]
    lines: List[str] = [
        "Heading",
        "FIELD_DELIM\tTABS",
        "VIDEO_FORMAT\t1080",
        f"FPS\t{snapshot.fps:g}",
        "",
        "Column",
        "\t".join(["Name", "Start", "End", "Comments"] + labels),
        "",
        "Data",
    ]
    prefix = single_line(snapshot.title) or "Note"
    for index, note in enumerate(snapshot.notes, start=1):
        start, end = note_span(note, snapshot.fps)
        row = [f"{prefix} {index:03d}", start.format(), end.format(), single_line(note.text)] + values
        lines.append("\t".join(row))
    return "\n".join(lines) + "\n"


__all__ = ["render_ale"]
