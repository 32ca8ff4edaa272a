"""CSV and TSV note sheets."""

from __future__ import annotations

import csv
import io

from .base import ExportSnapshot

BASE_COLUMNS = ["Timecode In", "Timecode Out", "Type", "Note", "Timestamp"]


def _render(snapshot: ExportSnapshot, delimiter: str) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    writer.writerow(BASE_COLUMNS + [field.label for field in snapshot.metadata])
    metadata_values = [field.value for field in snapshot.metadata]
    for note in snapshot.notes:
        writer.writerow(
            [note.timecode_in, note.timecode_out, note.kind.value, note.text, note.timestamp] + metadata_values
        )
    return buffer.getvalue()


def render_csv(snapshot: ExportSnapshot) -> str:
    return _render(snapshot, ",")


def render_tsv(snapshot: ExportSnapshot) -> str:
    return _render(snapshot, "\t")


__all__ = ["render_csv", "render_tsv"]
