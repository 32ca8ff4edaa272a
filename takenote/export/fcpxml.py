"""Final Cut Pro XML with the notes as markers on a gap clip."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from ..core.timecode.smpte import is_drop_frame, nominal_rate
from .base import ExportSnapshot, note_span

FCPXML_VERSION = "1.9"


def _is_fractional(fps: float) -> bool:
    return abs(fps - round(fps)) > 1e-6


def _rational(frames: int, fps: float) -> str:
    """Frame count as an FCPXML rational time value."""

    if frames == 0:
        return "0s"
    if _is_fractional(fps):
        return f"{frames * 1001}/{nominal_rate(fps) * 1000}s"
    return f"{frames}/{int(round(fps))}s"


def render_fcpxml(snapshot: ExportSnapshot) -> str:
    fps = snapshot.fps
    spans = [note_span(note, fps) for note in snapshot.notes]
    end_frames = max((end.total_frames() + 1 for _, end in spans), default=1)

    root = ET.Element("fcpxml", version=FCPXML_VERSION)
    resources = ET.SubElement(root, "resources")
    ET.SubElement(
        resources,
        "format",
        id="r1",
        name=f"FFVideoFormat1080p{fps:g}".replace(".", ""),
        frameDuration=_rational(1, fps),
        width="1920",
        height="1080",
    )
    library = ET.SubElement(root, "library")
    event = ET.SubElement(library, "event", name=snapshot.title)
    project = ET.SubElement(event, "project", name=snapshot.title)
    sequence = ET.SubElement(
        project,
        "sequence",
        format="r1",
        tcStart="0s",
        tcFormat="DF" if is_drop_frame(fps) else "NDF",
        duration=_rational(end_frames, fps),
    )
    spine = ET.SubElement(sequence, "spine")
    gap = ET.SubElement(spine, "gap", name="Notes", offset="0s", start="0s", duration=_rational(end_frames, fps))
    for note, (start, end) in zip(snapshot.notes, spans):
        length = max(end.total_frames() - start.total_frames(), 1)
        ET.SubElement(
            gap,
            "marker",
            start=_rational(start.total_frames(), fps),
            duration=_rational(length, fps),
            value=note.text,
        )

    ET.indent(root)
    body = ET.tostring(root, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<!DOCTYPE fcpxml>\n{body}\n'


__all__ = ["render_fcpxml"]
