"""Export string builders for editing applications."""

from __future__ import annotations

from typing import Callable, Dict

from .ale import render_ale
from .base import ExportFormatError, ExportSnapshot, snapshot_from_session
from .delimited import render_csv, render_tsv
from .edl import render_edl
from .fcpxml import render_fcpxml

EXPORTERS: Dict[str, Callable[[ExportSnapshot], str]] = {
    "csv": render_csv,
    "tsv": render_tsv,
    "edl": render_edl,
    "fcpxml": render_fcpxml,
    "ale": render_ale,
}

EXTENSIONS = {"csv": ".csv", "tsv": ".tsv", "edl": ".edl", "fcpxml": ".fcpxml", "ale": ".ale"}


def render_export(fmt: str, snapshot: ExportSnapshot) -> str:
    try:
        builder = EXPORTERS[fmt.lower()]
    except KeyError:
        raise ExportFormatError(f"Unknown export format: {fmt}") from None
    return builder(snapshot)


__all__ = [
    "EXPORTERS",
    "EXTENSIONS",
    "ExportFormatError",
    "ExportSnapshot",
    "render_export",
    "snapshot_from_session",
]
