"""Deterministic merge of a local and a remote copy of one session."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ...data.models import Note, Session
from ...utils.timing import iso_from_millis, now_millis, parse_iso_millis


def _note_sort_key(note: Note):
    return (note.timecode_in, note.id)


def merge_notes(local: Iterable[Note], remote: Iterable[Note], deleted_ids: Iterable[str] = ()) -> List[Note]:
    """Union notes by id; local wins on collision and tombstones stick.

    A note stays deleted when either side deleted it or its id is in
    ``deleted_ids``. The result is ordered by timecode, then id.
    """

    tombstoned = set(deleted_ids)
    remote_by_id: Dict[str, Note] = {note.id: note for note in remote}
    merged: Dict[str, Note] = dict(remote_by_id)
    for note in local:
        merged[note.id] = note

    result = []
    for note_id, note in merged.items():
        other = remote_by_id.get(note_id)
        deleted = note.deleted or note_id in tombstoned or (other is not None and other.deleted)
        if deleted != note.deleted:
            note = note.model_copy(update={"deleted": True})
        else:
            note = note.model_copy()
        result.append(note)
    result.sort(key=_note_sort_key)
    return result


def merge_sessions(
    local: Optional[Session],
    remote: Optional[Session],
    deleted_ids: Iterable[str] = (),
    *,
    now: Optional[int] = None,
) -> Optional[Session]:
    """Merge two copies of a session.

    ``mics``, ``metadata``, ``fps`` and ``tc_offset`` are taken whole from the
    copy with the later ``updated_at`` (local on ties). Identity fields come
    from local. The result is stamped ``updated_at = now``.
    """

    if remote is None:
        return local
    if local is None:
        return remote

    remote_is_newer = parse_iso_millis(remote.updated_at) > parse_iso_millis(local.updated_at)
    donor = remote if remote_is_newer else local
    stamp = now_millis() if now is None else now

    return local.model_copy(
        update={
            "notes": merge_notes(local.notes, remote.notes, deleted_ids),
            "mics": [mic.model_copy(deep=True) for mic in donor.mics],
            "metadata": [field.model_copy() for field in donor.metadata],
            "fps": donor.fps,
            "tc_offset": donor.tc_offset,
            "updated_at": iso_from_millis(stamp),
        }
    )


def same_content(first: Session, second: Session) -> bool:
    """Equal records apart from the ``updated_at`` stamp."""

    exclude = {"updated_at"}
    return first.model_dump(mode="json", exclude=exclude) == second.model_dump(mode="json", exclude=exclude)


def introduced_note_ids(before: Session, after: Session) -> List[str]:
    """Ids of live notes in ``after`` that ``before`` did not have at all."""

    known = {note.id for note in before.notes}
    return [note.id for note in after.active_notes() if note.id not in known]


__all__ = ["introduced_note_ids", "merge_notes", "merge_sessions", "same_content"]
