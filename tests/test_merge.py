from takenote.core.sync.merge import introduced_note_ids, merge_notes, merge_sessions
from takenote.data.models import MetadataField, MicChannel, Note, Session

EARLY = "2025-03-14T09:00:00.000Z"
LATE = "2025-03-14T10:00:00.000Z"
NOW = 1_800_000_000_000


def _note(note_id, timecode="09:00:00:00", text=None, deleted=False):
    return Note(
        id=note_id,
        timecode_in=timecode,
        timecode_out=timecode,
        text=text or note_id,
        timestamp=EARLY,
        deleted=deleted,
    )


def _session(notes=(), updated_at=EARLY, **kwargs):
    return Session(
        id="session_1",
        name=kwargs.pop("name", "Day one"),
        created_at=EARLY,
        updated_at=updated_at,
        notes=list(notes),
        **kwargs,
    )


def _ids(notes):
    return [note.id for note in notes]


def test_absent_sides_return_the_other():
    local = _session([_note("a")])

    assert merge_sessions(local, None) is local
    assert merge_sessions(None, local) is local
    assert merge_sessions(None, None) is None


def test_union_keeps_every_id_and_local_wins_collisions():
    local = _session([_note("a"), _note("b", text="local b")])
    remote = _session([_note("b", text="remote b"), _note("c")])

    merged = merge_sessions(local, remote, now=NOW)

    assert sorted(_ids(merged.notes)) == ["a", "b", "c"]
    assert merged.find_note("b").text == "local b"


def test_offline_notes_survive_against_unchanged_remote():
    local = _session([_note("a", "09:00:01:00"), _note("b", "09:00:02:00"), _note("c", "09:00:03:00")], LATE)
    remote = _session([], EARLY)

    merged = merge_sessions(local, remote, now=NOW)

    assert [note.text for note in merged.active_notes()] == ["a", "b", "c"]


def test_deletion_on_either_side_is_sticky():
    deleted_locally = merge_notes([_note("x", deleted=True)], [_note("x")])
    deleted_remotely = merge_notes([_note("x")], [_note("x", deleted=True)])

    assert deleted_locally[0].deleted
    assert deleted_remotely[0].deleted


def test_deleted_ids_block_resurrection():
    stale_remote = _session([_note("x"), _note("y")], LATE)
    local = _session([_note("y")], EARLY)

    merged = merge_sessions(local, stale_remote, {"x"}, now=NOW)

    assert merged.find_note("x").deleted
    assert _ids(merged.active_notes()) == ["y"]


def test_notes_are_ordered_by_timecode_then_id():
    merged = merge_notes(
        [_note("n2", "10:00:00:00"), _note("n9", "09:00:00:00")],
        [_note("n1", "10:00:00:00"), _note("n5", "08:00:00:00")],
    )

    assert _ids(merged) == ["n5", "n9", "n1", "n2"]


def test_merge_does_not_mutate_inputs():
    local_note = _note("x")
    merge_notes([local_note], [_note("x", deleted=True)])

    assert not local_note.deleted


def test_newer_remote_donates_mics_metadata_and_clock():
    local = _session(
        [_note("a")],
        EARLY,
        name="Local name",
        mics=[MicChannel(number=1, frequency="518.2")],
        fps=25,
        tc_offset=100,
    )
    remote = _session(
        [],
        LATE,
        name="Remote name",
        mics=[MicChannel(number=1, frequency="606.0"), MicChannel(number=2)],
        metadata=[MetadataField(id="scene", label="Scene", value="12A")],
        fps=29.97,
        tc_offset=5000,
    )

    merged = merge_sessions(local, remote, now=NOW)

    assert merged.name == "Local name"
    assert [mic.frequency for mic in merged.mics] == ["606.0", ""]
    assert merged.find_field("scene").value == "12A"
    assert merged.fps == 29.97
    assert merged.tc_offset == 5000
    assert merged.updated_at == "2027-01-15T08:00:00.000Z"


def test_ties_and_unreadable_timestamps_favour_local():
    local = _session([], EARLY, tc_offset=1)
    tie = _session([], EARLY, tc_offset=2)
    garbled = _session([], "yesterday-ish", tc_offset=3)

    assert merge_sessions(local, tie, now=NOW).tc_offset == 1
    assert merge_sessions(local, garbled, now=NOW).tc_offset == 1


def test_merge_is_idempotent():
    local = _session([_note("a"), _note("x", deleted=True)], LATE, mics=[MicChannel(number=1)])
    remote = _session([_note("b"), _note("x"), _note("z")], EARLY)
    deleted = {"z"}

    once = merge_sessions(local, remote, deleted, now=NOW)
    twice = merge_sessions(once, remote, deleted, now=NOW)

    assert twice.to_record() == once.to_record()


def test_note_set_does_not_depend_on_argument_order():
    left = [_note("a"), _note("b", deleted=True)]
    right = [_note("b"), _note("c")]

    forward = merge_notes(left, right)
    backward = merge_notes(right, left)

    assert _ids(forward) == _ids(backward)
    assert [n.deleted for n in forward] == [n.deleted for n in backward]


def test_introduced_note_ids_lists_new_live_notes():
    before = _session([_note("a")])
    after = _session([_note("a"), _note("b"), _note("c", deleted=True)])

    assert introduced_note_ids(before, after) == ["b"]
