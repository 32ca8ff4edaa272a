from takenote.utils.ids import IdGenerator
from takenote.utils.timing import iso_from_millis, parse_iso_millis


def test_iso_round_trip():
    stamp = iso_from_millis(1_741_942_800_123)

    assert stamp == "2025-03-14T09:00:00.123Z"
    assert parse_iso_millis(stamp) == 1_741_942_800_123


def test_parse_iso_tolerates_missing_and_garbage():
    assert parse_iso_millis(None) == 0
    assert parse_iso_millis("") == 0
    assert parse_iso_millis("not a date") == 0
    assert parse_iso_millis("2025-03-14T09:00:00") == 1_741_942_800_000


def test_ids_never_repeat_within_a_millisecond():
    ids = IdGenerator(lambda: 1000)

    assert [ids.next("note") for _ in range(3)] == ["note_1000", "note_1001", "note_1002"]
    assert ids.next("session") == "session_1003"
