# test_record_store.py
#
# Imports
from datetime import datetime, timedelta, timezone
import pytest
#
# Third-Party Imports
from hypothesis import given, settings, strategies as st
#
# Local Imports
from tem_client.tem_api.schemas import Record
from tem_client.Sync.record_store import RecordStore
#
#######################################################################################################################
#
# Helpers

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def rec(key, body="x", minutes=None, **extra):
    updated_at = None if minutes is None else T0 + timedelta(minutes=minutes)
    return Record(key=key, body=body, updated_at=updated_at, **extra)


# --- Examples ---

def test_merge_batch_appends_in_arrival_order():
    store = RecordStore()
    assert store.merge_batch([rec("a"), rec("b")]) == 2
    assert store.merge_batch([rec("c")]) == 1
    assert store.keys() == ("a", "b", "c")


def test_merge_batch_replaces_duplicate_keys_in_place():
    store = RecordStore([rec("a"), rec("b"), rec("c")])
    store.merge_batch([rec("b", body="new b")])
    assert store.keys() == ("a", "b", "c")
    assert store.get("b").body == "new b"


def test_duplicate_within_one_batch_keeps_last():
    store = RecordStore()
    store.merge_batch([rec("a", body="first"), rec("a", body="second")])
    assert len(store) == 1
    assert store.get("a").body == "second"


def test_last_write_wins_keeps_newer_local_copy():
    store = RecordStore([rec("a", body="local edit", minutes=10)])
    written = store.merge_batch([rec("a", body="stale server copy", minutes=5)])
    assert written == 0
    assert store.get("a").body == "local edit"


def test_last_write_wins_accepts_equal_or_newer_and_unstamped():
    store = RecordStore([rec("a", body="v1", minutes=5), rec("b", body="v1", minutes=5)])
    store.merge_batch([rec("a", body="v2", minutes=5), rec("b", body="v2")])
    assert store.get("a").body == "v2"
    assert store.get("b").body == "v2"


def test_last_write_wins_disabled_always_replaces():
    store = RecordStore([rec("a", body="local edit", minutes=10)], last_write_wins=False)
    store.merge_batch([rec("a", body="server", minutes=5)])
    assert store.get("a").body == "server"


def test_upsert_front_prepends_new_and_replaces_existing():
    store = RecordStore([rec("a"), rec("b")])
    assert store.upsert_front(rec("c")) is True
    assert store.keys() == ("c", "a", "b")
    assert store.upsert_front(rec("b", body="edited")) is False
    assert store.keys() == ("c", "a", "b")
    assert store.get("b").body == "edited"


def test_restore_puts_back_the_same_object():
    store = RecordStore([rec("a")])
    snapshot = store.snapshot()
    store.upsert_front(rec("a", body="x2"))
    store.remove("a")
    store.restore(snapshot)
    assert store.records is snapshot
    assert store.get("a").body == "x"


def test_writes_never_mutate_previous_snapshots():
    store = RecordStore([rec("a"), rec("b")])
    snapshot = store.snapshot()
    store.merge_batch([rec("c"), rec("a", body="changed")])
    store.remove("b")
    assert [r.key for r in snapshot] == ["a", "b"]
    assert snapshot[0].body == "x"


def test_remove_and_replace():
    store = RecordStore([rec("a"), rec("b"), rec("c")])
    assert store.remove("b").key == "b"
    assert store.remove("zzz") is None
    assert store.keys() == ("a", "c")
    store.replace(rec("c", favorite=True))
    assert store.get("c").favorite is True
    with pytest.raises(KeyError):
        store.replace(rec("missing"))
    assert "a" in store and "b" not in store


def test_language_counts():
    store = RecordStore([
        Record(key="a", body="1", language="english"),
        Record(key="b", body="2", language="english"),
        Record(key="c", body="3", language="spanish"),
        Record(key="d", body="4"),
    ])
    assert store.language_counts() == {"all": 1, "english": 2, "spanish": 1, "total": 4}
    store.clear()
    assert store.language_counts()["total"] == 0


# --- Properties ---

keys = st.text(alphabet="abcdefgh", min_size=1, max_size=2)
batches = st.lists(st.lists(keys, max_size=8), max_size=6)


@settings(max_examples=75, deadline=None)
@given(batches=batches)
def test_keys_stay_unique_and_first_seen_order_is_kept(batches):
    store = RecordStore()
    first_seen = []
    for batch in batches:
        store.merge_batch([rec(key) for key in batch])
        for key in batch:
            if key not in first_seen:
                first_seen.append(key)
    assert list(store.keys()) == first_seen
    assert len(set(store.keys())) == len(store)


@settings(max_examples=75, deadline=None)
@given(initial=st.lists(keys, unique=True, max_size=8), edits=st.lists(keys, max_size=8))
def test_restore_after_any_edits_is_reference_equal(initial, edits):
    store = RecordStore([rec(key) for key in initial])
    snapshot = store.snapshot()
    for i, key in enumerate(edits):
        if i % 2:
            store.remove(key)
        else:
            store.upsert_front(rec(key, body=f"edit {i}"))
    store.restore(snapshot)
    assert store.records is snapshot
    assert list(store.keys()) == initial

#
# End of test_record_store.py
########################################################################################################################
