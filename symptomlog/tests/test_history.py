import threading
from datetime import datetime, timedelta, timezone

import pytest

from symptomlog.models.entry import Severity, SymptomEntry
from symptomlog.services.clock import MonotonicClock
from symptomlog.services.history import HistoryStore
from symptomlog.storage.kv import EntryKey, InMemoryKeyValueStore
from symptomlog.utils.exceptions import KeyConflictError, StorageError

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_entry(owner, ts=T0, entry_id=None, symptoms=("Fever",)):
    entry = SymptomEntry.create(
        owner_id=owner,
        symptoms=symptoms,
        severity=Severity.MILD,
        suggestions=["rest", "fluids"],
        timestamp=ts,
    )
    if entry_id is not None:
        entry = SymptomEntry(
            id=entry_id,
            owner_id=entry.owner_id,
            symptoms=entry.symptoms,
            severity=entry.severity,
            suggestions=entry.suggestions,
            timestamp=entry.timestamp,
        )
    return entry


@pytest.fixture(params=["memory", "sql"])
def history(request, kv, sql_kv):
    return HistoryStore(kv if request.param == "memory" else sql_kv)


def test_append_then_list(history):
    entry = make_entry("alice", symptoms=("Headache", "headache", "Fatigue"))
    history.append(entry)
    listed = history.list_by_owner("alice")
    assert listed == [entry]
    # order, casing and duplicates survive the round trip
    assert listed[0].symptoms == ("Headache", "headache", "Fatigue")


def test_listing_is_newest_first_regardless_of_insert_order(history):
    t1, t2, t3 = T0, T0 + timedelta(seconds=1), T0 + timedelta(seconds=2)
    e1, e2, e3 = make_entry("alice", t1), make_entry("alice", t2), make_entry("alice", t3)
    for e in (e2, e3, e1):
        history.append(e)
    assert [e.timestamp for e in history.list_by_owner("alice")] == [t3, t2, t1]


def test_equal_timestamps_break_ties_by_id(history):
    entries = [make_entry("alice", T0, entry_id=i) for i in ("b", "c", "a")]
    for e in entries:
        history.append(e)
    first = [e.id for e in history.list_by_owner("alice")]
    assert first == ["c", "b", "a"]
    assert [e.id for e in history.list_by_owner("alice")] == first


@pytest.mark.parametrize("neighbour", ["bob2", "bobby", "bob/", "bob:x", "Bob"])
def test_owner_prefix_does_not_leak(history, neighbour):
    mine = make_entry("bob")
    history.append(mine)
    history.append(make_entry(neighbour))
    assert history.list_by_owner("bob") == [mine]
    assert all(e.owner_id == neighbour for e in history.list_by_owner(neighbour))


def test_unknown_owner_gets_empty_list(history):
    history.append(make_entry("alice"))
    assert history.list_by_owner("nobody") == []


def test_append_refuses_to_overwrite(history):
    entry = make_entry("alice", entry_id="fixed")
    history.append(entry)
    clash = make_entry("alice", T0 + timedelta(days=1), entry_id="fixed")
    with pytest.raises(KeyConflictError):
        history.append(clash)
    assert history.list_by_owner("alice") == [entry]


def test_get_is_owner_scoped(history):
    entry = make_entry("alice")
    history.append(entry)
    assert history.get("alice", entry.id) == entry
    assert history.get("mallory", entry.id) is None


def test_document_under_foreign_owner_is_skipped(kv):
    # A stored document whose ownerId disagrees with its key is never returned
    history = HistoryStore(kv)
    stray = make_entry("mallory")
    kv.set(EntryKey("alice", stray.id).encode(), stray.to_document())
    assert history.list_by_owner("alice") == []


def test_corrupt_document_raises_storage_error(kv):
    kv.set(EntryKey("alice", "e1").encode(), {"id": "e1"})
    with pytest.raises(StorageError):
        HistoryStore(kv).list_by_owner("alice")


class _BrokenStore(InMemoryKeyValueStore):
    def set(self, key, value, *, overwrite=True):
        raise ConnectionError("backing service down")

    def scan_prefix(self, prefix):
        raise StorageError("scan failed")


def test_backing_failures_surface_as_storage_error():
    history = HistoryStore(_BrokenStore())
    with pytest.raises(StorageError) as exc_info:
        history.append(make_entry("alice"))
    assert exc_info.value.details["operation"] == "history.append"
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    with pytest.raises(StorageError):
        history.list_by_owner("alice")


def test_concurrent_appends_same_owner(kv):
    history = HistoryStore(kv)
    clock = MonotonicClock()

    def worker():
        for _ in range(25):
            history.append(make_entry("alice", clock.now()))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    listed = history.list_by_owner("alice")
    assert len(listed) == 200
    assert len({e.id for e in listed}) == 200
    stamps = [e.timestamp for e in listed]
    assert stamps == sorted(stamps, reverse=True)


def test_clock_is_strictly_increasing_when_source_stalls():
    clock = MonotonicClock(source=lambda: T0)
    a, b, c = clock.now(), clock.now(), clock.now()
    assert a == T0
    assert a < b < c


def test_clock_ignores_backward_steps():
    readings = iter([T0, T0 - timedelta(seconds=5), T0 + timedelta(seconds=1)])
    clock = MonotonicClock(source=lambda: next(readings))
    a, b, c = clock.now(), clock.now(), clock.now()
    assert a < b < c
    assert c == T0 + timedelta(seconds=1)


def test_entry_rejects_bad_suggestion_count():
    with pytest.raises(ValueError):
        SymptomEntry.create("alice", ["x"], Severity.MILD, [], T0)
    with pytest.raises(ValueError):
        SymptomEntry.create("alice", ["x"], Severity.MILD, ["s"] * 9, T0)


def test_entry_document_roundtrip_keeps_microseconds():
    ts = T0 + timedelta(microseconds=7)
    entry = make_entry("alice", ts)
    doc = entry.to_document()
    assert doc["timestamp"] == "2024-05-01T12:00:00.000007Z"
    assert SymptomEntry.from_document(doc) == entry
