"""
Tests for the bounded history store
"""
import json
from datetime import datetime, timedelta, timezone

import pytest

from matchup_parser.errors import EntryNotFound, StoreUnavailable
from matchup_parser.history import BoundedHistory, HistoryStore, make_entry, make_label, new_entry_id
from matchup_parser.models import MatchupRecord, WeekSnapshot

BASE = datetime(2025, 9, 14, 18, 0, tzinfo=timezone.utc)


def _entry(week=1, n=0, previous_id=None):
    snap = WeekSnapshot(
        week=week,
        matchups=[MatchupRecord(homeTeam=f"Home {n}", homeScore=100 + n, awayTeam="Away",
                                awayScore=90, winner=f"Home {n}", diff=10 + n)],
        savedAt=(BASE + timedelta(minutes=n)).isoformat(),
        meta={"weekSource": "manual"},
    )
    return make_entry(snap, previous_id)


def test_bounded_history_evicts_oldest():
    ring = BoundedHistory(3)
    evicted = []
    for i in range(5):
        evicted += ring.push(i)
    assert ring.items() == [4, 3, 2]
    assert evicted == [0, 1]
    assert ring.head() == 4


def test_bounded_history_remove():
    ring = BoundedHistory(3, [{"id": "a"}, {"id": "b"}], key=lambda i: i["id"])
    assert ring.remove("a") is True
    assert ring.remove("a") is False
    assert len(ring) == 1
    with pytest.raises(ValueError):
        BoundedHistory(0)


def test_append_k_plus_three(store):
    entries = [store.append(_entry(week=1, n=i)) for i in range(store.capacity + 3)]

    listed = store.list(1)
    assert len(listed) == store.capacity
    assert [s.id for s in listed] == [e.id for e in reversed(entries)][:store.capacity]

    for old in entries[:3]:
        with pytest.raises(EntryNotFound):
            store.get(old.id)
    assert store.get(entries[-1].id).matchups[0].homeTeam == f"Home {store.capacity + 2}"


def test_latest_tracks_newest(store):
    first = store.append(_entry(week=2, n=0))
    second = store.append(_entry(week=2, n=1))
    assert store.latest(2).id == second.id

    store.delete(second.id)
    assert store.latest(2).id == first.id

    store.delete(first.id)
    assert store.latest(2) is None
    assert store.list(2) == []


def test_delete_is_idempotent(store):
    entry = store.append(_entry(week=3))
    store.delete(entry.id)
    store.delete(entry.id)
    store.delete("never-existed")
    with pytest.raises(EntryNotFound):
        store.get(entry.id)


def test_delete_cleans_index_even_without_body(store, backend):
    entry = store.append(_entry(week=4))
    backend.delete(store.version_key(entry.id))
    store.delete(entry.id)
    assert store.list(4) == []


def test_global_list_merges_weeks(store):
    a = store.append(_entry(week=1, n=0))
    b = store.append(_entry(week=2, n=1))
    c = store.append(_entry(week=1, n=2))
    assert [s.id for s in store.list()] == [c.id, b.id, a.id]
    assert {s.week for s in store.list()} == {1, 2}


def test_previous_id_is_kept(store):
    base = store.append(_entry(week=5, n=0))
    derived = store.append(_entry(week=5, n=1, previous_id=base.id))
    assert store.get(derived.id).previousId == base.id
    assert store.list(5)[0].previousId == base.id


def test_clear_week(store, backend):
    store.append(_entry(week=6, n=0))
    store.append(_entry(week=7, n=1))
    deleted = store.clear_week(6)
    assert store.index_key(6) in deleted
    assert store.list(6) == []
    assert store.latest(6) is None
    assert len(store.list(7)) == 1
    assert backend.keys_with_prefix("mp:week:6") == []


def test_append_requires_week(store):
    snap = WeekSnapshot(week=None, matchups=[], savedAt=BASE.isoformat())
    with pytest.raises(ValueError):
        store.append(make_entry(snap))


def test_corrupt_index_is_store_unavailable(store, backend):
    backend.set(store.index_key(8), "{not json")
    with pytest.raises(StoreUnavailable):
        store.list(8)


def test_entries_are_stored_as_json(store, backend):
    entry = store.append(_entry(week=9))
    body = json.loads(backend.get(store.version_key(entry.id)))
    assert body["week"] == 9
    assert body["label"] == entry.label
    assert json.loads(backend.get(store.index_key(9)))[0]["id"] == entry.id


def test_ids_sort_by_creation_time():
    earlier = new_entry_id(BASE)
    later = new_entry_id(BASE + timedelta(milliseconds=1))
    assert earlier < later
    assert len(earlier.split("-")[0]) == 16


def test_ids_issued_at_the_same_instant_keep_creation_order():
    ids = [new_entry_id(BASE) for _ in range(50)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 50


def test_label_mentions_week():
    assert make_label(4, BASE).startswith("Week 4 - ")
    assert make_label(None, BASE).startswith("Unknown week - ")
