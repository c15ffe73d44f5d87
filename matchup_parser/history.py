"""
Versioned, bounded history of week snapshots on top of a flat key-value store.

Key layout (prefix "mp" by default):
  mp:version:{id}          full HistoryEntry
  mp:week:{week}:versions  newest-first index of HistorySummary, at most K long
  mp:week:{week}           latest snapshot for the week

Every write is a full read-modify-write of the index value. Two writers racing
on the same week can lose one append (last write wins); nothing here locks.
"""
import json
import threading
from datetime import datetime, timedelta, timezone
from typing import Generic, List, Optional, Tuple, TypeVar
from uuid import uuid4

from pydantic import ValidationError

from .errors import EntryNotFound, StoreUnavailable
from .kv import KeyValueBackend
from .logging_config import LoggingConfig
from .models import HistoryEntry, HistorySummary, WeekSnapshot

logger = LoggingConfig.get_logger(__name__)

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """Fixed-capacity list, newest first; pushing past capacity evicts the oldest."""

    def __init__(self, capacity: int, items: Optional[List[T]] = None, key=lambda item: item):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._key = key
        self._items: List[T] = list(items or [])[:capacity]

    def push(self, item: T) -> List[T]:
        self._items.insert(0, item)
        evicted = self._items[self.capacity:]
        del self._items[self.capacity:]
        return evicted

    def remove(self, ident) -> bool:
        before = len(self._items)
        self._items = [i for i in self._items if self._key(i) != ident]
        return len(self._items) != before

    def head(self) -> Optional[T]:
        return self._items[0] if self._items else None

    def items(self) -> List[T]:
        return list(self._items)

    def __len__(self):
        return len(self._items)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_id_lock = threading.Lock()
_last_id_us = 0


def new_entry_id(now: Optional[datetime] = None) -> str:
    # Microsecond prefix, bumped past the last issued one so ids sort in creation order
    global _last_id_us
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    stamp = (now - _EPOCH) // timedelta(microseconds=1)
    with _id_lock:
        stamp = max(stamp, _last_id_us + 1)
        _last_id_us = stamp
    return f"{stamp:016d}-{uuid4().hex[:6]}"


def make_label(week: Optional[int], saved_at: datetime) -> str:
    local = saved_at.astimezone()
    prefix = f"Week {week}" if week is not None else "Unknown week"
    return f"{prefix} - {local.strftime('%b %d, %Y %I:%M %p')}"


def make_entry(snapshot: WeekSnapshot, previous_id: Optional[str] = None) -> HistoryEntry:
    saved_at = datetime.fromisoformat(snapshot.savedAt)
    return HistoryEntry(
        id=new_entry_id(saved_at),
        label=make_label(snapshot.week, saved_at),
        previousId=previous_id,
        **snapshot.model_dump(),
    )


class HistoryStore:
    def __init__(self, backend: KeyValueBackend, capacity: int = 5, prefix: str = "mp"):
        self.backend = backend
        self.capacity = capacity
        self.prefix = prefix

    # keys
    def version_key(self, entry_id: str) -> str:
        return f"{self.prefix}:version:{entry_id}"

    def index_key(self, week: int) -> str:
        return f"{self.prefix}:week:{week}:versions"

    def latest_key(self, week: int) -> str:
        return f"{self.prefix}:week:{week}"

    # raw helpers
    def _load_index(self, key: str) -> BoundedHistory[HistorySummary]:
        raw = self.backend.get(key)
        items = []
        if raw:
            try:
                items = [HistorySummary.model_validate(i) for i in json.loads(raw)]
            except (ValueError, TypeError, ValidationError) as e:
                raise StoreUnavailable(f"Corrupt history index at {key}") from e
        return BoundedHistory(self.capacity, items, key=lambda s: s.id)

    def _save_index(self, key: str, ring: BoundedHistory[HistorySummary]):
        if len(ring):
            self.backend.set(key, json.dumps([s.model_dump() for s in ring.items()]))
        else:
            self.backend.delete(key)

    def _load_entry(self, key: str) -> Optional[HistoryEntry]:
        raw = self.backend.get(key)
        if not raw:
            return None
        try:
            return HistoryEntry.model_validate_json(raw)
        except ValidationError as e:
            raise StoreUnavailable(f"Corrupt history entry at {key}") from e

    def _week_index_keys(self) -> List[Tuple[str, int]]:
        found = []
        for key in self.backend.keys_with_prefix(f"{self.prefix}:week:"):
            parts = key[len(self.prefix) + 1:].split(":")
            if len(parts) == 3 and parts[2] == "versions" and parts[1].isdigit():
                found.append((key, int(parts[1])))
        return found

    # operations
    def append(self, entry: HistoryEntry) -> HistoryEntry:
        if entry.week is None:
            raise ValueError("history entries need a week")
        self.backend.set(self.version_key(entry.id), entry.model_dump_json())

        index_key = self.index_key(entry.week)
        ring = self._load_index(index_key)
        evicted = ring.push(entry.summary())
        self._save_index(index_key, ring)
        for old in evicted:
            self.backend.delete(self.version_key(old.id))

        self.backend.set(self.latest_key(entry.week), entry.model_dump_json())
        logger.info("history append week=%s id=%s evicted=%d", entry.week, entry.id, len(evicted))
        return entry

    def list(self, week: Optional[int] = None) -> List[HistorySummary]:
        if week is not None:
            return self._load_index(self.index_key(week)).items()
        merged = []
        for key, _ in self._week_index_keys():
            merged.extend(self._load_index(key).items())
        merged.sort(key=lambda s: s.id, reverse=True)
        return merged[:self.capacity]

    def get(self, entry_id: str) -> HistoryEntry:
        entry = self._load_entry(self.version_key(entry_id))
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    def latest(self, week: int) -> Optional[HistoryEntry]:
        return self._load_entry(self.latest_key(week))

    def delete(self, entry_id: str) -> None:
        """Remove one entry; deleting something already gone is a no-op."""
        entry = self._load_entry(self.version_key(entry_id))
        self.backend.delete(self.version_key(entry_id))

        if entry is not None and entry.week is not None:
            weeks = [(self.index_key(entry.week), entry.week)]
        else:
            weeks = self._week_index_keys()

        for index_key, week in weeks:
            ring = self._load_index(index_key)
            if not ring.remove(entry_id):
                continue
            self._save_index(index_key, ring)
            self._refresh_latest(week, ring)
            logger.info("history delete week=%s id=%s", week, entry_id)

    def _refresh_latest(self, week: int, ring: BoundedHistory[HistorySummary]):
        head = ring.head()
        current = self.latest(week)
        if head is None:
            self.backend.delete(self.latest_key(week))
        elif current is None or current.id != head.id:
            newest = self._load_entry(self.version_key(head.id))
            if newest is not None:
                self.backend.set(self.latest_key(week), newest.model_dump_json())

    def clear_week(self, week: int) -> List[str]:
        index_key = self.index_key(week)
        deleted = [self.version_key(s.id) for s in self._load_index(index_key).items()]
        deleted += [index_key, self.latest_key(week)]
        for key in deleted:
            self.backend.delete(key)
        logger.info("history cleared week=%s keys=%d", week, len(deleted))
        return deleted
