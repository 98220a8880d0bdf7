"""Deduplicated, persisted history of scanned QR codes."""
from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from .classify import Category, classify
from .storage import Slot

logger = logging.getLogger(__name__)

_FIELDS = ("id", "content", "timestamp", "category")


@dataclass(frozen=True, slots=True)
class ScanRecord:
    """One classified scan result."""

    content: str
    category: Category
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def create(cls, content: str) -> "ScanRecord":
        return cls(content=content, category=classify(content))

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ScanRecord":
        """Build a record from its serialised form.

        A :class:`ValueError` is raised for anything that is not a complete,
        well-typed record.
        """

        if not isinstance(data, dict):
            raise ValueError("Record is not an object")
        missing = [name for name in _FIELDS if name not in data]
        if missing:
            raise ValueError(f"Record is missing fields: {', '.join(missing)}")

        record_id, content, timestamp = data["id"], data["content"], data["timestamp"]
        if not isinstance(record_id, str) or not record_id:
            raise ValueError("Record id must be a non-empty string")
        if not isinstance(content, str):
            raise ValueError("Record content must be a string")
        if not isinstance(timestamp, str):
            raise ValueError("Record timestamp must be an ISO-8601 string")

        try:
            parsed = datetime.fromisoformat(timestamp)
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp: {timestamp!r}") from exc

        try:
            category = Category(data["category"])
        except ValueError as exc:
            raise ValueError(f"Unknown category: {data['category']!r}") from exc

        return cls(content=content, category=category, timestamp=parsed, id=record_id)


def encode_records(records: Sequence[ScanRecord]) -> str:
    """Serialise ``records`` as a JSON array, preserving order."""

    # ASCII escapes keep lone surrogates writable as UTF-8.
    return json.dumps([record.to_dict() for record in records])


def decode_records(blob: str | bytes | None) -> List[ScanRecord]:
    """Decode a persisted history blob.

    Never raises.  A blob that is not a JSON array decodes to an empty list.
    Malformed entries are skipped individually, as are entries whose content
    or id repeats an earlier entry.
    """

    if not blob:
        return []

    try:
        data = json.loads(blob)
    except (TypeError, ValueError, RecursionError) as exc:
        logger.warning("Discarding unreadable history payload: %s", exc)
        return []

    if not isinstance(data, list):
        logger.warning("Discarding history payload of type %s", type(data).__name__)
        return []

    records: List[ScanRecord] = []
    seen_contents: set[str] = set()
    seen_ids: set[str] = set()
    for index, entry in enumerate(data):
        try:
            record = ScanRecord.from_dict(entry)
        except ValueError as exc:
            logger.warning("Skipping history entry %d: %s", index, exc)
            continue
        if record.content in seen_contents or record.id in seen_ids:
            logger.warning("Skipping duplicate history entry %d", index)
            continue
        seen_contents.add(record.content)
        seen_ids.add(record.id)
        records.append(record)
    return records


@dataclass(frozen=True, slots=True)
class HistoryChange:
    """Notification delivered to subscribers after each mutation.

    ``kind`` is one of ``"added"``, ``"deleted"``, ``"cleared"`` or
    ``"loaded"``.  ``record`` and ``index`` describe the affected record for
    the first two kinds and are ``None`` otherwise.
    """

    kind: str
    record: Optional[ScanRecord] = None
    index: Optional[int] = None


Listener = Callable[[HistoryChange], None]


class HistoryStore:
    """Newest-first history of scans that never holds the same content twice.

    Every mutation rewrites the whole slot.  Save failures are logged and the
    in-memory state remains authoritative.
    """

    def __init__(self, slot: Slot, *, autoload: bool = True):
        self._slot = slot
        self._records: List[ScanRecord] = []
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        if autoload:
            self.load()

    # -- queries -----------------------------------------------------------------
    def records(self) -> List[ScanRecord]:
        """Return a snapshot of the history, newest first."""

        with self._lock:
            return list(self._records)

    def get(self, record_id: str) -> Optional[ScanRecord]:
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def search(self, query: str) -> List[ScanRecord]:
        """Return records whose content contains ``query``, ignoring case."""

        with self._lock:
            if not query:
                return list(self._records)
            needle = query.casefold()
            return [r for r in self._records if needle in r.content.casefold()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[ScanRecord]:
        return iter(self.records())

    def __contains__(self, content: object) -> bool:
        with self._lock:
            return any(record.content == content for record in self._records)

    # -- mutations ---------------------------------------------------------------
    def add(self, content: str) -> Tuple[bool, Optional[ScanRecord]]:
        """Insert ``content`` at the front unless it is already stored.

        Returns ``(True, record)`` for a new record and ``(False, None)`` for a
        duplicate.
        """

        with self._lock:
            if any(record.content == content for record in self._records):
                logger.debug("Ignoring duplicate scan")
                return False, None
            record = ScanRecord.create(content)
            self._records.insert(0, record)
            self._save()
        logger.info("Stored %s scan %s", record.category.value, record.id)
        self._notify(HistoryChange("added", record, 0))
        return True, record

    def delete(self, record_id: str) -> bool:
        """Remove the record with ``record_id``; return whether one was removed."""

        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == record_id:
                    del self._records[index]
                    self._save()
                    break
            else:
                return False
        self._notify(HistoryChange("deleted", record, index))
        return True

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._save()
        self._notify(HistoryChange("cleared"))

    def load(self) -> List[ScanRecord]:
        """Replace the in-memory history with the persisted one.

        Missing or malformed data yields an empty history.
        """

        with self._lock:
            self._records = decode_records(self._slot.read())
            loaded = list(self._records)
        logger.debug("Loaded %d history records", len(loaded))
        self._notify(HistoryChange("loaded"))
        return loaded

    # -- notifications -----------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _notify(self, change: HistoryChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("History listener failed for %s event", change.kind)

    def _save(self) -> None:
        try:
            self._slot.write(encode_records(self._records))
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to persist scan history")


__all__ = [
    "ScanRecord",
    "HistoryChange",
    "HistoryStore",
    "encode_records",
    "decode_records",
]
