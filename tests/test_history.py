from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest

from qr_scan_tool.classify import Category
from qr_scan_tool.history import (
    HistoryStore,
    ScanRecord,
    decode_records,
    encode_records,
)
from qr_scan_tool.storage import FileSlot


@pytest.fixture()
def slot(tmp_path) -> FileSlot:
    return FileSlot(tmp_path, "QRScanResults")


@pytest.fixture()
def store(slot: FileSlot) -> HistoryStore:
    return HistoryStore(slot)


class BrokenSlot:
    key = "broken"

    def read(self):
        return None

    def write(self, blob: str) -> None:
        raise OSError("disk full")


def test_scenario_add_dedup_and_order(store: HistoryStore):
    inserted, url_record = store.add("https://a.com")
    assert inserted
    assert url_record.category is Category.URL
    assert len(store) == 1

    inserted, email_record = store.add("mailto:x@y.com")
    assert inserted
    assert email_record.category is Category.EMAIL
    assert len(store) == 2
    assert store.records()[0] == email_record

    inserted, record = store.add("https://a.com")
    assert not inserted
    assert record is None
    assert len(store) == 2


def test_newest_first(store: HistoryStore):
    store.add("first")
    store.add("second")

    assert [r.content for r in store] == ["second", "first"]


def test_dedup_is_exact_match_only(store: HistoryStore):
    store.add("Example")
    store.add("example")
    store.add("example ")

    assert len(store) == 3
    assert "Example" in store


def test_records_get_unique_ids(store: HistoryStore):
    _, first = store.add("a")
    _, second = store.add("b")

    assert first.id != second.id
    assert store.get(first.id) == first


def test_delete_existing(store: HistoryStore):
    _, first = store.add("a")
    store.add("b")

    assert store.delete(first.id)
    assert [r.content for r in store] == ["b"]


def test_delete_unknown_id_leaves_store_unchanged(store: HistoryStore):
    store.add("a")
    store.add("b")
    before = store.records()

    assert not store.delete("missing")
    assert store.records() == before


def test_clear(store: HistoryStore, slot: FileSlot):
    store.add("a")
    store.clear()

    assert len(store) == 0
    assert json.loads(slot.read()) == []


def test_deleted_content_can_be_added_again(store: HistoryStore):
    _, record = store.add("again")
    store.delete(record.id)

    inserted, _ = store.add("again")
    assert inserted


def test_search(store: HistoryStore):
    store.add("Example.COM")
    store.add("other text")
    store.add("https://example.org")

    assert [r.content for r in store.search("example")] == [
        "https://example.org",
        "Example.COM",
    ]
    assert store.search("") == store.records()
    assert store.search("nothing") == []


def test_every_mutation_is_persisted(store: HistoryStore, slot: FileSlot):
    _, record = store.add("https://a.com")
    store.add("b")
    store.delete(record.id)

    reloaded = HistoryStore(slot)
    assert reloaded.records() == store.records()
    assert [r.content for r in reloaded] == ["b"]


def test_round_trip_preserves_order_and_fields():
    records = [
        ScanRecord(
            content="WIFI:T:WPA;S:cafe;P:pw;;",
            category=Category.WIFI,
            timestamp=datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
            id="abc",
        ),
        ScanRecord.create("電話 tel:090"),
        ScanRecord(content="legacy", category=Category.UNKNOWN, id="old"),
    ]

    assert decode_records(encode_records(records)) == records


def test_stored_category_is_not_recomputed():
    blob = json.dumps(
        [
            {
                "id": "1",
                "content": "https://a.com",
                "timestamp": "2024-01-01T00:00:00+00:00",
                "category": "text",
            }
        ]
    )

    assert decode_records(blob)[0].category is Category.TEXT


@pytest.mark.parametrize("blob", [None, "", "not json", "{}", "42", b"\xff"])
def test_unreadable_payload_gives_empty_history(blob):
    assert decode_records(blob) == []


def test_malformed_entries_are_skipped(caplog):
    good = ScanRecord.create("keep me")
    blob = json.dumps(
        [
            "not an object",
            {"id": "x", "content": "no timestamp", "category": "text"},
            good.to_dict(),
            {"id": "y", "content": "bad", "timestamp": "yesterday", "category": "text"},
            {"id": "z", "content": "bad", "timestamp": good.to_dict()["timestamp"], "category": "qr"},
            {"id": 5, "content": "bad", "timestamp": good.to_dict()["timestamp"], "category": "text"},
        ]
    )

    with caplog.at_level(logging.WARNING):
        assert decode_records(blob) == [good]
    assert "Skipping history entry" in caplog.text


def test_duplicate_contents_collapse_on_load():
    first = ScanRecord.create("same")
    second = ScanRecord.create("same")

    assert decode_records(encode_records([first, second])) == [first]


def test_corrupt_slot_loads_empty_store(slot: FileSlot):
    slot.write("{broken")

    store = HistoryStore(slot)
    assert len(store) == 0
    assert store.load() == []


def test_save_failure_is_logged_not_raised(caplog):
    store = HistoryStore(BrokenSlot())

    with caplog.at_level(logging.ERROR):
        inserted, _ = store.add("kept in memory")

    assert inserted
    assert len(store) == 1
    assert "Failed to persist scan history" in caplog.text


def test_subscribers_receive_changes(store: HistoryStore):
    events = []
    unsubscribe = store.subscribe(events.append)

    _, record = store.add("a")
    store.add("a")
    store.delete(record.id)
    store.delete(record.id)
    store.clear()
    unsubscribe()
    store.add("b")

    assert [(e.kind, e.record, e.index) for e in events] == [
        ("added", record, 0),
        ("deleted", record, 0),
        ("cleared", None, None),
    ]


def test_failing_subscriber_does_not_block_others(store: HistoryStore, caplog):
    def broken(_change):
        raise RuntimeError("boom")

    events = []
    store.subscribe(broken)
    store.subscribe(events.append)

    with caplog.at_level(logging.ERROR):
        inserted, _ = store.add("a")

    assert inserted
    assert [e.kind for e in events] == ["added"]
    assert "History listener failed" in caplog.text


def test_deeply_nested_payload_gives_empty_store(slot: FileSlot):
    slot.write("[" * 200_000)

    store = HistoryStore(slot)
    assert len(store) == 0
    assert decode_records("[" * 200_000) == []


def test_lone_surrogate_does_not_block_later_saves(store: HistoryStore, slot: FileSlot):
    store.add("bad\ud800")
    store.add("https://later.example")

    reloaded = HistoryStore(slot)
    assert reloaded.records() == store.records()
    assert [r.content for r in reloaded] == ["https://later.example", "bad\ud800"]


def test_duplicate_ids_collapse_on_load():
    first = ScanRecord(content="one", category=Category.TEXT, id="same-id")
    second = ScanRecord(content="two", category=Category.TEXT, id="same-id")

    assert decode_records(encode_records([first, second])) == [first]


def test_len_holds_the_store_lock(store: HistoryStore):
    class RecordingLock:
        def __init__(self):
            self.entered = 0

        def __enter__(self):
            self.entered += 1
            return self

        def __exit__(self, *_exc_info):
            return False

    lock = RecordingLock()
    store._lock = lock

    assert len(store) == 0
    assert lock.entered == 1
