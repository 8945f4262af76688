"""Tests for the bounded event and insight logs."""

from datetime import timedelta

from conftest import START
from mindful_agent.models import AIInsight, InsightKind
from mindful_agent.storage.event_store import EventStore, InsightLog


class TestEventStore:
    def test_keeps_fifty_newest_first(self, make_event):
        store = EventStore()
        events = [make_event(timestamp=START + timedelta(minutes=i)) for i in range(55)]
        for e in events:
            store.append(e)

        assert len(store) == 50
        assert store.items[0].id == events[-1].id
        assert store.items[-1].id == events[5].id
        assert store.latest() == events[-1]

    def test_items_is_a_copy(self, make_event):
        store = EventStore()
        store.append(make_event())
        store.items.clear()
        assert len(store) == 1

    def test_update_preserves_other_fields(self, make_event):
        store = EventStore()
        original = make_event(heart_rate=97.0, stress_level=0.8)
        store.append(original)

        updated = store.update(original.id, True, 3.5)

        assert updated is not None
        assert updated.acknowledged is True
        assert updated.response_time == 3.5
        assert updated.timestamp == original.timestamp
        assert updated.heart_rate == 97.0
        assert store.get(original.id) == updated

    def test_update_unknown_id(self, make_event):
        store = EventStore()
        store.append(make_event())
        assert store.update("missing", True, 1.0) is None
        assert store.items[0].acknowledged is False

    def test_dump_and_load(self, make_event):
        store = EventStore()
        for i in range(3):
            store.append(make_event(timestamp=START + timedelta(minutes=i)))

        restored = EventStore()
        assert restored.load(store.dump()) is True
        assert [e.id for e in restored] == [e.id for e in store]

    def test_load_corrupt_blob_falls_back_to_empty(self, make_event):
        store = EventStore()
        store.append(make_event())
        assert store.load(b'[{"id": 1, "kind": "Nope"}]') is False
        assert len(store) == 0

    def test_load_missing_blob(self):
        store = EventStore()
        assert store.load(None) is False
        assert store.items == []

    def test_load_truncates_to_capacity(self, make_event):
        big = EventStore(capacity=100)
        for _ in range(60):
            big.append(make_event())
        store = EventStore()
        store.load(big.dump())
        assert len(store) == 50


class TestInsightLog:
    def test_keeps_ten(self):
        log = InsightLog()
        for i in range(12):
            log.append(AIInsight(message=f"insight {i}", confidence=0.5, kind=InsightKind.TIMING))
        assert len(log) == 10
        assert log.items[0].message == "insight 11"
        assert log.items[-1].message == "insight 2"
