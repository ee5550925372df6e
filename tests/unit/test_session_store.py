"""Tests for flyerstudio.api.session_store — in-memory session bookkeeping."""

from __future__ import annotations

import threading
import time

import pytest
from PIL import Image

from flyerstudio.api.session_store import SessionStore
from flyerstudio.core.exceptions import InvalidImageError, SessionNotFoundError


@pytest.fixture
def store(test_config) -> SessionStore:
    return SessionStore(test_config)


class TestSessionStore:
    """Test create/get/remove and LRU eviction."""

    def test_create_and_get(self, store, source_image):
        entry = store.create(source_image)
        assert entry.session_id in store
        assert store.get(entry.session_id) is entry
        assert entry.engine.has_session
        assert len(store) == 1

    def test_create_applies_brush_radius(self, store, source_image):
        entry = store.create(source_image, brush_radius=500)
        assert entry.engine.brush_radius == 50.0

    def test_invalid_image_not_stored(self, store):
        with pytest.raises(InvalidImageError):
            store.create(Image.new("RGB", (1000, 10)))
        assert len(store) == 0

    def test_get_unknown_raises(self, store):
        with pytest.raises(SessionNotFoundError, match="Session not found"):
            store.get("missing")

    def test_remove_closes_engine(self, store, source_image):
        entry = store.create(source_image)
        store.remove(entry.session_id)
        assert entry.session_id not in store
        assert entry.engine.has_session is False

    def test_remove_unknown_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.remove("missing")

    def test_evicts_least_recently_used(self, store, source_image):
        """test_config allows four live sessions."""
        entries = [store.create(source_image) for _ in range(4)]
        store.get(entries[0].session_id)  # refresh the oldest

        newest = store.create(source_image)

        assert len(store) == 4
        assert entries[0].session_id in store
        assert entries[1].session_id not in store
        assert entries[1].engine.has_session is False
        assert newest.session_id in store

    def test_close_all(self, store, source_image):
        entries = [store.create(source_image) for _ in range(2)]
        store.close_all()
        assert len(store) == 0
        assert all(not entry.engine.has_session for entry in entries)

    def test_eviction_does_not_block_lookups(self, store, source_image):
        """A busy evicted session delays only the create that evicted it."""
        entries = [store.create(source_image) for _ in range(4)]
        oldest = entries[0]
        created = threading.Event()

        def create_one():
            store.create(source_image)
            created.set()

        with oldest.lock:
            creator = threading.Thread(target=create_one)
            creator.start()

            deadline = time.monotonic() + 5
            while oldest.session_id in store and time.monotonic() < deadline:
                time.sleep(0.01)
            assert oldest.session_id not in store

            found = {}
            lookup = threading.Thread(
                target=lambda: found.update(entry=store.get(entries[1].session_id))
            )
            lookup.start()
            lookup.join(timeout=2)
            assert not lookup.is_alive()
            assert found["entry"] is entries[1]
            assert not created.is_set()

        creator.join(timeout=5)
        assert created.is_set()
        assert oldest.engine.has_session is False
