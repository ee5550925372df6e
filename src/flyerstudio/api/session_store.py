"""In-memory editing session store for the FlyerStudio API.

This module isolates session bookkeeping from ``flyerstudio.api.main`` so
route handlers can focus on HTTP concerns while the store remains testable
as a small unit.

The store is intentionally simple:

- every session is one :class:`MaskCanvasEngine` plus a lock
- nothing is persisted; restarting the server drops all sessions
- the number of live sessions is bounded; when the bound is reached the
  least recently used session is closed and evicted

Route handlers hold a session's lock for the duration of every engine call,
so each mask has exactly one writer at a time even though FastAPI runs sync
handlers on a thread pool.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field

from PIL import Image

from flyerstudio.core.config import FlyerStudioConfig
from flyerstudio.core.exceptions import SessionNotFoundError
from flyerstudio.core.mask_canvas import MaskCanvasEngine

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """A live editing session and the lock that serialises access to it."""

    session_id: str
    engine: MaskCanvasEngine
    lock: threading.Lock = field(default_factory=threading.Lock)


class SessionStore:
    """Bounded LRU mapping from session id to :class:`SessionEntry`."""

    def __init__(self, config: FlyerStudioConfig) -> None:
        self._config = config
        self._sessions: OrderedDict[str, SessionEntry] = OrderedDict()
        self._lock = threading.Lock()

    def create(self, image: Image.Image, brush_radius: float | None = None) -> SessionEntry:
        """Open a new session on *image*.

        The image is loaded before the store is touched, so an invalid image
        never evicts an existing session.

        Raises:
            InvalidImageError: If the engine rejects the image.
        """
        engine = MaskCanvasEngine(self._config)
        if brush_radius is not None:
            engine.set_brush_radius(brush_radius)
        handle = engine.load_source(image)
        entry = SessionEntry(handle.session_id, engine)

        evicted: list[tuple[str, SessionEntry]] = []
        with self._lock:
            self._sessions[entry.session_id] = entry
            while len(self._sessions) > self._config.max_sessions:
                evicted.append(self._sessions.popitem(last=False))

        # Closed outside the store lock; an evicted session may be mid-stroke.
        for evicted_id, old in evicted:
            logger.info("Evicting least recently used session %s.", evicted_id)
            with old.lock:
                old.engine.close()

        logger.info("Created session %s (%d live).", entry.session_id, len(self))
        return entry

    def get(self, session_id: str) -> SessionEntry:
        """Look up a session and mark it as recently used.

        Raises:
            SessionNotFoundError: If no such session exists.
        """
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                raise SessionNotFoundError(f"Session not found: {session_id}")
            self._sessions.move_to_end(session_id)
            return entry

    def remove(self, session_id: str) -> None:
        """Close and drop a session.

        Raises:
            SessionNotFoundError: If no such session exists.
        """
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        with entry.lock:
            entry.engine.close()

    def close_all(self) -> None:
        """Close every session; used on application shutdown."""
        with self._lock:
            entries = list(self._sessions.values())
            self._sessions.clear()
        for entry in entries:
            with entry.lock:
                entry.engine.close()
        logger.info("Closed %d session(s).", len(entries))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
