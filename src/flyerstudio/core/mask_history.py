"""Linear undo/redo history for mask editing.

Every committed stroke (or clear) appends a snapshot of the full mask.  A
cursor points at the snapshot that matches the mask currently on screen.
Committing after one or more undos discards the snapshots beyond the cursor,
the usual "new edit drops the redo branch" behaviour.

Snapshots are stored bit-packed with :func:`numpy.packbits`, so each entry
costs one bit per pixel while still reproducing the mask exactly.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class MaskSnapshot:
    """Immutable, bit-packed copy of a boolean mask."""

    packed: bytes
    shape: tuple[int, int]

    @classmethod
    def from_mask(cls, mask: np.ndarray) -> MaskSnapshot:
        return cls(packed=np.packbits(mask, axis=None).tobytes(), shape=mask.shape)

    def to_mask(self) -> np.ndarray:
        """Decode into a fresh, writable boolean array."""
        height, width = self.shape
        bits = np.unpackbits(np.frombuffer(self.packed, dtype=np.uint8), count=height * width)
        return bits.reshape(self.shape).astype(bool)


class MaskHistory:
    """Ordered snapshot log with a cursor.

    The cursor always stays within ``[0, len(self) - 1]``; the history is
    never empty.
    """

    def __init__(self, initial: np.ndarray) -> None:
        self._snapshots: list[MaskSnapshot] = [MaskSnapshot.from_mask(initial)]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def commit(self, mask: np.ndarray) -> None:
        """Truncate the redo branch, append *mask*, and advance the cursor."""
        del self._snapshots[self._cursor + 1 :]
        self._snapshots.append(MaskSnapshot.from_mask(mask))
        self._cursor = len(self._snapshots) - 1

    def undo(self) -> np.ndarray | None:
        """Step back one snapshot.

        Returns:
            The mask at the new cursor, or ``None`` if already at the start.
        """
        if not self.can_undo:
            return None
        self._cursor -= 1
        return self.current()

    def redo(self) -> np.ndarray | None:
        """Step forward one snapshot.

        Returns:
            The mask at the new cursor, or ``None`` if already at the end.
        """
        if not self.can_redo:
            return None
        self._cursor += 1
        return self.current()

    def current(self) -> np.ndarray:
        return self._snapshots[self._cursor].to_mask()

    def reset(self, mask: np.ndarray) -> None:
        """Collapse the history to a single snapshot of *mask*."""
        self._snapshots = [MaskSnapshot.from_mask(mask)]
        self._cursor = 0

    def snapshots(self) -> list[np.ndarray]:
        """Decode every snapshot, oldest first."""
        return [snapshot.to_mask() for snapshot in self._snapshots]
