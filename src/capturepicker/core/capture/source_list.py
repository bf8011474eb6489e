"""Session-scoped source list storage."""

from __future__ import annotations

import itertools
import logging

from capturepicker.core.capture.events import SourceListEvent, Sources, apply_event

logger = logging.getLogger(__name__)

_slot_ids = itertools.count(1)


class SourceListSlot:
    """Ordered source list owned by exactly one controller.

    The slot is valid from construction until ``release()``. A released slot
    holds no sources and turns every further event into a no-op.
    """

    def __init__(self):
        self._slot_id = next(_slot_ids)
        self._sources: Sources = ()
        self._valid = True
        logger.debug(f"SourceListSlot {self._slot_id} allocated")

    @property
    def slot_id(self) -> int:
        return self._slot_id

    @property
    def is_valid(self) -> bool:
        return self._valid

    def __len__(self) -> int:
        return len(self._sources)

    def apply(self, event: SourceListEvent) -> bool:
        """Apply a backend notification to the list.

        Events referencing positions the list does not have are logged and
        ignored. They never end the session.

        Args:
            event: Notification from the backend

        Returns:
            True if the list changed state, False if the event was dropped
        """
        if not self._valid:
            logger.debug(f"Dropping {type(event).__name__} for released slot {self._slot_id}")
            return False

        try:
            self._sources = apply_event(self._sources, event)
        except (IndexError, ValueError) as e:
            logger.warning(f"Rejected {type(event).__name__} on slot {self._slot_id}: {e}")
            return False

        logger.debug(
            f"Slot {self._slot_id} applied {type(event).__name__}, {len(self._sources)} source(s)"
        )
        return True

    def snapshot(self) -> Sources:
        """Get the current sources in order.

        Raises:
            RuntimeError: If the slot has been released
        """
        if not self._valid:
            raise RuntimeError(f"Source list slot {self._slot_id} has been released")
        return self._sources

    def release(self) -> None:
        """Free the sources and invalidate the slot. Safe to call twice."""
        if self._valid:
            logger.debug(f"SourceListSlot {self._slot_id} released")
        self._sources = ()
        self._valid = False

    def __repr__(self) -> str:
        state = "valid" if self._valid else "released"
        return f"SourceListSlot(id={self._slot_id}, sources={len(self._sources)}, {state})"
