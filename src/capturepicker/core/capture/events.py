"""Source list notifications.

The backend reports every change to a session's source list as one of the
variants below. ``apply_event`` is the only way a list changes: it takes the
current sources and an event and returns the new sources without touching
its input.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Tuple, Union

import numpy as np

from capturepicker.core.models import Source


@dataclass(frozen=True)
class SourceAdded:
    index: int
    source: Source


@dataclass(frozen=True)
class SourceRemoved:
    index: int


@dataclass(frozen=True)
class SourceMoved:
    old_index: int
    new_index: int


@dataclass(frozen=True)
class SourceNameChanged:
    index: int
    name: str


@dataclass(frozen=True)
class SourceThumbnailChanged:
    index: int
    thumbnail: np.ndarray = field(compare=False, repr=False)


@dataclass(frozen=True)
class RefreshFinished:
    """Enumeration and thumbnail generation for one refresh are complete."""


SourceListEvent = Union[
    SourceAdded,
    SourceRemoved,
    SourceMoved,
    SourceNameChanged,
    SourceThumbnailChanged,
    RefreshFinished,
]

Sources = Tuple[Source, ...]


def _check_index(sources: Sources, index: int, *, inclusive: bool = False) -> None:
    upper = len(sources) if inclusive else len(sources) - 1
    if not 0 <= index <= upper:
        raise IndexError(f"Source index {index} out of range for list of {len(sources)}")


def apply_event(sources: Sources, event: SourceListEvent) -> Sources:
    """Apply one notification to a source list.

    Args:
        sources: Current sources in order
        event: Notification to apply

    Returns:
        The updated sources

    Raises:
        IndexError: If the event references a position outside the list
        ValueError: If an added source reuses an id already in the list
    """
    items = list(sources)

    if isinstance(event, SourceAdded):
        _check_index(sources, event.index, inclusive=True)
        if any(s.id == event.source.id for s in items):
            raise ValueError(f"Duplicate source id: {event.source.id}")
        items.insert(event.index, event.source)
    elif isinstance(event, SourceRemoved):
        _check_index(sources, event.index)
        del items[event.index]
    elif isinstance(event, SourceMoved):
        _check_index(sources, event.old_index)
        _check_index(sources, event.new_index)
        items.insert(event.new_index, items.pop(event.old_index))
    elif isinstance(event, SourceNameChanged):
        _check_index(sources, event.index)
        items[event.index] = replace(items[event.index], name=event.name)
    elif isinstance(event, SourceThumbnailChanged):
        _check_index(sources, event.index)
        items[event.index] = replace(items[event.index], thumbnail=event.thumbnail)
    elif isinstance(event, RefreshFinished):
        pass
    else:
        raise TypeError(f"Unknown source list event: {event!r}")

    return tuple(items)
