"""
BigPdfMerge - Collection Events

Typed notifications sent from the page collection to whoever presents
it. The core never reaches into presentation state; views subscribe to
these events instead.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from bigpdfmerge.utils.logger import logger


class EventKind(Enum):
    """What changed in the collection."""

    PAGES_ADDED = auto()
    PAGE_REMOVED = auto()
    PAGE_MOVED = auto()
    PAGE_ROTATED = auto()
    THUMBNAIL_READY = auto()
    THUMBNAIL_FAILED = auto()
    CLEARED = auto()


@dataclass(frozen=True)
class CollectionEvent:
    """A single change notification.

    Attributes:
        kind: Type of change
        page_ids: Ids of the affected records, in collection order
        old_index: Previous position (moves and removals)
        new_index: New position (moves)
        rotation: New rotation (rotations)
        error: Failure description (thumbnail failures)
    """

    kind: EventKind
    page_ids: tuple[int, ...] = field(default_factory=tuple)
    old_index: int | None = None
    new_index: int | None = None
    rotation: int | None = None
    error: str | None = None


Listener = Callable[[CollectionEvent], None]


class EventEmitter:
    """Minimal synchronous publish/subscribe helper."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: CollectionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A broken view must not corrupt the model operation that fired
                logger.error(f"Event listener failed on {event.kind.name}: {e}")
