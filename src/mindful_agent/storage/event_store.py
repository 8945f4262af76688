"""Bounded newest-first logs for haptic events and generated insights."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from mindful_agent.models import AIInsight, HapticEvent

logger = structlog.get_logger(__name__)

MAX_STORED_EVENTS = 50
MAX_STORED_INSIGHTS = 10

_ItemT = TypeVar("_ItemT", bound=BaseModel)


class BoundedLog(Generic[_ItemT]):
    """Newest-first list that drops its oldest entries beyond ``capacity``."""

    def __init__(self, adapter: TypeAdapter[list[_ItemT]], capacity: int) -> None:
        self._adapter = adapter
        self._capacity = capacity
        self._items: list[_ItemT] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[_ItemT]:
        return iter(self._items)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def items(self) -> list[_ItemT]:
        """Copy of the log, newest first."""
        return list(self._items)

    def latest(self) -> _ItemT | None:
        return self._items[0] if self._items else None

    def append(self, item: _ItemT) -> None:
        self._items.insert(0, item)
        if len(self._items) > self._capacity:
            del self._items[self._capacity:]

    def clear(self) -> None:
        self._items.clear()

    # ── Serialisation ─────────────────────────────────────────

    def dump(self) -> bytes:
        return self._adapter.dump_json(self._items)

    def load(self, data: bytes | None) -> bool:
        """Replace contents from a serialised blob.

        Missing or malformed data leaves the log empty and returns ``False``.
        """
        self._items = []
        if not data:
            return False
        try:
            items = self._adapter.validate_json(data)
        except ValidationError as exc:
            logger.warning(
                "event_store.corrupt_blob",
                kind=type(self).__name__,
                errors=exc.error_count(),
            )
            return False
        self._items = items[: self._capacity]
        return True


class EventStore(BoundedLog[HapticEvent]):
    """Log of haptic events; acknowledgment is the only permitted mutation."""

    def __init__(self, capacity: int = MAX_STORED_EVENTS) -> None:
        super().__init__(TypeAdapter(list[HapticEvent]), capacity)

    def get(self, event_id: str) -> HapticEvent | None:
        return next((e for e in self._items if e.id == event_id), None)

    def update(
        self,
        event_id: str,
        acknowledged: bool,
        response_time: float | None,
    ) -> HapticEvent | None:
        """Replace the event in place, keeping every other field.

        Returns the updated event, or ``None`` when *event_id* is unknown.
        """
        for i, event in enumerate(self._items):
            if event.id == event_id:
                updated = event.model_copy(
                    update={"acknowledged": acknowledged, "response_time": response_time},
                )
                self._items[i] = updated
                return updated
        logger.warning("event_store.unknown_event", event_id=event_id)
        return None


class InsightLog(BoundedLog[AIInsight]):
    """The ten most recent insights, newest first."""

    def __init__(self, capacity: int = MAX_STORED_INSIGHTS) -> None:
        super().__init__(TypeAdapter(list[AIInsight]), capacity)
